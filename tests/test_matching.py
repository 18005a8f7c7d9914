"""
Unit tests for approximate field matching: field_distance and FuzzyIndex.
"""

import pytest

from api_directory.services.matching import EXACT_FLOOR, NO_MATCH, FuzzyIndex, field_distance


class TestFieldDistance:
    """Tests for field_distance()."""

    def test_exact_field_is_zero(self) -> None:
        assert field_distance("weather", "weather") == 0.0

    def test_empty_inputs_do_not_match(self) -> None:
        assert field_distance("", "weather") == NO_MATCH
        assert field_distance("weather", "") == NO_MATCH

    def test_prefix_match_scores_low_but_not_zero(self) -> None:
        d = field_distance("weather", "weather data")
        assert 0.0 < d <= 0.1

    def test_match_near_start_of_name(self) -> None:
        # "weather" starts at offset 4 in "openweathermap"
        d = field_distance("weather", "openweathermap")
        assert 0.0 < d <= 0.1
        assert d > field_distance("weather", "weather data")

    def test_match_far_into_text_is_rejected(self) -> None:
        text = "provides current and forecasted weather data"
        assert field_distance("weather", text) == NO_MATCH

    def test_unrelated_text_does_not_match(self) -> None:
        assert field_distance("music", "currency exchange rates") == NO_MATCH

    def test_single_typo_tolerated_for_long_query(self) -> None:
        # 14 characters at threshold 0.1 allow one edit
        d = field_distance("openweathermop", "openweathermap")
        assert d == pytest.approx(1 / 14)

    def test_typo_rejected_for_short_query(self) -> None:
        # 5 characters allow no edits at threshold 0.1
        assert field_distance("musik", "music") == NO_MATCH

    def test_looser_threshold_allows_more_errors(self) -> None:
        assert field_distance("musik", "music", threshold=0.3) == pytest.approx(0.2)


class TestFuzzyIndex:
    """Tests for FuzzyIndex.search()."""

    @pytest.fixture
    def records(self) -> list[dict]:
        return [
            {"name": "Dog Facts", "description": "Random dog facts", "categories": ["Animals"]},
            {"name": "Cat Facts", "description": "Daily cat facts", "categories": ["Animals"]},
            {"name": "Dog", "description": "Dog pictures", "categories": ["Animals"]},
            {"name": "Zoo Animals", "description": "Facts about zoo animals", "categories": ["Animals"]},
        ]

    def test_empty_query_returns_nothing(self, records: list[dict]) -> None:
        index = FuzzyIndex(records)
        assert index.search("") == []
        assert index.search("   ") == []

    def test_exact_name_ranks_first(self, records: list[dict]) -> None:
        hits = FuzzyIndex(records).search("dog")
        assert hits[0][0] == 2
        assert {pos for pos, _ in hits} == {0, 2}

    def test_exact_field_scores_near_zero(self) -> None:
        hits = FuzzyIndex([{"name": "Weather"}]).search("weather")
        assert hits == [(0, pytest.approx(EXACT_FLOOR ** 0.5))]

    def test_scores_ascending(self, records: list[dict]) -> None:
        hits = FuzzyIndex(records).search("animals")
        scores = [score for _, score in hits]
        assert scores == sorted(scores)

    def test_equal_scores_keep_dataset_order(self, records: list[dict]) -> None:
        # Every record has the exact category "Animals"; only "Zoo Animals" also matches on name
        hits = FuzzyIndex(records).search("Animals")
        assert [pos for pos, _ in hits] == [3, 0, 1, 2]
        assert hits[1][1] == hits[2][1] == hits[3][1]

    def test_repeated_queries_are_deterministic(self, records: list[dict]) -> None:
        index = FuzzyIndex(records)
        assert index.search("facts") == index.search("facts")

    def test_categories_scored_per_element(self) -> None:
        index = FuzzyIndex([{"name": "Spotify", "description": "", "categories": ["Audio", "Music"]}])
        assert [pos for pos, _ in index.search("music")] == [0]

    def test_missing_fields_are_skipped(self) -> None:
        index = FuzzyIndex([{"name": "Bare"}, {"name": "Weather", "description": None, "categories": None}])
        assert [pos for pos, _ in index.search("weather")] == [1]

    def test_heavier_field_match_ranks_higher(self) -> None:
        records = [
            {"name": "Alpha", "description": "", "categories": ["Crypto tools"]},
            {"name": "Crypto tools", "description": "", "categories": []},
        ]
        hits = FuzzyIndex(records).search("crypto")
        assert [pos for pos, _ in hits] == [1, 0]

    def test_exact_name_beats_exact_category(self) -> None:
        records = [
            {"name": "Forecast", "categories": ["Weather"]},
            {"name": "Weather", "categories": ["Misc"]},
        ]
        hits = FuzzyIndex(records).search("weather")
        assert [pos for pos, _ in hits] == [1, 0]

    def test_exact_name_beats_several_exact_lesser_fields(self) -> None:
        # description (0.3) + category (0.2) exact weigh as much as an exact name
        records = [
            {"name": "Weatherly", "description": "weather", "categories": ["Weather"]},
            {"name": "Weather", "categories": ["Misc"]},
        ]
        hits = FuzzyIndex(records).search("weather")
        assert [pos for pos, _ in hits] == [1, 0]

    def test_length_penalty_does_not_reject_near_start_match(self) -> None:
        # offset 8 is within threshold; the length penalty pushes the distance past it
        text = "weekend sports fixtures and live scores data"
        d = field_distance("sport", text)
        assert d == pytest.approx(0.08 + 0.05 * (1 - 5 / len(text)))
        assert 0.1 < d < NO_MATCH
        index = FuzzyIndex([{"name": "Fixtures Hub", "description": text, "categories": []}])
        assert [pos for pos, _ in index.search("sport")] == [0]
