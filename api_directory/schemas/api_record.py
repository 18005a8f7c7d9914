"""Schemas for directory records and search results."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PublicApiFields(BaseModel):
    """Optional access metadata nested under public_api_fields in the dataset."""

    model_config = ConfigDict(extra="ignore")

    https: bool | None = None
    auth: str | None = None
    cors: str | None = None


class APIRecord(BaseModel):
    """One entry of the dev-resources dataset. Identity is positional; there is no stable id."""

    model_config = ConfigDict(extra="ignore")

    name: str
    description: str | None = None
    url: str | None = None
    categories: list[str] | None = None
    public_api_fields: PublicApiFields | None = None


class SearchResult(BaseModel):
    """A projected APIRecord with every optional field defaulted, plus its match distance."""

    name: str
    description: str = ""
    url: str = ""
    categories: list[str] = Field(default_factory=list)
    https: bool = False
    auth: str = "unknown"
    cors: str = "unknown"
    score: float = Field(0.0, description="Match distance; near 0.0 is exact, lower is better.")

    @classmethod
    def from_record(cls, record: APIRecord, score: float = 0.0) -> "SearchResult":
        fields = record.public_api_fields or PublicApiFields()
        return cls(
            name=record.name,
            description=record.description or "",
            url=record.url or "",
            categories=list(record.categories or []),
            https=bool(fields.https),
            auth=fields.auth or "unknown",
            cors=fields.cors or "unknown",
            score=score,
        )

    def to_tool_output(self) -> dict[str, Any]:
        """Shape consumed by the agent and the tool server (no score)."""
        return self.model_dump(exclude={"score"})
