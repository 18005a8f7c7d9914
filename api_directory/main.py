# Run from project root: uvicorn api_directory.main:app --reload

import logging

from fastapi import FastAPI

from api_directory.api.routes import router
from api_directory.mcp.server import mcp_router

logging.basicConfig(level=logging.INFO)


app = FastAPI(title="API Directory Agent")
app.include_router(router)
app.include_router(mcp_router, prefix="/mcp")
