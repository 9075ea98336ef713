"""
goodpoint.api.main — FastAPI application entry point
=====================================================

Run with::

    python -m goodpoint.api
    # or
    uvicorn goodpoint.api.main:app --port 8000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

load_dotenv()

from goodpoint import __version__  # noqa: E402
from goodpoint.api.deps import get_engine  # noqa: E402
from goodpoint.api.routes.public import router as public_router  # noqa: E402
from goodpoint.api.routes.slack import router as slack_router  # noqa: E402
from goodpoint.database.engine import init_db  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine and verify tables."""
    engine = get_engine()
    init_db(engine)
    logger.info("GoodPoint API started — engine ready (%s)", engine.url.database)
    yield
    logger.info("GoodPoint API shutting down")


app = FastAPI(
    title="GoodPoint",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(slack_router)
app.include_router(public_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
