"""FastAPI web application for hotel knowledge briefs.

Launch:
    python -m uvicorn webapp.app:app --reload --port 8501

Or via pipeline:
    python pipeline.py serve --port 8501
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from webapp.brief.engine import BriefEngine
from webapp.brief.errors import BriefQueryError, InvalidQueryError
from webapp.brief.loader import JsonDatasetLoader, check_references
from webapp.rag.narrative import LLMNarrativeWriter
from webapp.settings import Settings, load_settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Hotel Knowledge Brief",
    description="Citation-backed hotel briefs for travel advisors",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Global state, lazy-initialized on first request
# ---------------------------------------------------------------------------

_settings: Optional[Settings] = None
_engine: Optional[BriefEngine] = None


def _get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def build_engine(settings: Settings) -> BriefEngine:
    loader = JsonDatasetLoader(
        settings.data_dir,
        settings.hotel_file,
        settings.sources_file,
        settings.chunks_file,
    )
    writer = LLMNarrativeWriter(
        provider=settings.narrative_provider,
        model=settings.narrative_model,
        api_key=settings.narrative_api_key,
    )
    return BriefEngine(loader, narrative_writer=writer, top_n=settings.top_n_chunks)


def _get_engine() -> BriefEngine:
    global _engine
    if _engine is None:
        _engine = build_engine(_get_settings())
    return _engine


def _error_response(status_code: int, error: str, details: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "details": details})


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.post("/api/query")
async def api_query(req: Request):
    """Answer a structured hotel query with a full brief."""
    try:
        payload = await req.json()
    except ValueError:
        return _error_response(400, InvalidQueryError.error_code, "Invalid request body")

    try:
        response = _get_engine().query(payload)
        return response.to_payload()
    except BriefQueryError as e:
        if e.status_code >= 500:
            logger.error("Query failed: %s", e)
        return _error_response(e.status_code, e.error_code, e.message)
    except Exception as e:
        logger.exception("Query failed: %s", e)
        return _error_response(500, BriefQueryError.error_code, str(e))


@app.get("/api/status")
async def api_status():
    """Dataset summary and narrative availability."""
    engine = _get_engine()
    status = {"narrativeAvailable": engine.narrative_available}
    try:
        dataset = engine.load_dataset()
    except BriefQueryError as e:
        status.update({"datasetLoaded": False, "error": e.message})
        return status

    status.update({
        "datasetLoaded": True,
        "hotelId": dataset.hotel.hotel_id,
        "hotelName": dataset.hotel.name,
        "sources": len(dataset.sources),
        "chunks": len(dataset.chunks),
        "danglingReferences": check_references(dataset),
    })
    return status
