# media_matching/api/server.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Query, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from media_matching.api.schemas import (
    ContactListResponse,
    ContactSearchResponse,
    EmailExportResponse,
    ExportRequest,
    HealthResponse,
    JustificationRequest,
    JustificationResponse,
    MatchReportersRequest,
    MatchReportersResponse,
    QueryEcho,
    ReporterJustification,
)
from media_matching.pipeline.export import reporters_to_csv, reporters_to_email_string
from media_matching.reporter_matching.config_loader import get_config
from media_matching.reporter_matching.contact_resolver import ContactDirectory
from media_matching.reporter_matching.errors import ContactNotFound
from media_matching.reporter_matching.graph import (
    ReporterMatchingPipeline,
    build_enricher,
    build_pipeline,
)
from media_matching.reporter_matching.justification_enricher import JustificationEnricher
from media_matching.reporter_matching.models import ContactInfo

logger = logging.getLogger(__name__)

# Configuration loading
config = get_config()
api_cfg: Dict[str, Any] = config.get_api_config()

API_NAME: str = api_cfg.get("name", "ReporterMatchingAPI")
SERVICE_NAME: str = api_cfg.get("service", "media-matching-api")
API_HOST: str = api_cfg.get("host", "0.0.0.0")
API_PORT: int = int(api_cfg.get("port", 3001))
CORS_ORIGINS: List[str] = list(api_cfg.get("cors_origins", ["*"]) or [])


# Dependencies
# Built on first use and reused; tests swap them through app.dependency_overrides.
@lru_cache(maxsize=1)
def get_contact_directory() -> ContactDirectory:
    return ContactDirectory.from_yaml(
        config.resolve_path("contacts_path", "configuration/reporters_contacts.yaml")
    )


@lru_cache(maxsize=1)
def get_pipeline() -> ReporterMatchingPipeline:
    return build_pipeline(config, contact_resolver=get_contact_directory())


@lru_cache(maxsize=1)
def get_enricher() -> JustificationEnricher:
    return build_enricher(config)


# FastAPI application
app = FastAPI(
    title=API_NAME,
    description=(
        "HTTP API that ranks reporters for a story brief by semantic similarity "
        "of their published articles, with optional LLM justifications."
    ),
    version="1.0.0",
)

# The web client is served from another origin.
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request, exc: StarletteHTTPException) -> JSONResponse:
    """Errors go out as {"error": message}."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Rejected invalid request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


def _require_brief(story_brief: Optional[str]) -> str:
    if not story_brief or not story_brief.strip():
        raise HTTPException(status_code=400, detail="Story brief is required")
    return story_brief


@app.get("/health", response_model=HealthResponse)
def health_endpoint() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        service=SERVICE_NAME,
    )


@app.post("/api/reporters/match", response_model=MatchReportersResponse)
async def match_reporters_endpoint(
    payload: MatchReportersRequest,
    pipeline: ReporterMatchingPipeline = Depends(get_pipeline),
) -> MatchReportersResponse:
    """
    Rank reporters for a story brief.

    Clients send:
        {
          "storyBrief": "...",
          "outletTypes": ["national-business-tech"],
          "geography": ["UK"],
          "limit": 15
        }

    and receive the ranked reporters, the key topics detected in the brief
    and the raw article hits the ranking was computed from. Justifications
    are null unless "includeJustifications" is true.
    """
    _require_brief(payload.story_brief)
    story_query = payload.to_story_query()

    logger.info(
        "HTTP /api/reporters/match called: brief_length=%d, limit=%d, outlet_types=%s",
        len(story_query.story_brief),
        payload.limit,
        story_query.outlet_types,
    )

    try:
        result = await pipeline.amatch(
            story_query,
            limit=payload.limit,
            include_justifications=payload.include_justifications,
        )
    except Exception as e:
        logger.exception("Error while matching reporters.")
        raise HTTPException(status_code=500, detail=str(e))

    return MatchReportersResponse(
        query=QueryEcho(
            story_brief=story_query.story_brief,
            outlet_types=list(story_query.outlet_types),
            geography=list(story_query.geography),
            key_topics=result.key_topics,
        ),
        reporters=result.reporters,
        total_articles_analyzed=result.total_articles_analyzed,
        similar_articles=result.hits,
    )


@app.post("/api/reporters/justifications", response_model=JustificationResponse)
async def justifications_endpoint(
    payload: JustificationRequest,
    enricher: JustificationEnricher = Depends(get_enricher),
) -> JustificationResponse:
    """
    Generate one justification per reporter of an already ranked list.

    Failed or slow generations are replaced by a deterministic fallback,
    so this endpoint only fails on invalid input.
    """
    story_brief = _require_brief(payload.story_brief)
    logger.info("HTTP /api/reporters/justifications called: reporters=%d", len(payload.reporters))

    try:
        texts = await enricher.generate_justifications(story_brief, payload.reporters)
    except Exception as e:
        logger.exception("Error while generating justifications.")
        raise HTTPException(status_code=500, detail=str(e))

    return JustificationResponse(
        justifications=[
            ReporterJustification(name=summary.name, outlet=summary.outlet, justification=text)
            for summary, text in zip(payload.reporters, texts)
        ]
    )


def _contact_or_404(name: str, contacts: ContactDirectory):
    try:
        return contacts.require(name)
    except ContactNotFound as e:
        logger.warning("Reporter contact not found: %s (key=%s)", e.name, e.sanitized_name)
        return JSONResponse(
            status_code=404,
            content={"error": "Reporter not found", "sanitizedName": e.sanitized_name},
        )


@app.get("/api/reporters/contact", response_model=ContactInfo)
def contact_by_query_endpoint(
    name: Optional[str] = Query(None),
    contacts: ContactDirectory = Depends(get_contact_directory),
):
    if not name or not name.strip():
        raise HTTPException(status_code=400, detail="Name parameter is required")
    return _contact_or_404(name, contacts)


@app.get("/api/reporters/contact/{name}", response_model=ContactInfo)
def contact_by_path_endpoint(
    name: str,
    contacts: ContactDirectory = Depends(get_contact_directory),
):
    return _contact_or_404(name, contacts)


@app.get("/api/reporters/search", response_model=ContactSearchResponse)
def search_contacts_endpoint(
    q: Optional[str] = Query(None),
    contacts: ContactDirectory = Depends(get_contact_directory),
) -> ContactSearchResponse:
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="Query parameter 'q' is required")

    results = contacts.search(q)
    return ContactSearchResponse(query=q, results=results, count=len(results))


@app.get("/api/reporters/all", response_model=ContactListResponse)
def all_contacts_endpoint(
    contacts: ContactDirectory = Depends(get_contact_directory),
) -> ContactListResponse:
    reporters = contacts.all()
    return ContactListResponse(reporters=reporters, count=len(reporters))


@app.post("/api/export/csv")
def export_csv_endpoint(payload: ExportRequest) -> Response:
    if not payload.reporters:
        raise HTTPException(status_code=400, detail="Reporters list is required")

    logger.info("HTTP /api/export/csv called: reporters=%d", len(payload.reporters))
    return Response(
        content=reporters_to_csv(payload.reporters),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="media-list.csv"'},
    )


@app.post("/api/export/emails", response_model=EmailExportResponse)
def export_emails_endpoint(payload: ExportRequest) -> EmailExportResponse:
    if not payload.reporters:
        raise HTTPException(status_code=400, detail="Reporters list is required")

    email_string = reporters_to_email_string(payload.reporters)
    count = sum(1 for r in payload.reporters if r.email)
    return EmailExportResponse(email_string=email_string, count=count)


# Entry point
if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    logger.info(
        "Starting HTTP server '%s' host=%s port=%d config=%s",
        API_NAME,
        API_HOST,
        API_PORT,
        config.config_path,
    )

    uvicorn.run(
        app,
        host=API_HOST,
        port=API_PORT,
        log_level="info",
    )
