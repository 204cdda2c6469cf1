"""
MDM Clinical Decision Rule Service - FastAPI Application

Main application entry point with API endpoints for:
- CDR and test library listing
- CDR identification and test recommendation from a differential
- Per-encounter CDR tracking (answers, proposals, dismissal, exclusion)
- CDR documentation lines and suggested treatments
"""
from contextlib import asynccontextmanager
from datetime import datetime
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import config
from app.core.cdr.documentation import build_mdm_cdr_lines, suggest_treatments, summarise_tracking
from app.core.cdr.matching import identify_cdrs
from app.core.cdr.recommender import recommend_test_ids
from app.models.api import (
    AnswerComponentRequest,
    DocumentationResponse,
    EntryResponse,
    ExcludedResponse,
    HealthResponse,
    IdentifyRequest,
    IdentifyResponse,
    InitializeTrackingRequest,
    ProposalsRequest,
    ProposalsResponse,
    RecommendTestsRequest,
    RecommendTestsResponse,
    TrackingResponse,
    to_differential,
)
from app.services.encounters import EncounterRegistry, EncounterSession
from app.utils.exceptions import (
    CatalogError,
    CdrCoreError,
    ComponentNotFoundError,
    EncounterNotFoundError,
    InvalidComponentValueError,
    InvalidSectionError,
    TrackingEntryNotFoundError,
)
from app.utils.logging import setup_logging

logger = logging.getLogger(__name__)

# ---- Encounter Registry Singleton ----
_registry = EncounterRegistry()


# ---- Application Lifespan ----

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and load catalogs: startup → yield → shutdown."""
    setup_logging(config.LOG_LEVEL, config.LOG_FILE or None)
    _registry.load_catalogs()
    app.state.registry = _registry

    logger.info("API ready to accept requests")
    yield

    _registry.clear()
    logger.info("CDR service shut down.")


# ---- FastAPI Application ----

app = FastAPI(
    title=config.API_TITLE,
    description="Clinical decision rule matching, tracking and scoring for MDM documentation",
    version=config.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

START_TIME = datetime.now()

_STATUS_BY_ERROR = {
    EncounterNotFoundError: 404,
    TrackingEntryNotFoundError: 404,
    ComponentNotFoundError: 404,
    InvalidComponentValueError: 422,
    InvalidSectionError: 422,
    CatalogError: 500,
}


@app.exception_handler(CdrCoreError)
async def cdr_error_handler(request: Request, exc: CdrCoreError) -> JSONResponse:
    status_code = next(
        (code for err, code in _STATUS_BY_ERROR.items() if isinstance(exc, err)),
        400,
    )
    if status_code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed: {exc.message}",
            extra={"encounter_id": request.path_params.get("encounter_id")},
        )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# ---- Helpers ----

def _tracking_response(session: EncounterSession) -> TrackingResponse:
    return TrackingResponse(
        encounter_id=session.encounter_id,
        current_section=session.store.current_section,
        tracking=session.store.snapshot(),
    )


def _entry_response(session: EncounterSession, cdr_id: str) -> EntryResponse:
    entry = session.store.get(cdr_id)
    return EntryResponse(
        encounter_id=session.encounter_id,
        cdr_id=cdr_id,
        entry=entry.to_dict(),
        effective_status=entry.effective_status.value,
    )


def _health() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=config.API_VERSION,
        timestamp=datetime.now(),
        uptime_seconds=(datetime.now() - START_TIME).total_seconds(),
        cdr_count=len(_registry.cdr_catalog),
        test_count=len(_registry.test_catalog),
        encounter_count=len(_registry),
    )


# ---- API Endpoints ----

@app.get("/", response_model=HealthResponse, tags=["Health"])
async def root():
    """API root - health check."""
    return _health()


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return _health()


@app.get("/api/v1/libraries/cdrs", tags=["Reference"])
async def list_cdrs():
    """List every CDR in the loaded catalog."""
    return {"cdrs": [cdr.to_dict() for cdr in _registry.cdr_catalog]}


@app.get("/api/v1/libraries/tests", tags=["Reference"])
async def list_tests():
    """List every orderable test in the loaded catalog."""
    return {"tests": [test.to_dict() for test in _registry.test_catalog]}


@app.post("/api/v1/cdrs/identify", response_model=IdentifyResponse, tags=["CDR"])
async def identify(request: IdentifyRequest):
    """
    Identify CDRs applicable to a differential.

    Context-driven matches come first, then chief-complaint matches.
    """
    identified = identify_cdrs(to_differential(request.differential), _registry.cdr_catalog)
    return IdentifyResponse(identified=[item.to_dict() for item in identified])


@app.post("/api/v1/tests/recommend", response_model=RecommendTestsResponse, tags=["Tests"])
async def recommend_tests(request: RecommendTestsRequest):
    """Recommend test ids; trusted ids are kept first."""
    test_ids = recommend_test_ids(
        to_differential(request.differential),
        _registry.test_catalog,
        trusted_ids=request.trusted_ids,
    )
    return RecommendTestsResponse(test_ids=test_ids)


@app.post(
    "/api/v1/encounters/{encounter_id}/tracking/initialize",
    response_model=TrackingResponse,
    tags=["Tracking"],
)
async def initialize_tracking(encounter_id: str, request: InitializeTrackingRequest):
    """
    Start tracking every CDR the differential matches.

    Safe to call repeatedly: existing entries and their answers are kept.
    """
    session = _registry.get_or_create(encounter_id, request.section)
    identified = identify_cdrs(to_differential(request.differential), _registry.cdr_catalog)
    session.reconciler.initialize(identified, request.auto_populated)
    return _tracking_response(session)


@app.get(
    "/api/v1/encounters/{encounter_id}/tracking",
    response_model=TrackingResponse,
    tags=["Tracking"],
)
async def get_tracking(encounter_id: str):
    """Current tracking snapshot of an encounter."""
    return _tracking_response(_registry.get(encounter_id))


@app.post(
    "/api/v1/encounters/{encounter_id}/tracking/proposals",
    response_model=ProposalsResponse,
    tags=["Tracking"],
)
async def apply_proposals(encounter_id: str, request: ProposalsRequest):
    """Apply a batch of automated component values (section1 or section2)."""
    session = _registry.get(encounter_id)
    touched = session.reconciler.apply_proposals(request.proposals, request.source)
    return ProposalsResponse(
        encounter_id=encounter_id,
        updated=list(touched),
        tracking=session.store.snapshot(),
    )


@app.get(
    "/api/v1/encounters/{encounter_id}/tracking/documentation",
    response_model=DocumentationResponse,
    tags=["Documentation"],
)
async def get_documentation(encounter_id: str):
    """CDR lines for generated MDM text plus CDR-suggested treatments."""
    session = _registry.get(encounter_id)
    return DocumentationResponse(
        encounter_id=encounter_id,
        mdm_lines=build_mdm_cdr_lines(session.store),
        summary=summarise_tracking(session.store),
        suggested_treatments=[
            group.to_dict() for group in suggest_treatments(session.store, _registry.cdr_catalog)
        ],
    )


@app.post(
    "/api/v1/encounters/{encounter_id}/tracking/{cdr_id}/components/{component_id}",
    response_model=EntryResponse,
    tags=["Tracking"],
)
async def answer_component(
    encounter_id: str,
    cdr_id: str,
    component_id: str,
    request: AnswerComponentRequest,
):
    """
    Answer one component.

    A section1/section2 value never replaces a clinician's answer; such a
    write is ignored and the unchanged entry is returned.
    """
    session = _registry.get(encounter_id)
    session.reconciler.answer_component(cdr_id, component_id, request.value, request.source)
    return _entry_response(session, cdr_id)


@app.post(
    "/api/v1/encounters/{encounter_id}/tracking/{cdr_id}/dismiss",
    response_model=EntryResponse,
    tags=["Tracking"],
)
async def dismiss_cdr(encounter_id: str, cdr_id: str):
    session = _registry.get(encounter_id)
    session.store.dismiss(cdr_id)
    return _entry_response(session, cdr_id)


@app.post(
    "/api/v1/encounters/{encounter_id}/tracking/{cdr_id}/undismiss",
    response_model=EntryResponse,
    tags=["Tracking"],
)
async def undismiss_cdr(encounter_id: str, cdr_id: str):
    session = _registry.get(encounter_id)
    session.store.undismiss(cdr_id)
    return _entry_response(session, cdr_id)


@app.post(
    "/api/v1/encounters/{encounter_id}/tracking/{cdr_id}/toggle-excluded",
    response_model=ExcludedResponse,
    tags=["Tracking"],
)
async def toggle_excluded(encounter_id: str, cdr_id: str):
    """Flip whether the CDR is left out of generated MDM text."""
    session = _registry.get(encounter_id)
    excluded = session.store.toggle_excluded(cdr_id)
    return ExcludedResponse(encounter_id=encounter_id, cdr_id=cdr_id, excluded=excluded)


# ---- Run with uvicorn ----
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
