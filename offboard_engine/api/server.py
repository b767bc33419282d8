"""
FastAPI Server for the Offboarding Engine.

Provides REST API endpoints for resignation submission, stage
decisions, the review queues and the employee status view.
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings, configure_logging, load_settings
from ..engine.transitions import normalize_identity
from ..exceptions import OffboardingError, ValidationError
from ..models import (
    AuditRecord,
    OverallStatus,
    ResignationRequest,
    ResignationSubmission,
    Stage,
    StageDecisionRequest,
    WorkflowSummary,
)
from ..workflows import OffboardingWorkflow, build_workflow

logger = logging.getLogger(__name__)


# Global workflow (initialized on startup)
workflow: Optional[OffboardingWorkflow] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global workflow

    logger.info("Initializing Offboarding Engine API server components")
    settings = getattr(app.state, "settings", None) or load_settings()
    workflow = build_workflow(settings)
    logger.info("Offboarding Engine API server components initialized")

    yield

    logger.info("Shutting down Offboarding Engine API server")
    workflow = None


app = FastAPI(
    title="Offboarding Engine API",
    description="Employee resignation approval workflow - manager and HR review",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(OffboardingError)
async def offboarding_error_handler(request: Request, exc: OffboardingError):
    """Report workflow errors with their stable code."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()})


def _workflow() -> OffboardingWorkflow:
    if not workflow:
        raise HTTPException(status_code=503, detail="Workflow engine not available")
    return workflow


def _parse_stage(stage: str) -> Stage:
    try:
        return Stage(stage)
    except ValueError:
        raise ValidationError(f"Unknown stage: {stage}") from None


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Offboarding Engine API", "version": __version__, "status": "running"}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy" if workflow else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "components": {
            "workflow": workflow is not None,
            "record_store": workflow is not None,
            "profile_store": bool(workflow and workflow.profile_store),
            "audit_logger": bool(workflow and workflow.audit_logger),
        },
    }


@app.post("/resignations", response_model=ResignationRequest, status_code=201)
def submit_resignation(submission: ResignationSubmission):
    """Submit a resignation request for the given identity."""
    return _workflow().submit(submission)


@app.get("/resignations", response_model=List[ResignationRequest])
def list_resignations(
    identity: Optional[str] = Query(None, description="Filter by employee identity"),
    status: Optional[str] = Query(None, description="Filter by overall status"),
    limit: int = Query(100, ge=1, description="Maximum number of results"),
):
    """List resignation requests, oldest first."""
    overall = None
    if status:
        try:
            overall = OverallStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown status: {status}") from None

    return _workflow().list_requests(identity=identity, status=overall)[:limit]


@app.get("/resignations/active/{identity:path}", response_model=Optional[ResignationRequest])
def get_active_resignation(identity: str):
    """Return the identity's pending request, or null."""
    return _workflow().find_active_for(identity)


@app.get("/resignations/{request_id}", response_model=ResignationRequest)
def get_resignation(request_id: str):
    """Return one resignation request."""
    return _workflow().get(request_id)


@app.patch("/resignations/{request_id}", response_model=ResignationRequest)
def decide_resignation(request_id: str, decision: StageDecisionRequest):
    """Record a manager or HR decision on a pending request."""
    return _workflow().decide(request_id, decision.stage, decision.decision, decision.note)


@app.get("/review-queue/{stage}", response_model=List[ResignationRequest])
def review_queue(stage: str):
    """Pending requests awaiting the given stage."""
    return _workflow().review_queue(_parse_stage(stage))


@app.get("/review-queue/{stage}/reviewed", response_model=List[ResignationRequest])
def reviewed_requests(stage: str):
    """Requests the given stage has already decided."""
    return _workflow().reviewed(_parse_stage(stage))


@app.get("/stats", response_model=WorkflowSummary)
def get_stats():
    """Request counts by status and by awaiting stage."""
    return _workflow().summary()


@app.get("/audit", response_model=List[AuditRecord])
def get_audit_logs(
    identity: Optional[str] = Query(None, description="Filter by employee identity"),
    request_id: Optional[str] = Query(None, description="Filter by resignation request"),
    limit: int = Query(100, ge=1, description="Maximum number of results"),
):
    """Audit events, most recent first."""
    engine = _workflow()
    if not engine.audit_logger:
        raise HTTPException(status_code=503, detail="Audit logger not available")

    wanted = normalize_identity(identity) if identity else None
    return engine.audit_logger.get_events(identity=wanted, request_id=request_id, limit=limit)


def start_server(
    host: str = "0.0.0.0",
    port: int = 8000,
    reload: bool = False,
    log_level: str = "info",
    settings: Optional[Settings] = None,
):
    """
    Start the FastAPI server.

    Args:
        settings: Resolved settings for the workflow; loaded from the
            environment on startup when None
    """
    configure_logging(log_level)
    if settings is not None:
        app.state.settings = settings
        # reload workers import the app afresh and only see the environment
        if settings.config_file:
            os.environ["OFFBOARD_CONFIG_FILE"] = settings.config_file

    uvicorn.run(
        "offboard_engine.api.server:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    start_server()
