"""TeamTask Core FastAPI application."""
import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import get_settings
from ..exceptions import (
    AccessDeniedError,
    ActorNotActiveError,
    AuthenticationRequiredError,
    DuplicateResourceError,
    InvalidRequestError,
    InvalidTransitionError,
    InvariantViolationError,
    ResourceNotFoundError,
    ResourceStateError,
    TeamTaskError,
)
from .routers import attachments, comments, projects, tasks, teams, users

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("teamtask-core")

logger.info("Starting TeamTask Core API")

# Create FastAPI app
app = FastAPI(
    title="TeamTask Core API",
    description="Multi-tenant task tracking with team-scoped authorization",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================
# EXCEPTION HANDLERS
# ============================================================

# Most specific classes first; the first isinstance match wins
ERROR_STATUS_CODES: list[tuple[type[TeamTaskError], int, str]] = [
    (AuthenticationRequiredError, 401, "authentication_required"),
    (ActorNotActiveError, 403, "actor_not_active"),
    (AccessDeniedError, 403, "access_denied"),
    (ResourceNotFoundError, 404, "not_found"),
    (InvalidTransitionError, 409, "invalid_transition"),
    (InvariantViolationError, 409, "invariant_violation"),
    (ResourceStateError, 409, "invalid_state"),
    (DuplicateResourceError, 409, "duplicate"),
    (InvalidRequestError, 400, "invalid_request"),
]


def error_status(exc: TeamTaskError) -> tuple[int, str]:
    for exc_type, status_code, kind in ERROR_STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code, kind
    return 400, "error"


@app.exception_handler(TeamTaskError)
async def team_task_error_handler(request: Request, exc: TeamTaskError):
    status_code, kind = error_status(exc)
    content = {"error": kind, "detail": exc.message}
    if isinstance(exc, InvalidTransitionError):
        content["current_status"] = exc.current_status.value
        content["requested_status"] = exc.requested_status.value
        content["allowed_transitions"] = [s.value for s in exc.allowed_transitions]

    logger.info(f"{request.method} {request.url.path} -> {status_code} {kind}: {exc.message}")
    return JSONResponse(status_code=status_code, content=content)


# ============================================================
# ROUTERS
# ============================================================

app.include_router(teams.router, prefix="/api/v1/teams")
app.include_router(projects.router, prefix="/api/v1/projects")
app.include_router(tasks.router, prefix="/api/v1/tasks")
app.include_router(comments.router, prefix="/api/v1/comments")
app.include_router(attachments.router, prefix="/api/v1/attachments")
app.include_router(users.router, prefix="/api/v1/users")


@app.get("/")
def root():
    """Root endpoint with server info."""
    return {
        "name": "TeamTask Core API",
        "version": __version__,
        "docs": "/docs",
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


def run() -> None:
    """Serve the API with uvicorn (``teamtask-core-api`` console script)."""
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
