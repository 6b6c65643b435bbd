# This project was developed with assistance from AI tools.
"""FastAPI application: routers, CORS and RFC 7807 error mapping."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from scopegate_db.database import db_service
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .core.config import settings
from .core.errors import ScopeGateError, Unauthenticated
from .core.policy import get_policy
from .routes import admin, auth, health, resources
from .schemas.error import ProblemDetails

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Configure logging, load the policy and prepare the schema."""
    logging.basicConfig(level=settings.LOG_LEVEL)
    policy = get_policy()
    logger.info("%s starting with %d access rules", settings.APP_NAME, len(policy))
    if settings.AUTO_CREATE_SCHEMA:
        await db_service.create_all()
    yield
    await db_service.engine.dispose()


app = FastAPI(
    title="ScopeGate API",
    description="Scoped authorization, resource lifecycle and generic listing",
    version=__version__,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)


def _problem(
    request: Request,
    status: int,
    detail: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ProblemDetails.for_request(request, status, detail)
    return JSONResponse(status_code=status, content=body.model_dump(), headers=headers)


@app.exception_handler(ScopeGateError)
async def domain_error_handler(request: Request, exc: ScopeGateError):
    """Domain errors carry their own status; 401s advertise the Bearer scheme."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return _problem(request, exc.status_code, exc.detail, headers)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _problem(request, exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return _problem(request, 422, str(exc.errors()))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch-all -- log with the request id and return a bare 500."""
    response = _problem(request, 500, "An unexpected error occurred.")
    logger.exception(
        "Unhandled exception on %s %s (request_id=%s)",
        request.method,
        request.url.path,
        request.headers.get("x-request-id", "-"),
    )
    return response


# Fixed prefixes must be registered before the /api/{role}/{resource_type} routes.
app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(resources.router, prefix="/api", tags=["resources"])


@app.get("/")
async def root() -> dict[str, str]:
    return {"message": f"{settings.APP_NAME} {__version__}"}
