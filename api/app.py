"""
FastAPI application factory for the PlanHaus development backend.

Usage:
    python -m api.app                    # Dev server on port 8000
    APP_LOG_FORMAT=json python -m api.app

Implements the REST contract the client sync layer expects (demo login,
projects, budget, vendors, guests, tasks, dashboard stats, file analysis) on
an in-memory ``DemoStore``. Every error body is ``{"message": ...}``.

OpenAPI docs available at http://localhost:8000/docs after starting.
"""

import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from api.routes import analyze, auth, budget, dashboard, guests, projects, tasks, vendors
from api.store import DemoStore
from utils.config import ServerConfig
from utils.logs import configure_logging

_logger = logging.getLogger("planhaus_api")

_SLOW_REQUEST_MS = 500


def _validation_message(exc: RequestValidationError) -> str:
    """Flatten pydantic errors into one line: ``field: message; ...``."""
    parts = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc)
        parts.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def create_app(store: DemoStore | None = None,
               config: ServerConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        store: Data store to serve (default: a freshly seeded DemoStore).
        config: Server settings (default: from environment).

    Returns:
        Configured FastAPI application instance.
    """
    cfg = config or ServerConfig.from_env()

    app = FastAPI(
        title="PlanHaus API",
        summary="Development backend for the PlanHaus client sync layer.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "auth", "description": "Demo login, current user and logout."},
            {"name": "projects", "description": "Wedding projects and their activity feeds."},
            {"name": "budget", "description": "Budget items per project."},
            {"name": "vendors", "description": "Vendor pipeline per project."},
            {"name": "guests", "description": "Guest list and RSVPs."},
            {"name": "tasks", "description": "Planning checklist."},
            {"name": "dashboard", "description": "Overview statistics."},
            {"name": "analysis", "description": "Upload a PDF, Excel or CSV file for a summary."},
            {"name": "meta", "description": "Health check."},
        ],
    )
    app.state.store = store if store is not None else DemoStore()
    app.state.config = cfg

    # ── CORS middleware ───────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=cfg.cors_origins != ["*"],
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── Request logging middleware ────────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request and tag the response with a request id."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        if cfg.log_format == "json":
            _logger.info(
                "request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "request_id": request_id,
                },
            )
        else:
            _logger.info(
                "method=%s path=%s status=%d duration_ms=%.1f rid=%s",
                request.method, request.url.path, response.status_code,
                duration_ms, request_id,
            )
        if duration_ms > _SLOW_REQUEST_MS:
            _logger.warning(
                "slow_request method=%s path=%s duration_ms=%.1f",
                request.method, request.url.path, duration_ms,
            )
        return response

    # ── Error handling ────────────────────────────────────────────────────────

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": _validation_message(exc)})

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of an HTML traceback."""
        _logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": "Internal server error"})

    # ── Health check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health():
        """Return 200 OK with basic store counts."""
        store_ = app.state.store
        return {
            "status": "ok",
            "users": len(store_.users),
            "projects": len(store_.projects),
        }

    # ── Routers ───────────────────────────────────────────────────────────────
    for router_module in (auth, projects, budget, vendors, guests, tasks, dashboard, analyze):
        app.include_router(router_module.router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _cfg = ServerConfig.from_env()
    configure_logging(_cfg.log_format)
    uvicorn.run("api.app:app", host=_cfg.api_host, port=_cfg.api_port, reload=False)
