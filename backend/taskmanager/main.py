"""Task Management API: main entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskmanager.config import settings
from taskmanager.core.database import engine
from taskmanager.core.logging import configure_logging
from taskmanager.core.middleware import RequestLoggingMiddleware

configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    logger.info("Starting Task Management API", env=settings.app_env)
    yield
    logger.info("Shutting down Task Management API")
    await engine.dispose()


app = FastAPI(
    title="Task Management API",
    description="Task management with users, categories, statistics and a task lifecycle",
    version=settings.app_version,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
    # Trailing slash redirects (307/308) drop the Authorization header behind proxies
    redirect_slashes=False,
)

# ── Middleware ─────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


# ── Error Handlers ────────────────────────────────
def _format_validation_error(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path"))
    message = error.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and query values are client errors (400)."""
    messages = [_format_validation_error(error) for error in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={"detail": "; ".join(messages) or "Invalid request"},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled error", method=request.method, path=request.url.path, error=str(exc)
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# ── System ────────────────────────────────────────
@app.get("/api/health", tags=["system"])
async def health_check():
    """Liveness probe: healthy while the process is running."""
    return {"status": "healthy", "version": settings.app_version, "environment": settings.app_env}


@app.get("/api", tags=["system"])
async def api_index():
    """List the resource endpoints."""
    return {
        "message": "Task Management API",
        "version": settings.app_version,
        "endpoints": {
            "users": "/api/users",
            "tasks": "/api/tasks",
            "categories": "/api/categories",
            "health": "/api/health",
            "docs": "/api/docs",
        },
    }


# ── API Routes ────────────────────────────────────
from taskmanager.api.routes import categories, tasks, users  # noqa: E402

app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(tasks.router, prefix="/api/tasks", tags=["tasks"])
app.include_router(categories.router, prefix="/api/categories", tags=["categories"])
