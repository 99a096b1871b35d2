"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from lookthrough import __version__
from lookthrough.config.settings import get_settings
from lookthrough.config.logging_config import setup_logging
from lookthrough.app_context import get_app_context, set_app_context
from lookthrough.api.routers import exposure_router, reference_router
from lookthrough.core.exceptions import AppError, NotFoundError


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler: one engine context per process."""
    # Startup
    setup_logging()
    context = get_app_context()
    yield
    # Shutdown
    context.close()
    set_app_context(None)


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Look-through exposure resolution for stock, ETF, mutual fund and cash holdings",
    version=__version__,
    lifespan=lifespan,
)

# Include routers
app.include_router(exposure_router)
app.include_router(reference_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    status_code = 404 if isinstance(exc, NotFoundError) else 400
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "message": exc.message},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": __version__,
        "docs": "/docs",
    }
