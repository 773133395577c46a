"""Main FastAPI application for the portfolio analysis service."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import Settings
from .errors import ServiceError
from .routers import health, portfolio
from .security import OriginGateMiddleware
from .services.llm import AnalysisService
from .services.quotes import QuoteService

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            *([logging.FileHandler(settings.log_file)] if settings.log_file else [])
        ]
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    # Startup
    settings: Settings = app.state.settings
    logger.info(f"Starting AI portfolio service (model {settings.openai_model})")
    for name, present in settings.env_report().items():
        if isinstance(present, bool) and not present:
            logger.warning(f"{name} is not set")

    yield

    # Shutdown
    logger.info("Shutting down AI portfolio service")
    await app.state.quote_service.aclose()
    await app.state.analysis_service.aclose()
    logger.info("Outbound clients closed")


def _error(status_code: int, message) -> JSONResponse:
    return JSONResponse({"error": str(message)}, status_code=status_code)


def register_exception_handlers(app: FastAPI) -> None:
    """Normalize every failure into an ``{"error": str}`` body."""

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return _error(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _error(400, "Invalid request")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error(500, str(exc) or "Internal Server Error")


def create_app(
    settings: Optional[Settings] = None,
    quote_service: Optional[QuoteService] = None,
    analysis_service: Optional[AnalysisService] = None,
) -> FastAPI:
    """Build the application around one explicit ``Settings`` instance."""
    if settings is None:
        settings = Settings.from_env()

    app = FastAPI(
        title="AI Portfolio Analysis Service",
        description="Educational portfolio analysis backed by live quotes and an LLM",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.quote_service = quote_service or QuoteService(settings)
    app.state.analysis_service = analysis_service or AnalysisService(settings)

    # Last added runs first: the origin gate sits in front of CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins or ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(OriginGateMiddleware, allowed_origins=settings.allowed_origins)

    register_exception_handlers(app)

    # Include routers
    app.include_router(health.router)
    app.include_router(portfolio.router)

    return app


settings = Settings.from_env()
configure_logging(settings)

app = create_app(settings)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
