"""
Repository Provenance API

FastAPI application exposing the Vibe Code Index analysis pipeline.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from config import Settings, load_settings
from errors import AnalysisError, ConfigurationError, InvalidLocatorError
from logging_config import setup_logging
from provenance.pipeline import ProvenancePipeline
from provenance.schemas import AnalysisResult, AnalyzeRequest, ErrorResponse

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

# Browser clients call the function directly from the submission form
CORS_ALLOWED_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]
CORS_ALLOWED_METHODS = ["POST", "OPTIONS"]


def _load_pipeline(app: FastAPI) -> None:
    """Load settings once and build the pipeline, remembering a config failure."""
    try:
        settings = app.state.settings_loader()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.message}")
        app.state.config_error = e
        app.state.pipeline = None
        return
    app.state.config_error = None
    app.state.pipeline = app.state.pipeline_factory(settings)
    logger.info("Provenance pipeline ready")


def get_pipeline(app: FastAPI) -> ProvenancePipeline:
    """Return the app's pipeline, or raise the configuration error from startup."""
    if not hasattr(app.state, "pipeline"):
        # Lifespan did not run (e.g. TestClient used without a context manager)
        _load_pipeline(app)
    if app.state.config_error is not None:
        raise app.state.config_error
    return app.state.pipeline


def create_app(
    settings_loader: Callable[[], Settings] = load_settings,
    pipeline_factory: Callable[[Settings], ProvenancePipeline] = ProvenancePipeline,
    rate_limit: str | None = None,
) -> FastAPI:
    rate_limit = rate_limit or os.getenv("ANALYZE_RATE_LIMIT", "10/minute")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _load_pipeline(app)
        yield

    app = FastAPI(
        title="Repository Provenance API",
        description="Estimates how much of a GitHub repository was built with AI assistance",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings_loader = settings_loader
    app.state.pipeline_factory = pipeline_factory

    # Rate limiting
    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={"error": "rate_limited", "message": "Too many requests. Please try again later."},
        )

    @app.exception_handler(AnalysisError)
    async def analysis_error_handler(request: Request, exc: AnalysisError):
        if exc.status_code >= 500:
            logger.error(f"Analysis failed ({exc.code}): {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "invalid_request", "message": "Request body must be JSON with a githubUrl field"},
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=CORS_ALLOWED_METHODS,
        allow_headers=CORS_ALLOWED_HEADERS,
    )

    @app.get("/")
    def read_root():
        """Health check endpoint."""
        return {"status": "ok", "version": VERSION, "message": "Repository Provenance API"}

    @app.post(
        "/analyze-repo",
        response_model=AnalysisResult,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    @limiter.limit(rate_limit)
    async def analyze_repo(request: Request, body: AnalyzeRequest):
        """
        Analyze a GitHub repository for AI-assisted development patterns.

        Fetches README, manifest and recent commits, asks the inference
        service for a verdict and returns it normalized to the
        AnalysisResult shape.
        """
        pipeline = get_pipeline(request.app)

        if not body.github_url or not body.github_url.strip():
            raise InvalidLocatorError("GitHub URL is required", code="missing_url")

        return await pipeline.analyze(body.github_url)

    return app


setup_logging()
app = create_app()
