"""FastAPI application entry point."""

import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mealplanner.config import get_settings
from mealplanner.ingest.errors import ImportPipelineError
from mealplanner.ingest.extractors.claude import ClaudeRecipeExtractor
from mealplanner.ingest.fetcher import PageFetcher
from mealplanner.ingest.pipeline import RecipeImportPipeline
from mealplanner.logging_config import LoggingContext, configure_logging, get_logger
from mealplanner.normalize.units import get_unit_table
from mealplanner.routers import recipes_router, units_router

settings = get_settings()

# Configure logging on module load
configure_logging(
    settings.log_level,
    json_format=settings.log_format.lower() == "json" or not settings.is_development,
    log_file=settings.log_file,
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    # Startup
    logger.info("Starting Mealplanner API")

    table = get_unit_table()
    logger.info(f"Unit table loaded: {len(table.definitions)} units")

    app.state.import_pipeline = RecipeImportPipeline(PageFetcher(), ClaudeRecipeExtractor())
    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY is not set; recipe extraction will fail")

    yield

    # Shutdown
    logger.info("Shutting down Mealplanner API")

    pipeline = getattr(app.state, "import_pipeline", None)
    if pipeline is not None:
        try:
            await pipeline.close()
        except Exception as e:
            logger.warning(f"Error closing import pipeline clients: {e}")


app = FastAPI(
    title="Mealplanner API",
    description="Recipe import with metric unit normalization",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Tag every log line of a request with its request id."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
    with LoggingContext(request_id=request_id):
        response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(ImportPipelineError)
async def import_error_handler(request: Request, exc: ImportPipelineError) -> JSONResponse:
    """Render pipeline failures as {"error": message}."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"{request.method} {request.url.path} failed ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reject malformed request bodies with the same error envelope."""
    logger.warning(f"{request.method} {request.url.path} rejected: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render anything else as a 500 with the same error envelope."""
    logger.exception(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Include routers
app.include_router(recipes_router)
app.include_router(units_router)


@app.get("/health")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {"status": "ok", "service": "mealplanner-api"}


@app.get("/")
async def root() -> dict:
    """Root endpoint with API information."""
    return {
        "name": "Mealplanner API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
