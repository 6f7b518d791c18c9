"""
AutoShorts FastAPI application.

API Structure (v1):
- /v1/health - Service health
- /v1/pipeline/run - Run the full pipeline for a channel and wait
- /v1/pipeline/enqueue - Run it on the background worker
- /v1/pipeline/tasks/{task_id} - Background run status
- /v1/stitch - Merge rendered segments
"""
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from autoshorts.api.routes import router as pipeline_router
from autoshorts.core.config import get_settings
from autoshorts.core.errors import AutoShortsError, InvalidInputError, PreconditionViolationError
from autoshorts.core.logging import get_logger, setup_logging

settings = get_settings()
setup_logging(settings.log_level)
logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    logger.info("Starting AutoShorts service")
    logger.info(f"Temp directory: {settings.temp_dir}")
    logger.info(f"LLM: {settings.llm_provider} ({settings.openai_model})")
    logger.info(f"Video model: {settings.video_model}")
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set; generation calls will fail")
    if not settings.video_api_key:
        logger.warning("VIDEO_API_KEY is not set; render calls will fail")

    os.makedirs(settings.temp_dir, exist_ok=True)

    yield

    logger.info("Shutting down AutoShorts service")


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Trend-driven short-form video production pipeline",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(pipeline_router, prefix=settings.api_prefix)


@app.exception_handler(AutoShortsError)
async def autoshorts_error_handler(request: Request, exc: AutoShortsError):
    """Typed errors that escape a route become JSON bodies."""
    status_code = 400 if isinstance(exc, (InvalidInputError, PreconditionViolationError)) else 500
    logger.error(f"{request.method} {request.url.path} failed: {type(exc).__name__}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"error_type": type(exc).__name__, "detail": str(exc)},
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.version,
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
