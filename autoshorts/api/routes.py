"""
FastAPI routes for the AutoShorts service.
"""
from celery.result import AsyncResult
from fastapi import APIRouter, Depends, HTTPException

from autoshorts.api.schemas import (
    EnqueueResponse,
    HealthResponse,
    PipelineRunRequest,
    StitchRequest,
    StitchResponse,
    TaskStatusResponse,
)
from autoshorts.core.config import Settings, get_settings
from autoshorts.core.errors import ExternalProcessError, InvalidInputError
from autoshorts.core.logging import get_logger
from autoshorts.pipeline.graph import run_pipeline
from autoshorts.pipeline.models import PipelineResult
from autoshorts.pipeline.stages.segment_stitcher import SegmentStitcher
from autoshorts.utils.datauri import decode_data_url, encode_data_url

logger = get_logger("api.routes")

router = APIRouter()


def get_stitcher(settings: Settings = Depends(get_settings)) -> SegmentStitcher:
    """Stitcher wired from settings; overridable in tests."""
    return SegmentStitcher(
        work_dir=settings.temp_dir,
        ffmpeg_path=settings.ffmpeg_path,
        ffprobe_path=settings.ffprobe_path,
        timeout=settings.concat_timeout_sec,
    )


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_settings)):
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=settings.version,
        llm_provider=settings.llm_provider,
        video_model=settings.video_model,
    )


@router.post("/pipeline/run", response_model=PipelineResult)
async def run_channel_pipeline(
    request: PipelineRunRequest,
    settings: Settings = Depends(get_settings),
):
    """
    Run the whole pipeline for one channel and wait for it to finish.

    Stage failures are part of the response body (success=false, error,
    failed_stage, logs); they are not HTTP errors.
    """
    channel = request.channel_config
    logger.info(f"Pipeline run requested for channel {channel.id} (force_mock={request.force_mock})")
    return await run_pipeline(channel, force_mock=request.force_mock, settings=settings)


@router.post("/pipeline/enqueue", response_model=EnqueueResponse, status_code=202)
async def enqueue_channel_pipeline(request: PipelineRunRequest):
    """Hand the run to the background worker and return immediately."""
    from autoshorts.tasks.pipeline_tasks import run_channel_pipeline_task

    channel = request.channel_config
    task = run_channel_pipeline_task.delay(channel.model_dump(mode="json"), request.force_mock)
    logger.info(f"Queued pipeline for channel {channel.id}: task {task.id}")
    return EnqueueResponse(task_id=task.id, channel_id=channel.id)


@router.get("/pipeline/tasks/{task_id}", response_model=TaskStatusResponse)
async def get_task_status(task_id: str):
    """Celery state of a queued run, with its result when finished."""
    from autoshorts.celery_app import celery_app

    task = AsyncResult(task_id, app=celery_app)
    response = TaskStatusResponse(task_id=task_id, state=task.state)
    if task.state == "SUCCESS":
        response.result = task.result if isinstance(task.result, dict) else None
    elif task.state == "FAILURE":
        response.error = str(task.result)
    return response


@router.post("/stitch", response_model=StitchResponse)
async def stitch_segments(
    request: StitchRequest,
    stitcher: SegmentStitcher = Depends(get_stitcher),
):
    """
    Merge two or more video segments into one.

    Returns the merged video as a data URL. 400 for bad input, 500 with
    the concatenation error text when ffmpeg fails.
    """
    if len(request.segments) < 2:
        raise HTTPException(status_code=400, detail="At least 2 segments are required")

    try:
        decoded = [decode_data_url(segment) for segment in request.segments]
        merged = await stitcher.stitch([payload for payload, _ in decoded])
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ExternalProcessError as e:
        logger.error(f"Stitch failed: {e}")
        raise HTTPException(status_code=500, detail=f"FFmpeg merge failed: {e}")

    mime_type = decoded[0][1]
    return StitchResponse(
        success=True,
        merged_video_url=encode_data_url(merged, mime_type),
        segment_count=len(decoded),
    )
