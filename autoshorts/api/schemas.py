"""
API Schemas (DTOs) for the HTTP surface.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from autoshorts.pipeline.models import ChannelConfig


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
    llm_provider: str
    video_model: str


class PipelineRunRequest(BaseModel):
    """Run the full pipeline for one channel."""
    channel_config: ChannelConfig
    force_mock: bool = False


class EnqueueResponse(BaseModel):
    task_id: str
    channel_id: str
    status: str = "queued"


class TaskStatusResponse(BaseModel):
    task_id: str
    state: str
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class StitchRequest(BaseModel):
    """Segments as data URLs (or bare base64), in playback order."""
    segments: List[str] = Field(default_factory=list)


class StitchResponse(BaseModel):
    success: bool
    merged_video_url: Optional[str] = None
    segment_count: int = 0
    error: Optional[str] = None
