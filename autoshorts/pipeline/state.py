"""
Pipeline state definition for LangGraph.
"""
import operator
from typing import Annotated, List, Optional, TypedDict

from autoshorts.pipeline.models import (
    CandidateTheme,
    ChannelConfig,
    PerformanceRecord,
    PromptOutput,
    ScoredCandidateBatch,
    TrendSignals,
    UploadResult,
    VideoAsset,
)


class PipelineState(TypedDict, total=False):
    """State carried between stage nodes of one run."""

    # Input
    channel: ChannelConfig
    force_mock: bool

    # Trend data
    records: List[PerformanceRecord]
    trend_source: str  # "live" or "mock"
    signals: TrendSignals

    # Planning
    candidates: List[CandidateTheme]
    batch: ScoredCandidateBatch
    winner: CandidateTheme
    prompt: PromptOutput

    # Production
    segments: List[VideoAsset]
    video: VideoAsset
    upload: UploadResult

    # Append-only user-facing trail, one line per stage
    logs: Annotated[List[str], operator.add]

    # Failure
    error: Optional[str]
    error_type: Optional[str]
    failed_stage: Optional[str]
