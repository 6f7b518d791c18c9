"""
Pipeline stages, in execution order.
"""
from autoshorts.pipeline.stages.base import Stage
from autoshorts.pipeline.stages.trend_source import TrendBatch, TrendRequest, TrendSource
from autoshorts.pipeline.stages.signal_extractor import SignalExtractor
from autoshorts.pipeline.stages.candidate_generator import CandidateGenerator
from autoshorts.pipeline.stages.weight_engine import WeightEngine, WeightEngineInput, select_winner
from autoshorts.pipeline.stages.prompt_composer import PromptComposer
from autoshorts.pipeline.stages.video_renderer import VideoRenderer
from autoshorts.pipeline.stages.segment_stitcher import SegmentStitcher
from autoshorts.pipeline.stages.upload_scheduler import UploadRequest, UploadScheduler

__all__ = [
    "Stage",
    "TrendBatch",
    "TrendRequest",
    "TrendSource",
    "SignalExtractor",
    "CandidateGenerator",
    "WeightEngine",
    "WeightEngineInput",
    "select_winner",
    "PromptComposer",
    "VideoRenderer",
    "SegmentStitcher",
    "UploadRequest",
    "UploadScheduler",
]
