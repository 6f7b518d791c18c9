"""
Fixed sample data used when live trend data is unavailable.
"""
from typing import List

from autoshorts.pipeline.models import ChannelState, PerformanceRecord


MOCK_SHORTS_DATA: List[PerformanceRecord] = [
    PerformanceRecord(
        id="v1",
        title="I crushed a diamond with a hydraulic press!",
        hashtags=["#satisfying", "#science", "#destruction"],
        view_count=5000000,
        region="US",
        view_growth_rate=1.5,
    ),
    PerformanceRecord(
        id="v2",
        title="POV: You forgot your homework",
        hashtags=["#relatable", "#school", "#comedy"],
        view_count=2000000,
        region="US",
        view_growth_rate=0.8,
    ),
    PerformanceRecord(
        id="v3",
        title="Cooking a steak in a toaster",
        hashtags=["#cooking", "#lifehack", "#fail"],
        view_count=3500000,
        region="UK",
        view_growth_rate=2.1,
    ),
    PerformanceRecord(
        id="v4",
        title="My dog reacts to invisible wall",
        hashtags=["#dog", "#reaction", "#funny"],
        view_count=1500000,
        region="US",
        view_growth_rate=0.5,
    ),
]


MOCK_CHANNEL_STATE = ChannelState(
    niche="General Entertainment / Experiments",
    avg_views=100000,
    target_audience="Gen Z 18-24",
)


def get_mock_records() -> List[PerformanceRecord]:
    """Fresh copies so callers can never mutate the shared sample."""
    return [record.model_copy(deep=True) for record in MOCK_SHORTS_DATA]
