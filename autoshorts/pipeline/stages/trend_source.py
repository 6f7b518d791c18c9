"""
Trend source stage - performance records for a channel.

Live data comes from the platform's search API. Mock data is used when
the caller forces it, when the channel has no credentials, or when the
live fetch yields nothing / fails in transport. That choice is made in
exactly one place (run) and is always logged with its reason.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field

from autoshorts.core.config import Settings, get_search_keywords
from autoshorts.core.logging import get_logger
from autoshorts.pipeline.mock_data import get_mock_records
from autoshorts.pipeline.models import ChannelConfig, PerformanceRecord, parse_timestamp
from autoshorts.pipeline.stages.base import Stage
from autoshorts.platforms.base import PlatformAPIError, VideoPlatformClient

logger = get_logger("stages.trend_source")

# growth rate used when a video carries no publish time
NEUTRAL_GROWTH_RATE = 1.0


class TrendUnavailable(Exception):
    """Live trend data could not be obtained; triggers the mock fallback."""


@dataclass
class TrendRequest:
    channel: ChannelConfig
    force_mock: bool = False


class TrendBatch(BaseModel):
    """Records plus where they came from."""
    records: List[PerformanceRecord]
    source: str = Field(..., pattern=r"^(live|mock)$")
    fallback_reason: Optional[str] = None


def compute_growth_rate(view_count: int, published_at: Optional[str], now: datetime) -> float:
    """log10(1 + views per hour since publish); never negative."""
    if not published_at:
        return NEUTRAL_GROWTH_RATE
    try:
        published = parse_timestamp(published_at)
    except ValueError:
        return NEUTRAL_GROWTH_RATE
    hours = max((now - published).total_seconds() / 3600.0, 1.0)
    return round(math.log10(1.0 + max(view_count, 0) / hours), 3)


def to_performance_record(item: Dict[str, Any], region: str, now: datetime) -> PerformanceRecord:
    """Map a platform video resource to a PerformanceRecord."""
    snippet = item.get("snippet", {}) or {}
    statistics = item.get("statistics", {}) or {}
    try:
        view_count = max(int(statistics.get("viewCount", 0)), 0)
    except (TypeError, ValueError):
        view_count = 0
    published_at = snippet.get("publishedAt")
    return PerformanceRecord(
        id=item.get("id") or "unknown",
        title=snippet.get("title") or "Unknown Title",
        hashtags=list(snippet.get("tags") or []),
        view_count=view_count,
        region=region,
        view_growth_rate=compute_growth_rate(view_count, published_at, now),
        published_at=published_at,
    )


class TrendSource(Stage[TrendRequest, TrendBatch]):
    """Fetches or mocks raw performance records. Never raises for missing data."""

    def __init__(
        self,
        settings: Settings,
        platform: Optional[VideoPlatformClient] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._settings = settings
        self._platform = platform
        self._clock = clock

    @property
    def stage_type(self) -> str:
        return "trend_source"

    @property
    def description(self) -> str:
        return "Fetches trending short-form videos for the channel, or sample data."

    async def fetch(self, channel: ChannelConfig, force_mock: bool = False) -> List[PerformanceRecord]:
        batch = await self.run(TrendRequest(channel=channel, force_mock=force_mock))
        return batch.records

    async def run(self, data: TrendRequest) -> TrendBatch:
        reason = self._mock_reason(data)
        records: List[PerformanceRecord] = []

        if reason is None:
            try:
                records = await self._fetch_live(data.channel)
            except TrendUnavailable as e:
                reason = str(e)

        if reason is not None:
            logger.warning(f"Using mock trend data for channel {data.channel.id}: {reason}")
            return TrendBatch(records=get_mock_records(), source="mock", fallback_reason=reason)

        logger.info(f"Fetched {len(records)} live trend records for channel {data.channel.id}")
        return TrendBatch(records=records, source="live")

    def _mock_reason(self, data: TrendRequest) -> Optional[str]:
        if data.force_mock:
            return "mock data forced by caller"
        if self._platform is None:
            return "no platform client configured"
        if data.channel.auth is None:
            return "channel has no platform credentials"
        return None

    async def _fetch_live(self, channel: ChannelConfig) -> List[PerformanceRecord]:
        region = channel.region_code or self._settings.trend_default_region
        keyword = get_search_keywords(channel.search_keywords, channel.niche)[0]
        try:
            items = await self._platform.search_trending(
                query=keyword,
                region_code=region,
                max_results=self._settings.trend_max_results,
                credentials=channel.auth,
            )
        except (PlatformAPIError, httpx.HTTPError) as e:
            raise TrendUnavailable(f"trend fetch failed: {e}") from e

        if not items:
            raise TrendUnavailable(f"no results for '{keyword}' in {region}")

        now = self._clock()
        return [to_performance_record(item, region, now) for item in items]
