"""
Pipeline Celery tasks.

run_channel_pipeline runs one full pipeline for a serialized channel.
autopilot_tick fires every minute and dispatches the channels whose
autopilot schedule matches the current minute.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import yaml
from pydantic import ValidationError

from autoshorts.celery_app import celery_app
from autoshorts.core.config import get_settings
from autoshorts.core.logging import get_logger
from autoshorts.pipeline.graph import run_pipeline
from autoshorts.pipeline.models import ChannelConfig

logger = get_logger("tasks.pipeline")


def run_async(coro):
    """Helper to run async code in sync context."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def load_channels(path: str) -> List[ChannelConfig]:
    """
    Read channel configurations from a YAML file.

    The file holds either a list of channels or a mapping with a
    `channels` list. Invalid entries are logged and skipped.
    """
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or []

    entries = data.get("channels", []) if isinstance(data, dict) else data
    channels = []
    for index, entry in enumerate(entries or []):
        try:
            channels.append(ChannelConfig.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Skipping invalid channel entry #{index} in {path}: {e.error_count()} error(s)")
    return channels


def weekday_sunday_first(moment: datetime) -> int:
    """0=Sunday ... 6=Saturday."""
    return (moment.weekday() + 1) % 7


class AutopilotScheduler:
    """
    Decides which channels are due on a tick.

    A channel is due when its autopilot is enabled, today is one of its
    active days, its HH:MM equals the current minute, and it was not
    dispatched within the cooldown. Dispatch times live in this process
    only.
    """

    def __init__(
        self,
        cooldown_minutes: int = 50,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.cooldown = timedelta(minutes=cooldown_minutes)
        self._clock = clock
        self._last_dispatch: Dict[str, datetime] = {}

    def is_due(self, channel: ChannelConfig, now: Optional[datetime] = None) -> bool:
        now = now or self._clock()
        autopilot = channel.autopilot
        if not autopilot.enabled:
            return False
        if weekday_sunday_first(now) not in autopilot.active_days:
            return False
        if now.strftime("%H:%M") != autopilot.time:
            return False
        last = self._last_dispatch.get(channel.id)
        return last is None or now - last > self.cooldown

    def due_channels(self, channels: List[ChannelConfig], now: Optional[datetime] = None) -> List[ChannelConfig]:
        now = now or self._clock()
        return [channel for channel in channels if self.is_due(channel, now)]

    def mark_dispatched(self, channel_id: str, now: Optional[datetime] = None):
        self._last_dispatch[channel_id] = now or self._clock()


_scheduler: Optional[AutopilotScheduler] = None


def get_autopilot_scheduler() -> AutopilotScheduler:
    """Process-wide scheduler (one per beat/worker process)."""
    global _scheduler
    if _scheduler is None:
        _scheduler = AutopilotScheduler(cooldown_minutes=get_settings().autopilot_cooldown_minutes)
    return _scheduler


@celery_app.task(bind=True, name="run_channel_pipeline")
def run_channel_pipeline_task(self, channel_data: Dict[str, Any], force_mock: bool = False) -> Dict[str, Any]:
    """
    Run the full pipeline for one channel.

    Returns the PipelineResult as a dict; stage failures are reported in
    it rather than raised.
    """
    channel = ChannelConfig.model_validate(channel_data)
    logger.info(f"=== Celery Task: pipeline for channel {channel.id} ===")

    self.update_state(state="PROCESSING", meta={"channel_id": channel.id})

    result = run_async(run_pipeline(channel, force_mock=force_mock, settings=get_settings()))
    if result.success:
        logger.info(f"Channel {channel.id} published: {result.upload_id}")
    else:
        logger.warning(f"Channel {channel.id} failed at {result.failed_stage}: {result.error}")
    return result.model_dump(mode="json")


@celery_app.task(name="autopilot_tick")
def autopilot_tick() -> Dict[str, Any]:
    """Dispatch every channel whose autopilot schedule is due now."""
    settings = get_settings()
    now = datetime.now(timezone.utc)

    try:
        channels = load_channels(settings.channels_file)
    except FileNotFoundError:
        logger.debug(f"No channels file at {settings.channels_file}")
        return {"checked": 0, "dispatched": []}

    scheduler = get_autopilot_scheduler()

    dispatched = []
    for channel in scheduler.due_channels(channels, now):
        run_channel_pipeline_task.delay(channel.model_dump(mode="json"), False)
        scheduler.mark_dispatched(channel.id, now)
        dispatched.append(channel.id)
        logger.info(f"Autopilot dispatched channel {channel.id} ({channel.autopilot.time})")

    return {"checked": len(channels), "dispatched": dispatched}
