"""
Upload scheduler stage - publish now or upload with deferred visibility.

Per call:
    asset not generated          -> InvalidInputError (no network call)
    schedule inactive / absent   -> immediate upload, status "uploaded"
    schedule active              -> upload held until publish_at,
                                    status "scheduled", scheduled_for
                                    echoes publish_at exactly
    platform rejection/transport -> UploadFailedError with the platform text
"""
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

import httpx

from autoshorts.core.errors import InvalidInputError, UploadFailedError
from autoshorts.core.logging import get_logger
from autoshorts.pipeline.models import (
    PlatformCredentials,
    PromptOutput,
    ScheduleConfig,
    UploadResult,
    UploadStatus,
    VideoAsset,
    VideoStatus,
    parse_timestamp,
    utc_now_iso,
)
from autoshorts.pipeline.stages.base import Stage
from autoshorts.platforms.base import PlatformAPIError, PublishRequest, VideoPlatformClient

logger = get_logger("stages.upload_scheduler")

_HASHTAG_RE = re.compile(r"#(\w+)")
MAX_TAGS = 15


@dataclass
class UploadRequest:
    video: VideoAsset
    metadata: PromptOutput
    schedule: Optional[ScheduleConfig]
    credentials: Optional[PlatformCredentials]


def extract_tags(text: str) -> List[str]:
    """Hashtags in a description, without '#', de-duplicated in order."""
    tags: List[str] = []
    for tag in _HASHTAG_RE.findall(text or ""):
        if tag not in tags:
            tags.append(tag)
    return tags[:MAX_TAGS]


class UploadScheduler(Stage[UploadRequest, UploadResult]):
    """One platform call per invocation; never retries."""

    def __init__(
        self,
        platform: VideoPlatformClient,
        category_id: str = "22",
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._platform = platform
        self._category_id = category_id
        self._clock = clock

    @property
    def stage_type(self) -> str:
        return "upload_scheduler"

    async def publish(
        self,
        video: VideoAsset,
        metadata: PromptOutput,
        schedule: Optional[ScheduleConfig],
        credentials: Optional[PlatformCredentials],
    ) -> UploadResult:
        return await self.run(UploadRequest(video, metadata, schedule, credentials))

    async def run(self, data: UploadRequest) -> UploadResult:
        if data.video.status != VideoStatus.GENERATED or not data.video.payload:
            raise InvalidInputError(
                f"Invalid video asset: status is '{data.video.status.value}', expected 'generated'."
            )
        if data.credentials is None:
            raise InvalidInputError("Platform credentials are required to upload.")

        schedule = data.schedule or ScheduleConfig()
        publish_at = self._validated_publish_at(schedule) if schedule.active else None

        request = PublishRequest(
            title=data.metadata.title_template,
            description=data.metadata.description_template,
            privacy_status=schedule.privacy_status,
            publish_at=publish_at,
            tags=extract_tags(data.metadata.description_template),
            category_id=self._category_id,
            mime_type=data.video.mime_type,
        )

        try:
            remote = await self._platform.upload(data.video.payload, request, data.credentials)
        except PlatformAPIError as e:
            logger.error(f"Upload rejected by {self._platform.platform_name}: {e}")
            raise UploadFailedError(str(e)) from e
        except httpx.HTTPError as e:
            logger.error(f"Upload transport error: {e}")
            raise UploadFailedError(f"{self._platform.platform_name} upload failed: {e}") from e

        if publish_at:
            logger.info(f"Uploaded {remote.remote_id}, scheduled for {publish_at}")
            return UploadResult(
                platform=self._platform.platform_name,
                video_id=remote.remote_id,
                platform_url=remote.remote_url,
                status=UploadStatus.SCHEDULED,
                scheduled_for=publish_at,
                uploaded_at=utc_now_iso(),
            )

        logger.info(f"Uploaded {remote.remote_id} ({schedule.privacy_status.value})")
        return UploadResult(
            platform=self._platform.platform_name,
            video_id=remote.remote_id,
            platform_url=remote.remote_url,
            status=UploadStatus.UPLOADED,
            uploaded_at=utc_now_iso(),
        )

    def _validated_publish_at(self, schedule: ScheduleConfig) -> str:
        """The requested publish_at, unchanged, once it is known to be usable."""
        if not schedule.publish_at:
            raise InvalidInputError("Scheduled publish requires publish_at.")
        try:
            when = parse_timestamp(schedule.publish_at)
        except ValueError as e:
            raise InvalidInputError(f"publish_at is not a valid timestamp: {schedule.publish_at}") from e
        if when < self._clock():
            raise InvalidInputError(f"publish_at {schedule.publish_at} is in the past.")
        return schedule.publish_at
