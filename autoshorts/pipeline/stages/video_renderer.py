"""
Video renderer stage - production prompt to rendered video.

A render is a remote long-running job. The wait is an explicit loop of
asyncio.sleep calls, so cancelling the surrounding task cancels the wait,
and the bound (interval x max_attempts) is a constructor parameter.
"""
import asyncio
from typing import Any, Dict, List, Optional

from autoshorts.core.errors import GenerationError, InvalidInputError, RenderTimeoutError
from autoshorts.core.logging import get_logger
from autoshorts.pipeline.models import PromptOutput, VideoAsset, VideoStatus, utc_now_iso
from autoshorts.pipeline.prompts import build_segment_prompt
from autoshorts.pipeline.stages.base import Stage
from autoshorts.video.base import VideoBackend

logger = get_logger("stages.video_renderer")


class VideoRenderer(Stage[PromptOutput, VideoAsset]):
    """Submits a render job, polls it, downloads the result."""

    def __init__(
        self,
        backend: VideoBackend,
        poll_interval: float = 10.0,
        max_attempts: int = 30,
        initial_delay: float = 0.0,
        options: Optional[Dict[str, Any]] = None,
    ):
        """
        Args:
            backend: Video generation backend
            poll_interval: Seconds between polls
            max_attempts: Polls before giving up with RenderTimeoutError
            initial_delay: Seconds to wait before the first poll
            options: Job options passed through to the backend
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._backend = backend
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self._options = dict(options or {})

    @property
    def stage_type(self) -> str:
        return "video_renderer"

    async def render(self, prompt: PromptOutput) -> VideoAsset:
        return await self.run(prompt)

    async def run(self, data: PromptOutput) -> VideoAsset:
        self._validate(data)
        payload, uri = await self._render_one(data.prompt)
        return VideoAsset(
            candidate_id=data.candidate_id,
            payload=payload,
            status=VideoStatus.GENERATED,
            generated_at=utc_now_iso(),
            source_uri=uri,
        )

    async def render_segments(self, data: PromptOutput, count: int) -> List[VideoAsset]:
        """
        Render `count` parts of one continuous video, in order.

        Each part's prompt carries its position and a continuity note.
        """
        self._validate(data)
        if count < 1:
            raise InvalidInputError("segment count must be at least 1")

        segments = []
        for part in range(1, count + 1):
            logger.info(f"Rendering segment {part}/{count} for '{data.candidate_id}'")
            payload, uri = await self._render_one(build_segment_prompt(data.prompt, part, count))
            segments.append(VideoAsset(
                candidate_id=data.candidate_id,
                payload=payload,
                status=VideoStatus.GENERATED,
                generated_at=utc_now_iso(),
                source_uri=uri,
            ))
        return segments

    def _validate(self, data: PromptOutput) -> None:
        if not data.prompt or not data.prompt.strip():
            raise InvalidInputError("Prompt text is empty.")
        if data.candidate_reference is None:
            raise InvalidInputError("Prompt has no candidate reference.")

    async def _render_one(self, prompt: str):
        job = await self._backend.submit_video_job(prompt, self._options)
        logger.info(f"Submitted render job {job.job_id}")

        if self.initial_delay > 0:
            await asyncio.sleep(self.initial_delay)

        for attempt in range(1, self.max_attempts + 1):
            status = await self._backend.poll_video_job(job)
            if status.error:
                raise GenerationError(f"Render job {job.job_id} failed: {status.error}")
            if status.done:
                if not status.result_uri:
                    raise GenerationError(f"Render job {job.job_id} finished without a video")
                logger.info(f"Render job {job.job_id} done after {attempt} poll(s)")
                payload = await self._backend.download_video(status.result_uri)
                if not payload:
                    raise GenerationError(f"Render job {job.job_id} returned an empty video")
                return payload, status.result_uri
            if attempt < self.max_attempts:
                await asyncio.sleep(self.poll_interval)

        raise RenderTimeoutError(
            f"Render job {job.job_id} not finished after {self.max_attempts} polls "
            f"({self.poll_interval}s interval)",
            attempts=self.max_attempts,
            job_id=job.job_id,
        )
