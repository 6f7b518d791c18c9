"""
Segment stitcher stage - joins rendered segments into one video.

Each call stages its segments as uniquely named files in the work
directory, writes an ordered concat manifest, runs the concatenation in
a worker thread and reads the merged file back. Every file it created is
removed before it returns, whether the concatenation succeeded or not.
"""
import asyncio
import os
import uuid
from functools import partial
from typing import Callable, List, Optional, Sequence

from autoshorts.core.errors import ExternalProcessError, InvalidInputError
from autoshorts.core.logging import get_logger
from autoshorts.pipeline.models import VideoAsset, VideoStatus, utc_now_iso
from autoshorts.pipeline.stages.base import Stage
from autoshorts.utils.ffmpeg import concat_videos, write_concat_manifest

logger = get_logger("stages.segment_stitcher")

# (manifest_path, output_path) -> None; must leave the merged file at output_path
ConcatRunner = Callable[[str, str], object]


class SegmentStitcher(Stage[List[VideoAsset], VideoAsset]):
    """Lossless stream-copy concatenation of two or more segments."""

    def __init__(
        self,
        work_dir: str = "/tmp/autoshorts",
        concat_runner: Optional[ConcatRunner] = None,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: Optional[str] = "ffprobe",
        timeout: float = 300.0,
    ):
        self.work_dir = work_dir
        self._concat_runner = concat_runner or partial(
            concat_videos,
            ffmpeg_path=ffmpeg_path,
            ffprobe_path=ffprobe_path,
            timeout=timeout,
        )

    @property
    def stage_type(self) -> str:
        return "segment_stitcher"

    async def run(self, data: List[VideoAsset]) -> VideoAsset:
        if len(data) < 2:
            raise InvalidInputError(f"At least two segments are required to stitch, got {len(data)}.")
        for index, segment in enumerate(data):
            if segment.status != VideoStatus.GENERATED:
                raise InvalidInputError(f"Segment {index} is not a generated video.")

        merged = await self.stitch([segment.payload for segment in data])
        return VideoAsset(
            candidate_id=data[0].candidate_id,
            payload=merged,
            mime_type=data[0].mime_type,
            status=VideoStatus.GENERATED,
            generated_at=utc_now_iso(),
            segment_count=len(data),
        )

    async def stitch(self, segments: Sequence[bytes]) -> bytes:
        """
        Concatenate segment payloads in the given order.

        Raises:
            InvalidInputError: fewer than two segments, or an empty one
            ExternalProcessError: the concatenation failed
        """
        if len(segments) < 2:
            raise InvalidInputError(f"At least two segments are required to stitch, got {len(segments)}.")
        for index, payload in enumerate(segments):
            if not payload:
                raise InvalidInputError(f"Segment {index} is empty.")

        os.makedirs(self.work_dir, exist_ok=True)
        call_id = uuid.uuid4().hex
        created: List[str] = []

        try:
            segment_paths = []
            for index, payload in enumerate(segments):
                path = os.path.join(self.work_dir, f"{call_id}_seg{index:02d}.mp4")
                created.append(path)
                with open(path, "wb") as handle:
                    handle.write(payload)
                segment_paths.append(path)

            manifest_path = os.path.join(self.work_dir, f"{call_id}_list.txt")
            created.append(manifest_path)
            write_concat_manifest(manifest_path, segment_paths)

            output_path = os.path.join(self.work_dir, f"{call_id}_merged.mp4")
            created.append(output_path)

            logger.info(f"Stitching {len(segment_paths)} segments ({call_id})")
            loop = asyncio.get_running_loop()
            future = loop.run_in_executor(None, self._concat_runner, manifest_path, output_path)
            try:
                await asyncio.shield(future)
            except asyncio.CancelledError:
                # the worker thread cannot be interrupted; cleanup must wait for it
                logger.warning(f"Stitch {call_id} cancelled, waiting for concatenation to exit")
                await asyncio.wait([future])
                if future.exception() is not None:
                    logger.warning(f"Cancelled concatenation {call_id} failed: {future.exception()}")
                raise
            except ExternalProcessError:
                raise
            except Exception as e:
                raise ExternalProcessError(f"Concatenation failed: {e}") from e

            if not os.path.exists(output_path) or os.path.getsize(output_path) == 0:
                raise ExternalProcessError("Concatenation produced no output file")

            with open(output_path, "rb") as handle:
                merged = handle.read()

            logger.info(f"Stitched {len(segment_paths)} segments into {len(merged)} bytes ({call_id})")
            return merged
        finally:
            self._cleanup(created)

    def _cleanup(self, paths: List[str]) -> None:
        for path in paths:
            try:
                if os.path.exists(path):
                    os.remove(path)
            except OSError as e:
                logger.warning(f"Failed to remove temporary file {path}: {e}")
