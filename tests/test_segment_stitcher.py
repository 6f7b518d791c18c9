"""
Tests for segment concatenation staging and cleanup.
"""
import asyncio
import os
import time

import pytest

from autoshorts.core.errors import ExternalProcessError, InvalidInputError
from autoshorts.pipeline.models import VideoAsset, VideoStatus
from autoshorts.pipeline.stages.segment_stitcher import SegmentStitcher
from autoshorts.utils.ffmpeg import read_concat_manifest


def concat_by_reading_manifest(manifest_path: str, output_path: str):
    """Joins the listed files byte-wise, standing in for ffmpeg."""
    with open(output_path, "wb") as out:
        for path in read_concat_manifest(manifest_path):
            with open(path, "rb") as handle:
                out.write(handle.read())


def failing_concat(manifest_path: str, output_path: str):
    with open(output_path, "wb") as out:
        out.write(b"partial")
    raise ExternalProcessError("ffmpeg concat failed: Invalid data found when processing input", 1,
                               "Invalid data found when processing input")


@pytest.fixture
def work_dir(tmp_path):
    path = tmp_path / "stitch"
    path.mkdir()
    return path


class TestSegmentStitcher:

    def test_fewer_than_two_segments_rejected(self, work_dir):
        stitcher = SegmentStitcher(work_dir=str(work_dir), concat_runner=concat_by_reading_manifest)
        with pytest.raises(InvalidInputError):
            asyncio.run(stitcher.stitch([b"only-one"]))
        with pytest.raises(InvalidInputError):
            asyncio.run(stitcher.stitch([]))

    def test_success_preserves_order_and_cleans_up(self, work_dir):
        stitcher = SegmentStitcher(work_dir=str(work_dir), concat_runner=concat_by_reading_manifest)
        before = sorted(os.listdir(work_dir))

        merged = asyncio.run(stitcher.stitch([b"AAA", b"BBB", b"CCC"]))

        assert merged == b"AAABBBCCC"
        assert sorted(os.listdir(work_dir)) == before

    def test_duplicate_segments_are_kept(self, work_dir):
        stitcher = SegmentStitcher(work_dir=str(work_dir), concat_runner=concat_by_reading_manifest)
        assert asyncio.run(stitcher.stitch([b"X", b"X"])) == b"XX"

    def test_failure_surfaces_process_message_and_cleans_up(self, work_dir):
        stitcher = SegmentStitcher(work_dir=str(work_dir), concat_runner=failing_concat)

        with pytest.raises(ExternalProcessError) as exc_info:
            asyncio.run(stitcher.stitch([b"AAA", b"BBB"]))

        assert "Invalid data found" in str(exc_info.value)
        assert exc_info.value.returncode == 1
        assert os.listdir(work_dir) == []

    def test_unexpected_runner_error_is_wrapped(self, work_dir):
        def broken(manifest_path, output_path):
            raise OSError("disk full")

        stitcher = SegmentStitcher(work_dir=str(work_dir), concat_runner=broken)

        with pytest.raises(ExternalProcessError, match="disk full"):
            asyncio.run(stitcher.stitch([b"A", b"B"]))
        assert os.listdir(work_dir) == []

    def test_missing_output_is_an_error(self, work_dir):
        stitcher = SegmentStitcher(work_dir=str(work_dir), concat_runner=lambda manifest, output: None)

        with pytest.raises(ExternalProcessError, match="no output"):
            asyncio.run(stitcher.stitch([b"A", b"B"]))
        assert os.listdir(work_dir) == []

    def test_concurrent_calls_do_not_collide(self, work_dir):
        stitcher = SegmentStitcher(work_dir=str(work_dir), concat_runner=concat_by_reading_manifest)

        async def both():
            return await asyncio.gather(
                stitcher.stitch([b"1", b"2"]),
                stitcher.stitch([b"3", b"4"]),
            )

        assert asyncio.run(both()) == [b"12", b"34"]
        assert os.listdir(work_dir) == []

    def test_cleanup_failure_does_not_mask_result(self, work_dir, monkeypatch):
        stitcher = SegmentStitcher(work_dir=str(work_dir), concat_runner=concat_by_reading_manifest)

        def refuse(path):
            raise PermissionError("read-only")

        monkeypatch.setattr("autoshorts.pipeline.stages.segment_stitcher.os.remove", refuse)

        assert asyncio.run(stitcher.stitch([b"A", b"B"])) == b"AB"

    def test_run_on_assets(self, work_dir):
        stitcher = SegmentStitcher(work_dir=str(work_dir), concat_runner=concat_by_reading_manifest)
        segments = [VideoAsset(candidate_id="c1", payload=b"one"), VideoAsset(candidate_id="c1", payload=b"two")]

        merged = asyncio.run(stitcher.run(segments))

        assert merged.payload == b"onetwo"
        assert merged.segment_count == 2
        assert merged.status == VideoStatus.GENERATED

    def test_run_rejects_failed_segment(self, work_dir):
        stitcher = SegmentStitcher(work_dir=str(work_dir), concat_runner=concat_by_reading_manifest)
        segments = [
            VideoAsset(candidate_id="c1", payload=b"one"),
            VideoAsset(candidate_id="c1", status=VideoStatus.FAILED),
        ]
        with pytest.raises(InvalidInputError):
            asyncio.run(stitcher.run(segments))

    def test_cancel_during_concat_waits_and_cleans_up(self, work_dir):
        runner_done = []

        def slow_concat(manifest_path: str, output_path: str):
            time.sleep(0.4)
            concat_by_reading_manifest(manifest_path, output_path)
            runner_done.append(output_path)

        stitcher = SegmentStitcher(work_dir=str(work_dir), concat_runner=slow_concat)

        async def cancel_midway():
            task = asyncio.ensure_future(stitcher.stitch([b"A", b"B"]))
            await asyncio.sleep(0.1)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(cancel_midway())

        assert len(runner_done) == 1
        assert os.listdir(work_dir) == []
