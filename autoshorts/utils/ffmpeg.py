"""
FFmpeg utilities for segment concatenation.
"""
import json
import subprocess
from typing import Any, Dict, List, Optional, Sequence

from autoshorts.core.errors import ExternalProcessError
from autoshorts.core.logging import get_logger

logger = get_logger("ffmpeg")

# Fields that must agree across inputs for stream-copy concatenation
COMPATIBILITY_FIELDS = ("codec", "width", "height", "pix_fmt", "has_audio", "audio_codec")


def _stderr_text(stderr: Any) -> str:
    if stderr is None:
        return ""
    if isinstance(stderr, bytes):
        return stderr.decode("utf-8", errors="replace").strip()
    return str(stderr).strip()


def get_video_metadata(
    video_path: str,
    ffprobe_path: str = "ffprobe",
    timeout: Optional[float] = 60.0,
) -> Dict[str, Any]:
    """Extract stream parameters relevant to concatenation using ffprobe."""
    cmd = [
        ffprobe_path,
        "-v", "error",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        video_path
    ]

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=True, timeout=timeout)
    except FileNotFoundError as e:
        raise ExternalProcessError(f"ffprobe not found: {ffprobe_path}") from e
    except subprocess.TimeoutExpired as e:
        raise ExternalProcessError(f"ffprobe timed out after {timeout}s on {video_path}", None, _stderr_text(e.stderr)) from e
    except subprocess.CalledProcessError as e:
        message = _stderr_text(e.stderr) or f"exit status {e.returncode}"
        logger.error(f"ffprobe failed for {video_path}: {message}")
        raise ExternalProcessError(f"ffprobe failed: {message}", e.returncode, _stderr_text(e.stderr)) from e

    try:
        data = json.loads(result.stdout or "{}")
    except json.JSONDecodeError as e:
        raise ExternalProcessError(f"ffprobe returned unreadable output for {video_path}") from e

    video_stream = None
    audio_stream = None
    for stream in data.get("streams", []):
        if stream.get("codec_type") == "video" and not video_stream:
            video_stream = stream
        elif stream.get("codec_type") == "audio" and not audio_stream:
            audio_stream = stream

    if not video_stream:
        raise ExternalProcessError(f"No video stream found in {video_path}")

    return {
        "duration": float(data.get("format", {}).get("duration", 0) or 0),
        "codec": video_stream.get("codec_name", "unknown"),
        "width": int(video_stream.get("width", 0)),
        "height": int(video_stream.get("height", 0)),
        "pix_fmt": video_stream.get("pix_fmt"),
        "has_audio": audio_stream is not None,
        "audio_codec": audio_stream.get("codec_name") if audio_stream else None,
    }


def check_stream_compatibility(
    video_paths: Sequence[str],
    ffprobe_path: str = "ffprobe",
    timeout: Optional[float] = 60.0,
) -> List[Dict[str, Any]]:
    """
    Verify every input shares the parameters stream copy depends on.

    Raises ExternalProcessError naming the first mismatching input.
    """
    metadata = [get_video_metadata(p, ffprobe_path, timeout) for p in video_paths]
    reference = metadata[0]
    for index, meta in enumerate(metadata[1:], start=1):
        mismatched = [
            f"{name}: {reference.get(name)} != {meta.get(name)}"
            for name in COMPATIBILITY_FIELDS
            if reference.get(name) != meta.get(name)
        ]
        if mismatched:
            raise ExternalProcessError(
                f"Segment {index} is not stream-copy compatible with segment 0 ({'; '.join(mismatched)})"
            )
    return metadata


def write_concat_manifest(manifest_path: str, video_paths: Sequence[str]) -> str:
    """Write an ffmpeg concat-demuxer list file, one entry per input, in order."""
    lines = []
    for path in video_paths:
        escaped = path.replace("'", "'\\''")
        lines.append(f"file '{escaped}'")
    with open(manifest_path, "w", encoding="utf-8") as handle:
        handle.write("\n".join(lines) + "\n")
    return manifest_path


def read_concat_manifest(manifest_path: str) -> List[str]:
    """Inverse of write_concat_manifest."""
    paths = []
    with open(manifest_path, "r", encoding="utf-8") as handle:
        for line in handle:
            line = line.strip()
            if not line.startswith("file "):
                continue
            value = line[len("file "):].strip()
            if value.startswith("'") and value.endswith("'"):
                value = value[1:-1].replace("'\\''", "'")
            paths.append(value)
    return paths


def concat_videos(
    manifest_path: str,
    output_path: str,
    ffmpeg_path: str = "ffmpeg",
    ffprobe_path: Optional[str] = "ffprobe",
    timeout: Optional[float] = 300.0,
) -> str:
    """
    Concatenate the inputs listed in a manifest without re-encoding.

    Inputs are probed first (when ffprobe_path is set) so mismatched
    streams fail loudly instead of producing a corrupt file.

    Raises:
        ExternalProcessError: probe mismatch, non-zero exit, timeout or
            missing output. The ffmpeg error text is preserved.
    """
    if ffprobe_path:
        check_stream_compatibility(read_concat_manifest(manifest_path), ffprobe_path, timeout)

    cmd = [
        ffmpeg_path,
        "-hide_banner",
        "-loglevel", "error",
        "-f", "concat",
        "-safe", "0",
        "-i", manifest_path,
        "-c", "copy",  # stream copy, no re-encode
        "-y",
        output_path
    ]

    logger.info(f"Concatenating segments from {manifest_path}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError as e:
        raise ExternalProcessError(f"ffmpeg not found: {ffmpeg_path}") from e
    except subprocess.TimeoutExpired as e:
        raise ExternalProcessError(f"ffmpeg concat timed out after {timeout}s", None, _stderr_text(e.stderr)) from e

    if result.returncode != 0:
        stderr = _stderr_text(result.stderr)
        logger.error(f"ffmpeg concat failed ({result.returncode}): {stderr}")
        raise ExternalProcessError(
            f"ffmpeg concat failed: {stderr or f'exit status {result.returncode}'}",
            result.returncode,
            stderr,
        )

    return output_path
