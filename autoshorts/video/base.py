"""
Video generation backend interface.

Rendering is a long-running remote job: submit, poll, download.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class VideoJob:
    """Handle for a submitted render job."""
    job_id: str
    prompt: str
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class VideoJobStatus:
    """Result of one poll."""
    done: bool
    result_uri: Optional[str] = None
    error: Optional[str] = None


class VideoBackend(ABC):
    """Abstract video generation backend."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        pass

    @abstractmethod
    async def submit_video_job(self, prompt: str, options: Dict[str, Any]) -> VideoJob:
        """Start a render job and return its handle."""
        pass

    @abstractmethod
    async def poll_video_job(self, job: VideoJob) -> VideoJobStatus:
        """Check a job once."""
        pass

    @abstractmethod
    async def download_video(self, result_uri: str) -> bytes:
        """Fetch the rendered bytes."""
        pass

    async def close(self) -> None:
        pass
