"""
Video platform interface: trend search and video publishing.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from autoshorts.pipeline.models import PlatformCredentials, PrivacyStatus


class PlatformAPIError(Exception):
    """Platform rejected a request; message is the platform's own text."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class PublishRequest:
    """Everything the platform needs for one upload."""
    title: str
    description: str
    privacy_status: PrivacyStatus = PrivacyStatus.PUBLIC
    publish_at: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    category_id: str = "22"
    mime_type: str = "video/mp4"


@dataclass
class RemoteVideo:
    """Identifiers the platform assigned to an uploaded video."""
    remote_id: str
    remote_url: str
    raw: Dict[str, Any] = field(default_factory=dict)


class VideoPlatformClient(ABC):
    """Abstract platform client."""

    @property
    @abstractmethod
    def platform_name(self) -> str:
        pass

    @abstractmethod
    async def search_trending(
        self,
        query: str,
        region_code: str,
        max_results: int,
        credentials: PlatformCredentials,
    ) -> List[Dict[str, Any]]:
        """Return raw video resources (snippet + statistics) for a query."""
        pass

    @abstractmethod
    async def upload(
        self,
        payload: bytes,
        request: PublishRequest,
        credentials: PlatformCredentials,
    ) -> RemoteVideo:
        """Upload a video; raises PlatformAPIError on rejection."""
        pass

    async def close(self) -> None:
        pass
