from autoshorts.platforms.base import (
    PlatformAPIError,
    PublishRequest,
    RemoteVideo,
    VideoPlatformClient,
)
from autoshorts.platforms.youtube import YouTubeClient

__all__ = [
    "PlatformAPIError",
    "PublishRequest",
    "RemoteVideo",
    "VideoPlatformClient",
    "YouTubeClient",
]
