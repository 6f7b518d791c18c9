from autoshorts.video.base import VideoBackend, VideoJob, VideoJobStatus
from autoshorts.video.veo_client import VeoVideoClient

__all__ = ["VideoBackend", "VideoJob", "VideoJobStatus", "VeoVideoClient"]
