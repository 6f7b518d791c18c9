"""
Configuration management for the AutoShorts service.

Settings are resolved once at process start (environment variables and an
optional .env file) and then handed to every component that needs them.
Components receive the Settings instance through their constructor; only
composition roots call get_settings().
"""
from functools import lru_cache
from typing import Any, Dict, List, Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # API Settings
    app_name: str = "AutoShorts - Trend to Shorts Pipeline"
    version: str = "1.0.0"
    api_prefix: str = "/v1"
    log_level: str = "INFO"

    # Text generation (structured JSON calls)
    llm_provider: str = "openai"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_base_url: Optional[str] = None
    generation_temperature: float = 0.2
    generation_max_tokens: int = 2000

    # Video generation backend (Veo over the Generative Language REST API)
    video_api_key: str = ""
    video_api_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    video_model: str = "veo-3.1-fast-generate-preview"
    video_aspect_ratio: str = "9:16"
    video_resolution: str = "720p"

    # Render polling (interval x attempts bounds the wait)
    render_initial_delay_sec: float = 0.0
    render_poll_interval_sec: float = 10.0
    render_max_poll_attempts: int = 30

    # Trend source (YouTube Data API v3)
    youtube_api_base_url: str = "https://www.googleapis.com/youtube/v3"
    youtube_upload_url: str = "https://www.googleapis.com/upload/youtube/v3/videos"
    trend_max_results: int = 8
    trend_default_region: str = "US"

    # Content planning
    candidate_count: int = 3
    max_segments_per_video: int = 4

    # Upload defaults
    upload_category_id: str = "22"
    http_timeout_sec: float = 120.0

    # Stitching
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    concat_timeout_sec: float = 300.0
    temp_dir: str = "/tmp/autoshorts"

    # Background execution
    redis_url: str = "redis://localhost:6379/0"
    channels_file: str = "channels.yaml"
    autopilot_cooldown_minutes: int = 50

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build the process-wide Settings instance (once)."""
    return Settings()


def get_render_options(settings: Settings, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Video job options derived from settings, with optional overrides."""
    options = {
        "aspect_ratio": settings.video_aspect_ratio,
        "resolution": settings.video_resolution,
        "number_of_videos": 1,
    }
    if overrides:
        options.update(overrides)
    return options


def get_search_keywords(keywords: Optional[List[str]], niche: str) -> List[str]:
    """Keywords used for trend search; falls back to the channel niche."""
    cleaned = [k.strip() for k in (keywords or []) if k and k.strip()]
    if cleaned:
        return cleaned
    return [niche] if niche else ["shorts"]
