"""
HTTP client for the Veo video model (Generative Language REST API).

Usage:
    client = VeoVideoClient(api_key="...", base_url="https://generativelanguage.googleapis.com/v1beta")
    job = await client.submit_video_job("a cat surfing", {"aspect_ratio": "9:16"})
    status = await client.poll_video_job(job)
"""
from typing import Any, Dict, Optional

import httpx

from autoshorts.core.errors import GenerationError
from autoshorts.core.logging import get_logger
from autoshorts.video.base import VideoBackend, VideoJob, VideoJobStatus

logger = get_logger("video.veo")


class VeoVideoClient(VideoBackend):
    """
    Async client for long-running Veo render operations.

    Submission goes to models/{model}:predictLongRunning; the returned
    operation name is polled until done, then the sample URI is downloaded.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        model: str = "veo-3.1-fast-generate-preview",
        timeout: float = 120.0,
    ):
        """
        Initialize the client.

        Args:
            api_key: Generative Language API key
            base_url: REST base URL
            model: Video model id
            timeout: Per-request timeout in seconds
        """
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._model = model
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def model_name(self) -> str:
        return self._model

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={"x-goog-api-key": self._api_key},
                follow_redirects=True,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    # =========================================================================
    # Job lifecycle
    # =========================================================================

    async def submit_video_job(self, prompt: str, options: Dict[str, Any]) -> VideoJob:
        if not self._api_key:
            raise GenerationError("Video API key not configured")

        client = await self._get_client()
        payload = {
            "instances": [{"prompt": prompt}],
            "parameters": {
                "aspectRatio": options.get("aspect_ratio", "9:16"),
                "resolution": options.get("resolution", "720p"),
                "sampleCount": options.get("number_of_videos", 1),
            },
        }

        try:
            response = await client.post(
                f"{self.base_url}/models/{self._model}:predictLongRunning",
                json=payload,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise GenerationError(f"Video job submission rejected: {e.response.status_code} - {e.response.text}") from e
        except httpx.HTTPError as e:
            raise GenerationError(f"Video job submission failed: {e}") from e

        operation = response.json()
        job_id = operation.get("name")
        if not job_id:
            raise GenerationError("Video backend returned no operation name")

        logger.info(f"Submitted render job {job_id} ({self._model})")
        return VideoJob(job_id=job_id, prompt=prompt, options=dict(options))

    async def poll_video_job(self, job: VideoJob) -> VideoJobStatus:
        client = await self._get_client()
        try:
            response = await client.get(f"{self.base_url}/{job.job_id}")
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise GenerationError(f"Polling render job {job.job_id} failed: {e}") from e

        operation = response.json()
        if not operation.get("done"):
            return VideoJobStatus(done=False)

        if operation.get("error"):
            message = operation["error"].get("message", "unknown error")
            raise GenerationError(f"Render job {job.job_id} failed: {message}")

        samples = (
            operation.get("response", {})
            .get("generateVideoResponse", {})
            .get("generatedSamples", [])
        )
        uri = samples[0].get("video", {}).get("uri") if samples else None
        if not uri:
            raise GenerationError("Video backend returned no video URI")

        return VideoJobStatus(done=True, result_uri=uri)

    async def download_video(self, result_uri: str) -> bytes:
        client = await self._get_client()
        try:
            response = await client.get(result_uri)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise GenerationError(f"Failed to download video bytes: {e}") from e

        logger.debug(f"Downloaded {len(response.content)} bytes from {result_uri}")
        return response.content
