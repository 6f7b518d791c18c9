"""
YouTube Data API v3 client.

Search and video listing back the trend source; multipart upload backs
the upload scheduler. Authentication is a caller-supplied OAuth bearer
token; token exchange/refresh happens elsewhere.
"""
import json
import uuid
from typing import Any, Dict, List, Optional

import httpx

from autoshorts.core.logging import get_logger
from autoshorts.pipeline.models import PlatformCredentials
from autoshorts.platforms.base import (
    PlatformAPIError,
    PublishRequest,
    RemoteVideo,
    VideoPlatformClient,
)

logger = get_logger("platforms.youtube")

SHORTS_URL_TEMPLATE = "https://youtube.com/shorts/{video_id}"


def _auth_headers(credentials: PlatformCredentials) -> Dict[str, str]:
    return {"Authorization": f"{credentials.token_type} {credentials.access_token}"}


def _error_message(response: httpx.Response) -> str:
    """Pull the platform's error message out of a failed response."""
    try:
        body = response.json()
    except ValueError:
        return f"YouTube API: {response.status_code} - {response.text}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return f"YouTube API: {response.status_code} - {error['message']}"
    return f"YouTube API: {response.status_code} - {response.text}"


def _json_body(response: httpx.Response) -> Dict[str, Any]:
    """Decoded JSON object of a successful response; PlatformAPIError otherwise."""
    try:
        body = response.json()
    except ValueError as e:
        raise PlatformAPIError(
            f"YouTube API: {response.status_code} - unreadable response body: {response.text[:200]}",
            response.status_code,
        ) from e
    if not isinstance(body, dict):
        raise PlatformAPIError(f"YouTube API: {response.status_code} - unexpected response body", response.status_code)
    return body


def build_multipart_body(metadata: Dict[str, Any], payload: bytes, mime_type: str, boundary: str) -> bytes:
    """multipart/related body: JSON metadata part followed by the media part."""
    return b"".join([
        f"--{boundary}\r\nContent-Type: application/json; charset=UTF-8\r\n\r\n".encode("utf-8"),
        json.dumps(metadata).encode("utf-8"),
        f"\r\n--{boundary}\r\nContent-Type: {mime_type}\r\n\r\n".encode("utf-8"),
        payload,
        f"\r\n--{boundary}--".encode("utf-8"),
    ])


class YouTubeClient(VideoPlatformClient):
    """Async YouTube client."""

    def __init__(
        self,
        api_base_url: str = "https://www.googleapis.com/youtube/v3",
        upload_url: str = "https://www.googleapis.com/upload/youtube/v3/videos",
        timeout: float = 120.0,
    ):
        self.api_base_url = api_base_url.rstrip("/")
        self.upload_url = upload_url
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def platform_name(self) -> str:
        return "youtube"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _get_json(self, path: str, params: Dict[str, Any], credentials: PlatformCredentials) -> Dict[str, Any]:
        client = await self._get_client()
        response = await client.get(
            f"{self.api_base_url}/{path}",
            params=params,
            headers=_auth_headers(credentials),
        )
        if response.is_error:
            raise PlatformAPIError(_error_message(response), response.status_code)
        return _json_body(response)

    # =========================================================================
    # Trend search
    # =========================================================================

    async def search_trending(
        self,
        query: str,
        region_code: str,
        max_results: int,
        credentials: PlatformCredentials,
    ) -> List[Dict[str, Any]]:
        search = await self._get_json("search", {
            "part": "snippet",
            "q": f"#shorts {query}",
            "type": "video",
            "videoDuration": "short",
            "regionCode": region_code,
            "maxResults": max_results,
            "order": "viewCount",
        }, credentials)

        video_ids = [
            item.get("id", {}).get("videoId")
            for item in search.get("items", [])
        ]
        video_ids = [v for v in video_ids if v]
        if not video_ids:
            return []

        videos = await self._get_json("videos", {
            "part": "snippet,statistics",
            "id": ",".join(video_ids),
        }, credentials)
        logger.info(f"YouTube search '{query}' ({region_code}): {len(videos.get('items', []))} videos")
        return videos.get("items", [])

    # =========================================================================
    # Upload
    # =========================================================================

    async def upload(
        self,
        payload: bytes,
        request: PublishRequest,
        credentials: PlatformCredentials,
    ) -> RemoteVideo:
        status: Dict[str, Any] = {
            "privacyStatus": request.privacy_status.value,
            "selfDeclaredMadeForKids": False,
        }
        if request.publish_at:
            # the platform only honours publishAt on private videos
            status["privacyStatus"] = "private"
            status["publishAt"] = request.publish_at

        metadata = {
            "snippet": {
                "title": request.title,
                "description": request.description,
                "tags": request.tags,
                "categoryId": request.category_id,
            },
            "status": status,
        }

        boundary = f"autoshorts-{uuid.uuid4().hex}"
        body = build_multipart_body(metadata, payload, request.mime_type, boundary)
        headers = _auth_headers(credentials)
        headers["Content-Type"] = f"multipart/related; boundary={boundary}"

        client = await self._get_client()
        try:
            response = await client.post(
                self.upload_url,
                params={"uploadType": "multipart", "part": "snippet,status"},
                content=body,
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise PlatformAPIError(f"YouTube upload transport error: {e}") from e

        if response.is_error:
            raise PlatformAPIError(_error_message(response), response.status_code)

        data = _json_body(response)
        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else None
            raise PlatformAPIError(message or str(error))

        video_id = data.get("id")
        if not video_id:
            raise PlatformAPIError("YouTube upload response carried no video id")

        logger.info(f"Uploaded video {video_id} ({len(payload)} bytes)")
        return RemoteVideo(
            remote_id=video_id,
            remote_url=SHORTS_URL_TEMPLATE.format(video_id=video_id),
            raw=data,
        )
