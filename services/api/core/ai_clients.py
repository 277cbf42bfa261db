# services/api/core/ai_clients.py
from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Optional

import httpx

from core.asset_store import AssetStore, StoredAsset
from core.errors import BadRequest, ServiceError
from settings import Settings

logger = logging.getLogger(__name__)

NO_TEXT_FALLBACK = "No response generated."


def require_text(value: Optional[str], message: str) -> str:
    if value is None or not str(value).strip():
        raise BadRequest(message)
    return str(value).strip()


class _UpstreamClient:
    """Shared httpx plumbing: one AsyncClient per upstream, errors -> ServiceError."""

    service_name = "upstream"

    def __init__(
        self,
        api_key: Optional[str],
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key or ""
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    def _require_key(self) -> None:
        if not self.api_key:
            raise ServiceError(f"{self.service_name} API key is not configured")

    def _status_for(self, response: httpx.Response) -> int:
        return 500

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            r = await self._client.request(method, url, **kwargs)
            r.raise_for_status()
            return r.json()
        except httpx.HTTPStatusError as http_err:
            body = http_err.response.text[:500]
            logger.error(
                f"{self.service_name} returned {http_err.response.status_code}: {body}"
            )
            raise ServiceError(
                f"{self.service_name} request failed ({http_err.response.status_code}): {body}",
                status_code=self._status_for(http_err.response),
            ) from http_err
        except httpx.RequestError as net_err:
            logger.error(f"{self.service_name} unreachable: {net_err}")
            raise ServiceError(f"{self.service_name} request failed: {net_err}") from net_err
        except ValueError as parse_err:
            raise ServiceError(f"Unexpected {self.service_name} response: {parse_err}") from parse_err

    async def aclose(self) -> None:
        await self._client.aclose()


class TextGenerationClient(_UpstreamClient):
    """OpenRouter chat completions, one fixed model."""

    service_name = "Text generation"

    def __init__(self, api_key: Optional[str], *, model: str, base_url: str, **kwargs: Any) -> None:
        super().__init__(api_key, **kwargs)
        self.model = model
        self.base_url = base_url

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "TextGenerationClient":
        return cls(
            settings.ai_api_key,
            model=settings.text_model,
            base_url=settings.openrouter_base_url,
            timeout=settings.http_timeout_seconds,
            **kwargs,
        )

    async def generate(self, prompt: str) -> str:
        self._require_key()
        payload: Dict[str, Any] = {
            "model": self.model,
            "reasoning": {"enabled": True},
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        data = await self._request("POST", self.base_url, headers=headers, json=payload)
        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            text = None
        return text or NO_TEXT_FALLBACK


class ImageGenerationClient(_UpstreamClient):
    """OpenAI-compatible /images/generations endpoint."""

    service_name = "Image generation"

    def __init__(
        self,
        api_key: Optional[str],
        *,
        model: str,
        api_url: str,
        size: str = "1024x1024",
        **kwargs: Any,
    ) -> None:
        super().__init__(api_key, **kwargs)
        self.model = model
        self.api_url = api_url
        self.size = size

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "ImageGenerationClient":
        return cls(
            settings.image_api_key,
            model=settings.image_model,
            api_url=settings.image_api_url,
            size=settings.image_size,
            timeout=settings.http_timeout_seconds,
            **kwargs,
        )

    async def generate(self, prompt: str) -> bytes:
        """Return the raw image bytes of the first generated image."""
        self._require_key()
        payload = {"model": self.model, "prompt": prompt, "n": 1, "size": self.size}
        headers = {"Authorization": f"Bearer {self.api_key}"}
        data = await self._request("POST", self.api_url, headers=headers, json=payload)

        try:
            item = data["data"][0]
        except (KeyError, IndexError, TypeError):
            raise ServiceError("Image generation returned no image")

        if item.get("b64_json"):
            try:
                return base64.b64decode(item["b64_json"])
            except ValueError as e:
                raise ServiceError(f"Image generation returned invalid base64: {e}") from e

        if item.get("url"):
            try:
                r = await self._client.get(item["url"])
                r.raise_for_status()
                return r.content
            except httpx.HTTPError as e:
                raise ServiceError(f"Could not download generated image: {e}") from e

        raise ServiceError("Image generation returned no image")


async def generate_image_asset(
    client: ImageGenerationClient, assets: AssetStore, prompt: str
) -> StoredAsset:
    """Generate an image and park it in the asset store (buffer upload)."""
    image_bytes = await client.generate(prompt)
    return await assets.store(image_bytes, mime_type="image/png", resource_type="image")


class VideoSearchClient(_UpstreamClient):
    """YouTube Data API v3 search, videos only."""

    service_name = "YouTube"

    def __init__(
        self,
        api_key: Optional[str],
        *,
        search_url: str,
        max_results: int = 8,
        **kwargs: Any,
    ) -> None:
        super().__init__(api_key, **kwargs)
        self.search_url = search_url
        self.max_results = max_results

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "VideoSearchClient":
        return cls(
            settings.youtube_api_key,
            search_url=settings.youtube_search_url,
            max_results=settings.youtube_max_results,
            timeout=settings.http_timeout_seconds,
            **kwargs,
        )

    def _status_for(self, response: httpx.Response) -> int:
        # quotaExceeded / keyInvalid come back as 403
        return 403 if response.status_code == 403 else 500

    async def search(self, topic: str) -> List[Dict[str, Any]]:
        self._require_key()
        params = {
            "part": "snippet",
            "q": topic,
            "type": "video",
            "maxResults": self.max_results,
            "safeSearch": "strict",
            "key": self.api_key,
        }
        data = await self._request("GET", self.search_url, params=params)
        return [v for v in (to_video(item) for item in data.get("items") or []) if v]


def to_video(item: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    video_id = (item.get("id") or {}).get("videoId")
    if not video_id:
        return None
    snippet = item.get("snippet") or {}
    thumbs = snippet.get("thumbnails") or {}
    thumb = thumbs.get("high") or thumbs.get("medium") or thumbs.get("default") or {}
    return {
        "videoId": video_id,
        "title": snippet.get("title", ""),
        "description": snippet.get("description", ""),
        "thumbnail": thumb.get("url", ""),
        "channelTitle": snippet.get("channelTitle", ""),
        "publishedAt": snippet.get("publishedAt", ""),
        "videoUrl": f"https://www.youtube.com/watch?v={video_id}",
        "embedUrl": f"https://www.youtube.com/embed/{video_id}",
    }
