# services/api/core/asset_store.py
from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import cloudinary.uploader
from starlette.concurrency import run_in_threadpool

from core.errors import StorageError
from settings import Settings

logger = logging.getLogger(__name__)

Content = Union[str, Path, bytes]


@dataclass(frozen=True)
class StoredAsset:
    url: str
    public_id: str


def to_data_uri(data: bytes, mime_type: str = "application/octet-stream") -> str:
    """Encode an in-memory buffer for transmission as a base64 data URI."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class AssetStore:
    """
    Cloudinary-backed store for every binary the API persists
    (page previews, attachments, extracted PDF pages, generated images).

    Credentials are passed per call instead of through the SDK's global
    `cloudinary.config`, so one instance per process is enough and tests can
    build their own.

    Two entry points:
      - upload(): soft-fail. Logs and returns None on any failure.
      - store():  what callers use. Turns None into StorageError.
    """

    def __init__(
        self,
        *,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: Optional[str] = None,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder or None

    @classmethod
    def from_settings(cls, settings: Settings) -> "AssetStore":
        if not settings.cloudinary_configured:
            logger.warning("Cloudinary credentials are not configured; uploads will fail")
        return cls(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            folder=settings.cloudinary_folder,
        )

    def _options(self, resource_type: str, folder: Optional[str]) -> Dict[str, Any]:
        opts: Dict[str, Any] = {
            "resource_type": resource_type,
            "cloud_name": self.cloud_name,
            "api_key": self.api_key,
            "api_secret": self.api_secret,
            "secure": True,
        }
        target_folder = folder or self.folder
        if target_folder:
            opts["folder"] = target_folder
        return opts

    def upload(
        self,
        content: Optional[Content],
        *,
        mime_type: str = "application/octet-stream",
        folder: Optional[str] = None,
        resource_type: str = "auto",
    ) -> Optional[StoredAsset]:
        """
        Upload a local file path or an in-memory buffer.

        Returns None instead of raising. Callers that forget to check
        will carry a None around; use store() unless you need that.
        """
        if not content:
            logger.warning("No local file or buffer given to upload")
            return None

        if isinstance(content, bytes):
            payload: str = to_data_uri(content, mime_type)
            label = f"<buffer {len(content)} bytes>"
        else:
            payload = str(content)
            label = payload

        try:
            response = cloudinary.uploader.upload(payload, **self._options(resource_type, folder))
            url = response.get("secure_url") or response.get("url")
            if not url:
                logger.error(f"Cloudinary response for {label} had no URL: {response}")
                return None
            logger.info(f"Uploaded {label} to Cloudinary: {url}")
            return StoredAsset(url=url, public_id=response.get("public_id") or "")
        except Exception as e:
            logger.exception(f"Cloudinary upload failed for {label}: {e}")
            return None

    async def store(
        self,
        content: Optional[Content],
        *,
        mime_type: str = "application/octet-stream",
        folder: Optional[str] = None,
        resource_type: str = "auto",
    ) -> StoredAsset:
        """Upload off the event loop; raise StorageError on failure."""
        asset = await run_in_threadpool(
            self.upload,
            content,
            mime_type=mime_type,
            folder=folder,
            resource_type=resource_type,
        )
        if asset is None:
            raise StorageError("Failed to upload file to storage")
        return asset
