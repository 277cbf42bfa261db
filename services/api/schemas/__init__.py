"""
Pydantic schemas for API request/response validation.
"""
from typing import Optional

from pydantic import BaseModel

from .ai import ImageOut, ImagePrompt, TextOut, TextPrompt, VideoOut, VideoSearchOut, VideoTopic
from .group import GroupCreate


# ============ Health Check ============


class HealthCheck(BaseModel):
    """Health check response."""
    status: str = "ok"
    backend: Optional[str] = None


# Re-export all
__all__ = [
    "GroupCreate",
    "HealthCheck",
    "ImageOut",
    "ImagePrompt",
    "TextOut",
    "TextPrompt",
    "VideoOut",
    "VideoSearchOut",
    "VideoTopic",
]
