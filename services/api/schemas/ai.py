"""
Pydantic schemas for the AI assistant endpoints.

Fields are optional on purpose: a missing or blank value is answered with a
400 `BadRequest` from the endpoint, not a 422 from FastAPI.
"""
from typing import List, Optional
from pydantic import BaseModel, Field


class TextPrompt(BaseModel):
    """Body of POST /api/text."""
    prompt: Optional[str] = Field(None, description="Prompt for the text model")


class ImagePrompt(BaseModel):
    """Body of POST /api/image."""
    prompt: Optional[str] = Field(None, description="Prompt for the image model")


class VideoTopic(BaseModel):
    """Body of POST /api/youtube."""
    topic: Optional[str] = Field(None, description="Topic to search videos for")


class TextOut(BaseModel):
    text: str


class ImageOut(BaseModel):
    message: str
    imageUrl: str
    publicId: str


class VideoOut(BaseModel):
    videoId: str
    title: str
    description: str
    thumbnail: str
    channelTitle: str
    publishedAt: str
    videoUrl: str
    embedUrl: str


class VideoSearchOut(BaseModel):
    message: str
    topic: str
    count: int
    videos: List[VideoOut] = Field(default_factory=list)
