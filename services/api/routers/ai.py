# services/api/routers/ai.py
"""
Thin proxies to the AI providers. One upstream call per request,
no retries, no caching.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter

from core.ai_clients import generate_image_asset, require_text
from routers.deps import Assets, ImageClient, TextClient, VideoClient
from schemas.ai import ImageOut, ImagePrompt, TextOut, TextPrompt, VideoSearchOut, VideoTopic

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["ai"])


@router.post("/text", response_model=TextOut)
async def generate_text(body: TextPrompt, client: TextClient):
    prompt = require_text(body.prompt, "Prompt is required")
    text = await client.generate(prompt)
    return TextOut(text=text)


@router.post("/image", response_model=ImageOut)
async def generate_image(body: ImagePrompt, client: ImageClient, assets: Assets):
    prompt = require_text(body.prompt, "Prompt is required")
    asset = await generate_image_asset(client, assets, prompt)
    logger.info(f"Generated image stored at {asset.url}")
    return ImageOut(
        message="Image generated successfully",
        imageUrl=asset.url,
        publicId=asset.public_id,
    )


@router.post("/youtube", response_model=VideoSearchOut)
async def suggest_videos(body: VideoTopic, client: VideoClient):
    topic = require_text(body.topic, "Topic is required")
    videos = await client.search(topic)
    return VideoSearchOut(
        message="Videos fetched successfully",
        topic=topic,
        count=len(videos),
        videos=videos,
    )
