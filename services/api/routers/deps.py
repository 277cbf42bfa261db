# services/api/routers/deps.py
"""
DI helpers shared by all routers.

Everything here is built once in `main.create_app` and parked on
`app.state`; requests only read it.
"""
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from adapters.base import StorageAdapter
from core.ai_clients import ImageGenerationClient, TextGenerationClient, VideoSearchClient
from core.asset_store import AssetStore
from core.pdf_service import PdfService
from core.publication import PublicationService
from settings import Settings


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> StorageAdapter:
    return request.app.state.storage_adapter


def get_assets(request: Request) -> AssetStore:
    return request.app.state.asset_store


def get_pdf_service(request: Request) -> PdfService:
    return request.app.state.pdf_service


def get_publication(request: Request) -> PublicationService:
    return request.app.state.publication_service


def get_text_client(request: Request) -> TextGenerationClient:
    return request.app.state.text_client


def get_image_client(request: Request) -> ImageGenerationClient:
    return request.app.state.image_client


def get_video_client(request: Request) -> VideoSearchClient:
    return request.app.state.video_client


# ---- DI aliases (no default value allowed) ----
AppSettings = Annotated[Settings, Depends(get_settings_dep)]
Storage = Annotated[StorageAdapter, Depends(get_storage)]
Assets = Annotated[AssetStore, Depends(get_assets)]
Pdfs = Annotated[PdfService, Depends(get_pdf_service)]
Publication = Annotated[PublicationService, Depends(get_publication)]
TextClient = Annotated[TextGenerationClient, Depends(get_text_client)]
ImageClient = Annotated[ImageGenerationClient, Depends(get_image_client)]
VideoClient = Annotated[VideoSearchClient, Depends(get_video_client)]
