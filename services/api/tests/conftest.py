"""
Shared fixtures for the RootStudy API tests.

Run with: pytest services/api/tests -v
"""
import io
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import pypdfium2 as pdfium
import pytest
from fastapi import UploadFile
from fastapi.testclient import TestClient
from starlette.datastructures import Headers

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from adapters.json import JsonAdapter
from adapters.sqlite import SqliteAdapter
from core.ai_clients import ImageGenerationClient, TextGenerationClient, VideoSearchClient
from core.asset_store import AssetStore, StoredAsset
from models import Group
from settings import Settings


class FakeAssetStore(AssetStore):
    """
    Records every upload instead of calling Cloudinary.

    `fail_after=n` makes upload number n+1 (and later) fail the same way the
    real store does: by returning None.
    """

    def __init__(self, fail_after: Optional[int] = None):
        super().__init__(cloud_name="test", api_key="key", api_secret="secret", folder="rootstudy-test")
        self.fail_after = fail_after
        self.uploads: List[Dict[str, Any]] = []

    def upload(self, content, *, mime_type="application/octet-stream", folder=None, resource_type="auto"):
        if not content:
            return None
        if self.fail_after is not None and len(self.uploads) >= self.fail_after:
            return None
        data = content if isinstance(content, bytes) else Path(content).read_bytes()
        self.uploads.append({"data": data, "mime_type": mime_type, "resource_type": resource_type})
        n = len(self.uploads)
        return StoredAsset(url=f"https://res.cloudinary.com/test/asset-{n}", public_id=f"asset-{n}")


def build_pdf(pages: int) -> bytes:
    """A blank Letter-size PDF with the given number of pages."""
    doc = pdfium.PdfDocument.new()
    try:
        for _ in range(pages):
            doc.new_page(612, 792)
        buf = io.BytesIO()
        doc.save(buf)
        return buf.getvalue()
    finally:
        doc.close()


def not_mocked(request: httpx.Request) -> httpx.Response:
    return httpx.Response(599, text=f"no upstream mocked for {request.url}")


# ========== Storage ==========

@pytest.fixture
def json_adapter(tmp_path):
    return JsonAdapter(str(tmp_path / "data"))


@pytest.fixture
def sqlite_adapter(tmp_path):
    adapter = SqliteAdapter.from_url(f"sqlite:///{tmp_path / 'rootstudy.db'}")
    yield adapter
    adapter.engine.dispose()


@pytest.fixture(params=["json", "sqlite"])
def storage(request):
    """Each test using this runs once per backend."""
    return request.getfixturevalue(f"{request.param}_adapter")


@pytest.fixture
def make_group(storage):
    def _make(name: str, member_count: int = 50) -> str:
        group = Group(name=name, member_count=member_count)
        return storage.create_group(group.to_storage())

    return _make


# ========== Uploads & assets ==========

@pytest.fixture
def assets():
    return FakeAssetStore()


@pytest.fixture
def make_assets():
    return FakeAssetStore


@pytest.fixture
def pdf_bytes():
    return build_pdf


@pytest.fixture
def upload_factory():
    def _make(data: bytes, filename: str = "file.bin", content_type: str = "application/octet-stream") -> UploadFile:
        return UploadFile(
            file=io.BytesIO(data),
            filename=filename,
            headers=Headers({"content-type": content_type}),
        )

    return _make


@pytest.fixture
def tmp_uploads(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


# ========== App ==========

@pytest.fixture
def settings(tmp_path, tmp_uploads):
    return Settings(
        _env_file=None,
        storage_backend="json",
        json_data_dir=str(tmp_path / "data"),
        upload_tmp_dir=str(tmp_uploads),
        log_level="WARNING",
        ai_api_key="test-text-key",
        image_api_key="test-image-key",
        youtube_api_key="test-youtube-key",
    )


@pytest.fixture
def make_client(settings, json_adapter, assets):
    """
    Build a TestClient over create_app with injected collaborators.

    AI clients default to a transport that answers 599, so a test only
    talks to the upstreams it mocks explicitly.
    """
    from main import create_app

    clients = []

    def _make(handler=not_mocked, **overrides) -> TestClient:
        transport = httpx.MockTransport(handler)
        kwargs = {
            "storage": json_adapter,
            "assets": assets,
            "text_client": TextGenerationClient.from_settings(settings, transport=transport),
            "image_client": ImageGenerationClient.from_settings(settings, transport=transport),
            "video_client": VideoSearchClient.from_settings(settings, transport=transport),
        }
        kwargs.update(overrides)
        client = TestClient(create_app(settings, **kwargs))
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()
