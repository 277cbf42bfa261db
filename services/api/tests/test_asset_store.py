"""
Tests for the Cloudinary-backed asset store. The SDK call is monkeypatched.

Run with: pytest tests/test_asset_store.py -v
"""
import asyncio
import base64

import cloudinary.uploader
import pytest

from core.asset_store import AssetStore, StoredAsset, to_data_uri
from core.errors import StorageError


@pytest.fixture
def store():
    return AssetStore(cloud_name="demo", api_key="key", api_secret="secret", folder="rootstudy")


@pytest.fixture
def sdk_calls(monkeypatch):
    """Capture calls to cloudinary.uploader.upload and answer with a fixed response."""
    calls = []

    def fake_upload(file, **options):
        calls.append({"file": file, "options": options})
        return {"secure_url": "https://res.cloudinary.com/demo/x.png", "public_id": "rootstudy/x"}

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)
    return calls


class TestUpload:
    def test_path_upload(self, store, sdk_calls, tmp_path):
        """Local paths are handed to the SDK as-is with credentials and folder."""
        path = tmp_path / "preview.png"
        path.write_bytes(b"png")

        asset = store.upload(path, mime_type="image/png")

        assert asset == StoredAsset(url="https://res.cloudinary.com/demo/x.png", public_id="rootstudy/x")
        call = sdk_calls[0]
        assert call["file"] == str(path)
        assert call["options"]["resource_type"] == "auto"
        assert call["options"]["folder"] == "rootstudy"
        assert call["options"]["cloud_name"] == "demo"
        assert call["options"]["secure"] is True

    def test_buffer_sent_as_data_uri(self, store, sdk_calls):
        """In-memory bytes are base64-encoded into a data URI."""
        store.upload(b"\x89PNG", mime_type="image/png", resource_type="image")

        payload = sdk_calls[0]["file"]
        assert payload == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()
        assert sdk_calls[0]["options"]["resource_type"] == "image"

    def test_folder_override(self, store, sdk_calls):
        """A per-call folder wins over the configured one."""
        store.upload(b"x", folder="pdf-pages")
        assert sdk_calls[0]["options"]["folder"] == "pdf-pages"

    def test_empty_input_returns_none(self, store, sdk_calls):
        """Nothing to upload means no SDK call and None."""
        assert store.upload(None) is None
        assert store.upload(b"") is None
        assert sdk_calls == []


class TestSoftFailure:
    """
    upload() swallows every failure and returns None. Callers that skip the
    None check would carry a null URL forward, so store() exists to turn it
    into an error.
    """

    def test_sdk_exception_returns_none(self, store, monkeypatch):
        """An SDK exception is logged and becomes None."""

        def boom(file, **options):
            raise RuntimeError("Invalid Signature")

        monkeypatch.setattr(cloudinary.uploader, "upload", boom)
        assert store.upload(b"data") is None

    def test_response_without_url_returns_none(self, store, monkeypatch):
        """A response with no URL counts as failure."""
        monkeypatch.setattr(cloudinary.uploader, "upload", lambda file, **options: {"public_id": "x"})
        assert store.upload(b"data") is None

    def test_store_raises_storage_error(self, store, monkeypatch):
        """store() never returns a missing URL: failure is StorageError (500)."""

        def boom(file, **options):
            raise RuntimeError("network down")

        monkeypatch.setattr(cloudinary.uploader, "upload", boom)
        with pytest.raises(StorageError) as exc:
            asyncio.run(store.store(b"data"))
        assert exc.value.status_code == 500

    def test_store_success(self, store, sdk_calls):
        """store() returns the asset on success."""
        asset = asyncio.run(store.store(b"data", mime_type="image/png"))
        assert asset.url == "https://res.cloudinary.com/demo/x.png"


class TestDataUri:
    def test_format(self):
        """Data URIs carry the MIME type and base64 body."""
        assert to_data_uri(b"hi", "text/plain") == "data:text/plain;base64,aGk="
