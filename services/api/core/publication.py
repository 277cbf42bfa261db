# services/api/core/publication.py
"""
Page publication: turn an editor submission into a Page record and push it
to every target group.

Order of work:
  1. parse the target group list
  2. require a page name and the preview image file
  3. parse canvasData
  4. spool the preview and every attachment to scratch (size limits apply here)
  5. upload the preview, then the attachments in input order, classifying each
     as pdf / audio / unknown
  6. persist the Page and fan it out to the groups (one storage call)

All input checks, size limits included, run before anything is uploaded, so
a rejected request leaves nothing in the asset store.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Union

from fastapi import UploadFile

from adapters.base import StorageAdapter
from core.asset_store import AssetStore
from core.errors import BadRequest, InternalError, NotFound, RootStudyError
from core.uploads import UploadScratch
from models import Attachment, Page, classify_attachment

logger = logging.getLogger(__name__)

# Multipart field that carries the canvas preview; every other file is an attachment.
PREVIEW_FIELD = "pageImage"


@dataclass
class PublishResult:
    page: Page
    updated_groups: List[str] = field(default_factory=list)


def parse_group_ids(raw: Union[None, str, Sequence[Any]]) -> List[str]:
    """
    Accept the group list as a JSON-encoded array, a plain list, or a list
    holding one JSON-encoded array (what multipart forms produce).

    Duplicates are dropped, keeping the first occurrence.
    """
    if raw is None:
        return []

    value: Any = raw
    if isinstance(value, (list, tuple)) and len(value) == 1 and isinstance(value[0], str):
        candidate = value[0].strip()
        if candidate.startswith("["):
            value = candidate

    if isinstance(value, str):
        if not value.strip():
            return []
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise BadRequest(f"sentGroups must be a JSON array of group ids: {e.msg}") from e

    if not isinstance(value, (list, tuple)):
        raise BadRequest("sentGroups must be a list of group ids")

    seen = set()
    ids: List[str] = []
    for item in value:
        if item is None or isinstance(item, (dict, list)):
            raise BadRequest(f"Invalid group id in sentGroups: {item!r}")
        gid = str(item).strip()
        if not gid or gid in seen:
            continue
        seen.add(gid)
        ids.append(gid)
    return ids


def parse_canvas_data(raw: Any) -> Any:
    """canvasData may arrive serialized; structured values pass through."""
    if not isinstance(raw, str):
        return raw
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise BadRequest(f"canvasData is not valid JSON: {e.msg}") from e


class PublicationService:
    def __init__(
        self,
        storage: StorageAdapter,
        assets: AssetStore,
        *,
        tmp_dir: str,
        max_upload_bytes: int,
        expose_error_details: bool = True,
    ):
        self.storage = storage
        self.assets = assets
        self.tmp_dir = tmp_dir
        self.max_upload_bytes = max_upload_bytes
        self.expose_error_details = expose_error_details

    async def publish_page(
        self,
        *,
        name: Optional[str],
        preview: Optional[UploadFile],
        canvas_data: Any = None,
        transcription: Optional[str] = None,
        attachments: Sequence[UploadFile] = (),
        target_groups: Union[None, str, Sequence[Any]] = None,
    ) -> PublishResult:
        try:
            group_ids = parse_group_ids(target_groups)

            if not (name or "").strip():
                raise BadRequest("Page name is required")
            if preview is None:
                raise BadRequest("Page preview image is required")

            parsed_canvas = parse_canvas_data(canvas_data)

            with UploadScratch(self.tmp_dir) as scratch:
                # Spool everything first so every size check runs before the
                # first upload.
                preview_tmp = await scratch.save(preview, max_bytes=self.max_upload_bytes)
                attachment_tmps = [
                    await scratch.save(upload, max_bytes=self.max_upload_bytes)
                    for upload in attachments
                ]

                preview_asset = await self.assets.store(
                    preview_tmp.path, mime_type=preview_tmp.content_type or "image/png"
                )
                stored: List[Attachment] = []
                for tmp in attachment_tmps:
                    asset = await self.assets.store(tmp.path, mime_type=tmp.content_type)
                    stored.append(Attachment(kind=classify_attachment(tmp.content_type), url=asset.url))

            page = Page(
                name=name.strip(),
                preview_image=preview_asset.url,
                canvas_data=parsed_canvas,
                transcription=transcription or "",
                attachments=stored,
                target_groups=group_ids,
            )
            updated = self.storage.publish_page(page.to_storage())
        except RootStudyError:
            raise
        except Exception as e:
            logger.exception(f"publish_page failed: {e}")
            raise InternalError(str(e) if self.expose_error_details else "Internal server error") from e

        skipped = [gid for gid in group_ids if gid not in updated]
        logger.info(
            f"Published page {page.page_id} ({page.name!r}) attachments={len(stored)} "
            f"groups_updated={len(updated)} groups_skipped={len(skipped)}"
        )
        return PublishResult(page=page, updated_groups=updated)

    def get_page(self, page_id: str) -> Page:
        row = self.storage.get_page(page_id)
        if not row:
            raise NotFound("Page not found")
        return Page.from_storage(row)
