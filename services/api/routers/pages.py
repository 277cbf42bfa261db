# services/api/routers/pages.py
from __future__ import annotations

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Request, status
from starlette.datastructures import UploadFile as StarletteUploadFile

from core.publication import PREVIEW_FIELD
from routers.deps import AppSettings, Publication

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["pages"])


def _text_field(form, name: str) -> Optional[str]:
    value = form.get(name)
    return value if isinstance(value, str) else None


@router.post("/create-page", status_code=status.HTTP_201_CREATED)
async def create_page(request: Request, publication: Publication, settings: AppSettings) -> dict[str, Any]:
    """
    Publish a page to one or more groups.

    Multipart form:
      pageName      page title (required)
      pageImage     canvas preview file (required)
      canvasData    editor state, JSON string
      transcription optional voice transcription
      sentGroups    JSON array of group ids (may repeat as plain values)
      <any other>   attachment files, kept in the order they were sent
    """
    # spooled upload files are closed when the block exits
    async with request.form(max_part_size=settings.max_form_field_bytes) as form:
        preview: Optional[StarletteUploadFile] = None
        attachments: List[StarletteUploadFile] = []
        for field_name, value in form.multi_items():
            if not isinstance(value, StarletteUploadFile):
                continue
            if field_name == PREVIEW_FIELD:
                # first preview wins, extras are dropped
                preview = preview or value
                continue
            attachments.append(value)

        result = await publication.publish_page(
            name=_text_field(form, "pageName"),
            preview=preview,
            canvas_data=_text_field(form, "canvasData"),
            transcription=_text_field(form, "transcription"),
            attachments=attachments,
            target_groups=[v for v in form.getlist("sentGroups") if isinstance(v, str)],
        )

    return {
        "message": "Page created successfully",
        "page": result.page.to_api(),
        "updatedGroups": result.updated_groups,
    }


@router.get("/pages/{page_id}")
async def get_page(page_id: str, publication: Publication) -> dict[str, Any]:
    page = publication.get_page(page_id)
    return {"message": "Page found", "page": page.to_api()}
