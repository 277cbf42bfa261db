from __future__ import annotations

from .page import (
    AUDIO_MIME_TYPES,
    Attachment,
    Page,
    classify_attachment,
    utc_iso,
)
from .group import DEFAULT_MEMBER_COUNT, Group
from .pdf_document import PdfDocument, RenderedPage

__all__ = [
    "AUDIO_MIME_TYPES",
    "Attachment",
    "DEFAULT_MEMBER_COUNT",
    "Group",
    "Page",
    "PdfDocument",
    "RenderedPage",
    "classify_attachment",
    "utc_iso",
]
