# services/api/models/page.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

ATTACHMENT_KINDS = ("pdf", "audio", "unknown")

# Declared content types treated as audio attachments.
AUDIO_MIME_TYPES = frozenset(
    {
        "audio/mpeg",
        "audio/wav",
        "audio/aac",
        "audio/ogg",
        "audio/flac",
        "audio/mp4",
        "audio/webm",
    }
)


def utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _gen_page_id() -> str:
    return f"p-{uuid4().hex[:10]}"


def classify_attachment(content_type: Optional[str]) -> str:
    """
    Map a declared content type to an attachment kind.

    Anything that is neither a PDF nor on the audio allow-list is kept
    as "unknown" rather than rejected.
    """
    ct = (content_type or "").strip().lower()
    if "application/pdf" in ct:
        return "pdf"
    if ct in AUDIO_MIME_TYPES:
        return "audio"
    return "unknown"


@dataclass
class Attachment:
    kind: str
    url: str

    def validate(self) -> None:
        if self.kind not in ATTACHMENT_KINDS:
            raise ValueError(f"kind must be one of {ATTACHMENT_KINDS}, got {self.kind!r}")
        if not self.url:
            raise ValueError("attachment url is required")

    @classmethod
    def from_storage(cls, row: Dict[str, Any]) -> "Attachment":
        return cls(kind=row.get("kind") or "unknown", url=row.get("url") or "")

    def to_storage(self) -> Dict[str, Any]:
        return {"kind": self.kind, "url": self.url}

    def to_api(self) -> Dict[str, Any]:
        return {"kind": self.kind, "url": self.url}


@dataclass
class Page:
    """
    A published unit of authored content.

    Created once by the publication workflow and never modified afterwards.
    `canvas_data` is the editor's serialized drawing state; the API stores it
    as-is.
    """

    page_id: str = field(default_factory=_gen_page_id)
    name: str = ""
    preview_image: str = ""
    canvas_data: Any = None
    transcription: str = ""
    attachments: List[Attachment] = field(default_factory=list)
    target_groups: List[str] = field(default_factory=list)
    created_at: str = field(default_factory=utc_iso)

    def validate(self) -> None:
        if not self.name.strip():
            raise ValueError("page name is required")
        if not self.preview_image:
            raise ValueError("preview image is required")
        for a in self.attachments:
            a.validate()

    # ------------ storage layer ------------

    @classmethod
    def from_storage(cls, row: Dict[str, Any]) -> "Page":
        return cls(
            page_id=row.get("page_id") or _gen_page_id(),
            name=row.get("name") or "",
            preview_image=row.get("preview_image") or "",
            canvas_data=row.get("canvas_data"),
            transcription=row.get("transcription") or "",
            attachments=[Attachment.from_storage(a) for a in (row.get("attachments") or [])],
            target_groups=[str(g) for g in (row.get("target_groups") or []) if g],
            created_at=row.get("created_at") or utc_iso(),
        )

    def to_storage(self) -> Dict[str, Any]:
        self.validate()
        return {
            "page_id": self.page_id,
            "name": self.name,
            "preview_image": self.preview_image,
            "canvas_data": self.canvas_data,
            "transcription": self.transcription,
            "attachments": [a.to_storage() for a in self.attachments],
            "target_groups": list(self.target_groups),
            "created_at": self.created_at,
        }

    # ------------ API layer ------------

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.page_id,
            "name": self.name,
            "previewImage": self.preview_image,
            "canvasData": self.canvas_data,
            "transcription": self.transcription,
            "attachments": [a.to_api() for a in self.attachments],
            "targetGroups": list(self.target_groups),
            "createdAt": self.created_at,
        }
