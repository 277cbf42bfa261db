# services/api/models/pdf_document.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from uuid import uuid4

from .page import utc_iso


def _gen_pdf_id() -> str:
    return f"pdf-{uuid4().hex[:10]}"


@dataclass
class RenderedPage:
    """One extracted page of a PdfDocument, cached in the asset store."""
    page_number: int  # 1-based
    thumbnail_url: str
    high_res_url: str

    @classmethod
    def from_storage(cls, row: Dict[str, Any]) -> "RenderedPage":
        return cls(
            page_number=int(row["page_number"]),
            thumbnail_url=row.get("thumbnail_url") or "",
            high_res_url=row.get("high_res_url") or "",
        )

    def to_storage(self) -> Dict[str, Any]:
        return {
            "page_number": self.page_number,
            "thumbnail_url": self.thumbnail_url,
            "high_res_url": self.high_res_url,
        }

    def to_api(self) -> Dict[str, Any]:
        return {
            "pageNumber": self.page_number,
            "thumbnailUrl": self.thumbnail_url,
            "highResUrl": self.high_res_url,
        }


@dataclass
class PdfDocument:
    """
    Upload-time metadata and per-page render cache for an imported PDF.

    The original file is never kept. `rendered_pages` only grows, and holds
    at most one entry per page number.
    """

    pdf_id: str = field(default_factory=_gen_pdf_id)
    file_name: str = ""
    file_size_bytes: int = 0
    total_pages: int = 0
    linked_page_id: Optional[str] = None
    rendered_pages: List[RenderedPage] = field(default_factory=list)
    created_at: str = field(default_factory=utc_iso)
    updated_at: str = field(default_factory=utc_iso)

    def validate(self) -> None:
        if self.total_pages < 1:
            raise ValueError("total_pages must be >= 1")
        seen = set()
        for rp in self.rendered_pages:
            if not (1 <= rp.page_number <= self.total_pages):
                raise ValueError(
                    f"rendered page {rp.page_number} outside [1, {self.total_pages}]"
                )
            if rp.page_number in seen:
                raise ValueError(f"Duplicate rendered page_number: {rp.page_number}")
            seen.add(rp.page_number)

    def find_rendered(self, page_number: int) -> Optional[RenderedPage]:
        return next((rp for rp in self.rendered_pages if rp.page_number == page_number), None)

    # ------------ storage layer ------------

    @classmethod
    def from_storage(cls, row: Dict[str, Any]) -> "PdfDocument":
        return cls(
            pdf_id=row["pdf_id"],
            file_name=row.get("file_name") or "",
            file_size_bytes=int(row.get("file_size_bytes") or 0),
            total_pages=int(row.get("total_pages") or 0),
            linked_page_id=row.get("linked_page_id") or None,
            rendered_pages=[RenderedPage.from_storage(r) for r in (row.get("rendered_pages") or [])],
            created_at=row.get("created_at") or utc_iso(),
            updated_at=row.get("updated_at") or utc_iso(),
        )

    def to_storage(self) -> Dict[str, Any]:
        self.validate()
        return {
            "pdf_id": self.pdf_id,
            "file_name": self.file_name,
            "file_size_bytes": self.file_size_bytes,
            "total_pages": self.total_pages,
            "linked_page_id": self.linked_page_id,
            "rendered_pages": [rp.to_storage() for rp in self.rendered_pages],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    # ------------ API layer ------------

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.pdf_id,
            "fileName": self.file_name,
            "fileSizeBytes": self.file_size_bytes,
            "totalPages": self.total_pages,
            "linkedPageId": self.linked_page_id,
            "renderedPages": [rp.to_api() for rp in self.rendered_pages],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def to_upload_summary(self) -> Dict[str, Any]:
        return {
            "pdfId": self.pdf_id,
            "fileName": self.file_name,
            "totalPages": self.total_pages,
            "fileSize": self.file_size_bytes,
        }
