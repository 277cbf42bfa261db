# services/api/core/pdf_service.py
"""
PDF import for the canvas editor.

A PdfDocument goes through `Uploaded -> (PageRendered)*`: upload validates
the file and records metadata only; each page is extracted and cached in the
asset store the first time the editor asks for it, and served from the cache
after that.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Tuple

import pypdfium2 as pdfium
from fastapi import UploadFile

from adapters.base import StorageAdapter
from core.asset_store import AssetStore
from core.errors import BadRequest, InvalidPage, NotFound, TooManyPages, UnsupportedType
from core.uploads import UploadScratch
from models import PdfDocument, RenderedPage

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"


def count_pages(path: Path) -> int:
    """Open the PDF with pdfium and return its page count."""
    try:
        pdf = pdfium.PdfDocument(str(path))
    except pdfium.PdfiumError as e:
        raise BadRequest(f"Could not read PDF: {e}") from e
    try:
        return len(pdf)
    finally:
        pdf.close()


def extract_page(src_path: Path, page_number: int, dest_path: Path) -> None:
    """
    Copy one page (1-based) of `src_path` into a standalone single-page PDF
    at `dest_path`.
    """
    try:
        src = pdfium.PdfDocument(str(src_path))
    except pdfium.PdfiumError as e:
        raise BadRequest(f"Could not read PDF: {e}") from e

    out = pdfium.PdfDocument.new()
    try:
        if page_number > len(src):
            raise InvalidPage(
                f"Uploaded PDF has only {len(src)} pages, cannot extract page {page_number}"
            )
        out.import_pages(src, [page_number - 1])
        out.save(str(dest_path))
    finally:
        out.close()
        src.close()


def parse_page_number(raw: Any) -> int:
    """Form values arrive as strings; "2" and "2.0" both mean page 2."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise BadRequest("PDF ID and page number are required")
    text = str(raw).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError as e:
        raise BadRequest(f"pageNumber must be a whole number, got {raw!r}") from e
    if not number.is_integer():
        raise BadRequest(f"pageNumber must be a whole number, got {raw!r}")
    return int(number)


class PdfService:
    def __init__(
        self,
        storage: StorageAdapter,
        assets: AssetStore,
        *,
        max_size_bytes: int,
        max_pages: int,
        tmp_dir: str,
    ):
        self.storage = storage
        self.assets = assets
        self.max_size_bytes = max_size_bytes
        self.max_pages = max_pages
        self.tmp_dir = tmp_dir

    @property
    def max_size_mb(self) -> int:
        return self.max_size_bytes // (1024 * 1024)

    async def upload_pdf(
        self,
        upload: Optional[UploadFile],
        *,
        linked_page_id: Optional[str] = None,
    ) -> PdfDocument:
        """
        Validate an uploaded PDF and record its metadata.

        Checks run in order: type, size, page count. The file itself is
        discarded once the page count is known.
        """
        if upload is None:
            raise BadRequest("No PDF file uploaded")

        if (upload.content_type or "").lower() != PDF_MIME_TYPE:
            raise UnsupportedType("Only PDF files are allowed")

        with UploadScratch(self.tmp_dir) as scratch:
            tmp = await scratch.save(
                upload,
                max_bytes=self.max_size_bytes,
                too_large_message=f"PDF file size must be less than {self.max_size_mb}MB",
            )
            total_pages = count_pages(tmp.path)

            if total_pages > self.max_pages:
                raise TooManyPages(f"PDF must have at most {self.max_pages} pages")

            doc = PdfDocument(
                file_name=tmp.filename,
                file_size_bytes=tmp.size,
                total_pages=total_pages,
                linked_page_id=linked_page_id or None,
            )
            self.storage.create_pdf_document(doc.to_storage())

        logger.info(
            f"PDF uploaded pdf_id={doc.pdf_id} file={doc.file_name!r} "
            f"pages={doc.total_pages} size={doc.file_size_bytes}"
        )
        return doc

    def get_pdf_document(self, pdf_id: str) -> PdfDocument:
        row = self.storage.get_pdf_document(pdf_id)
        if not row:
            raise NotFound("PDF document not found")
        return PdfDocument.from_storage(row)

    async def render_page(
        self,
        pdf_id: Optional[str],
        page_number: Any,
        upload: Optional[UploadFile],
    ) -> Tuple[RenderedPage, bool]:
        """
        Extract one page of a previously uploaded PDF and cache it.

        Returns (entry, cached). When the page was rendered before, the
        cached entry comes back and nothing is extracted or uploaded.
        """
        if not pdf_id:
            raise BadRequest("PDF ID and page number are required")
        number = parse_page_number(page_number)
        if upload is None:
            raise BadRequest("No PDF file uploaded")

        doc = self.get_pdf_document(pdf_id)

        if number < 1 or number > doc.total_pages:
            raise InvalidPage(f"Invalid page number. PDF has {doc.total_pages} pages")

        existing = doc.find_rendered(number)
        if existing:
            logger.info(f"Page {number} of {pdf_id} already rendered, serving cached entry")
            return existing, True

        with UploadScratch(self.tmp_dir) as scratch:
            tmp = await scratch.save(
                upload,
                max_bytes=self.max_size_bytes,
                too_large_message=f"PDF file size must be less than {self.max_size_mb}MB",
            )
            page_path = scratch.new_path(f"-page{number}.pdf")
            extract_page(tmp.path, number, page_path)

            asset = await self.assets.store(page_path, mime_type=PDF_MIME_TYPE)

        # Both URLs point at the same single-page PDF; the editor rasterises
        # it at thumbnail or full size itself.
        stored = self.storage.add_rendered_page(
            pdf_id,
            RenderedPage(
                page_number=number,
                thumbnail_url=asset.url,
                high_res_url=asset.url,
            ).to_storage(),
        )
        logger.info(f"Rendered page {number} of {pdf_id} -> {asset.url}")
        return RenderedPage.from_storage(stored), False
