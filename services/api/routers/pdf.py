# services/api/routers/pdf.py
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, File, Form, UploadFile

from routers.deps import Pdfs

router = APIRouter(prefix="/api/pdf", tags=["pdf"])


@router.post("/upload")
async def upload_pdf(
    pdfs: Pdfs,
    pdf: Optional[UploadFile] = File(None),
    projectId: Optional[str] = Form(None),
) -> dict[str, Any]:
    """Validate a PDF (type, size, page count) and record its metadata."""
    doc = await pdfs.upload_pdf(pdf, linked_page_id=projectId)
    return {
        "success": True,
        "message": "PDF uploaded successfully",
        "data": doc.to_upload_summary(),
    }


@router.post("/render-page")
async def render_page(
    pdfs: Pdfs,
    pdf: Optional[UploadFile] = File(None),
    pdfId: Optional[str] = Form(None),
    pageNumber: Optional[str] = Form(None),
    quality: Optional[str] = Form(None),
) -> dict[str, Any]:
    """
    Extract one page of an uploaded PDF and cache it.

    The client sends the original file again; `quality` is accepted for
    compatibility and ignored.
    """
    rendered, cached = await pdfs.render_page(pdfId, pageNumber, pdf)
    return {
        "success": True,
        "message": "Page already rendered" if cached else "Page rendered successfully",
        "data": rendered.to_api(),
    }


@router.get("/{pdf_id}")
async def get_pdf_document(pdf_id: str, pdfs: Pdfs) -> dict[str, Any]:
    doc = pdfs.get_pdf_document(pdf_id)
    return {"success": True, "data": doc.to_api()}
