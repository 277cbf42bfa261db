"""
Tests for PDF import: upload validation and per-page rendering.

Run with: pytest tests/test_pdf_service.py -v
"""
import asyncio

import pypdfium2 as pdfium
import pytest

from core.errors import BadRequest, InvalidPage, NotFound, StorageError, TooLarge, TooManyPages, UnsupportedType
from core.pdf_service import PdfService, parse_page_number


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def service(storage, assets, tmp_uploads):
    return PdfService(
        storage,
        assets,
        max_size_bytes=25 * 1024 * 1024,
        max_pages=50,
        tmp_dir=str(tmp_uploads),
    )


@pytest.fixture
def pdf_upload(pdf_bytes, upload_factory):
    def _make(pages: int, filename: str = "notes.pdf"):
        return upload_factory(pdf_bytes(pages), filename, "application/pdf")

    return _make


class TestUploadPdf:
    @pytest.mark.parametrize("pages", [1, 7, 50])
    def test_page_count_round_trip(self, service, storage, pdf_upload, pages):
        """The stored page count matches the file's real page count."""
        doc = run(service.upload_pdf(pdf_upload(pages)))
        assert doc.total_pages == pages
        assert storage.get_pdf_document(doc.pdf_id)["total_pages"] == pages

    def test_metadata(self, service, pdf_bytes, upload_factory):
        """File name, size and linked page id are recorded; nothing is rendered yet."""
        data = pdf_bytes(3)
        doc = run(service.upload_pdf(upload_factory(data, "notes.pdf", "application/pdf"), linked_page_id="p-123"))
        assert doc.file_name == "notes.pdf"
        assert doc.file_size_bytes == len(data)
        assert doc.linked_page_id == "p-123"
        assert doc.rendered_pages == []

    def test_fifty_one_pages_rejected(self, service, pdf_upload, storage):
        """One page over the limit is rejected with TooManyPages."""
        with pytest.raises(TooManyPages) as exc:
            run(service.upload_pdf(pdf_upload(51)))
        assert exc.value.status_code == 400
        assert "50 pages" in exc.value.message

    def test_missing_file(self, service):
        """No file at all is a BadRequest."""
        with pytest.raises(BadRequest):
            run(service.upload_pdf(None))

    def test_wrong_type(self, service, upload_factory, pdf_bytes):
        """Non-PDF content types are rejected before reading the body."""
        with pytest.raises(UnsupportedType):
            run(service.upload_pdf(upload_factory(pdf_bytes(1), "notes.png", "image/png")))

    def test_26_mib_rejected(self, service, upload_factory, tmp_uploads):
        """A 26 MiB upload fails with TooLarge and leaves no temp file behind."""
        big = b"%PDF-1.4\n" + b"0" * (26 * 1024 * 1024)
        with pytest.raises(TooLarge) as exc:
            run(service.upload_pdf(upload_factory(big, "big.pdf", "application/pdf")))
        assert exc.value.message == "PDF file size must be less than 25MB"
        assert list(tmp_uploads.iterdir()) == []

    def test_unparseable_pdf(self, service, upload_factory, tmp_uploads):
        """Garbage with a PDF content type is a BadRequest."""
        with pytest.raises(BadRequest):
            run(service.upload_pdf(upload_factory(b"not a pdf", "fake.pdf", "application/pdf")))
        assert list(tmp_uploads.iterdir()) == []

    def test_temp_file_removed(self, service, pdf_upload, tmp_uploads):
        """The original binary is discarded after upload."""
        run(service.upload_pdf(pdf_upload(2)))
        assert list(tmp_uploads.iterdir()) == []


class TestRenderPage:
    def test_render_stores_single_page_pdf(self, service, assets, pdf_upload):
        """The extracted page is uploaded as a one-page PDF and recorded."""
        doc = run(service.upload_pdf(pdf_upload(4)))

        rendered, cached = run(service.render_page(doc.pdf_id, "3", pdf_upload(4)))

        assert cached is False
        assert rendered.page_number == 3
        assert rendered.thumbnail_url == rendered.high_res_url
        assert len(assets.uploads) == 1
        assert assets.uploads[0]["mime_type"] == "application/pdf"

        page_pdf = pdfium.PdfDocument(assets.uploads[0]["data"])
        try:
            assert len(page_pdf) == 1
        finally:
            page_pdf.close()

        stored = service.get_pdf_document(doc.pdf_id)
        assert [rp.page_number for rp in stored.rendered_pages] == [3]

    def test_render_is_idempotent(self, service, assets, pdf_upload):
        """A second render of the same page serves the cached entry and uploads nothing."""
        doc = run(service.upload_pdf(pdf_upload(4)))

        first, _ = run(service.render_page(doc.pdf_id, 2, pdf_upload(4)))
        second, cached = run(service.render_page(doc.pdf_id, 2, pdf_upload(4)))

        assert cached is True
        assert second == first
        assert len(assets.uploads) == 1
        assert len(service.get_pdf_document(doc.pdf_id).rendered_pages) == 1

    @pytest.mark.parametrize("page_number", [0, 5, -1])
    def test_invalid_page_writes_nothing(self, service, assets, pdf_upload, page_number):
        """Out-of-range page numbers fail without touching storage or the asset store."""
        doc = run(service.upload_pdf(pdf_upload(4)))

        with pytest.raises(InvalidPage) as exc:
            run(service.render_page(doc.pdf_id, page_number, pdf_upload(4)))

        assert exc.value.message == "Invalid page number. PDF has 4 pages"
        assert assets.uploads == []
        assert service.get_pdf_document(doc.pdf_id).rendered_pages == []

    def test_unknown_pdf(self, service, pdf_upload):
        """An unknown pdfId is NotFound."""
        with pytest.raises(NotFound):
            run(service.render_page("pdf-missing", 1, pdf_upload(1)))

    def test_missing_fields(self, service, pdf_upload):
        """pdfId, pageNumber and the file are all required."""
        with pytest.raises(BadRequest):
            run(service.render_page(None, 1, pdf_upload(1)))
        with pytest.raises(BadRequest):
            run(service.render_page("pdf-x", None, pdf_upload(1)))
        with pytest.raises(BadRequest):
            run(service.render_page("pdf-x", 1, None))

    def test_storage_failure(self, storage, make_assets, pdf_upload, tmp_uploads):
        """A failed asset upload is a StorageError and records nothing."""
        failing = make_assets(fail_after=0)
        service = PdfService(storage, failing, max_size_bytes=25 * 1024 * 1024, max_pages=50, tmp_dir=str(tmp_uploads))
        doc = run(service.upload_pdf(pdf_upload(2)))

        with pytest.raises(StorageError):
            run(service.render_page(doc.pdf_id, 1, pdf_upload(2)))

        assert service.get_pdf_document(doc.pdf_id).rendered_pages == []
        assert list(tmp_uploads.iterdir()) == []

    def test_reuploaded_file_too_short(self, service, pdf_upload):
        """If the re-sent file has fewer pages than recorded, extraction fails cleanly."""
        doc = run(service.upload_pdf(pdf_upload(4)))
        with pytest.raises(InvalidPage):
            run(service.render_page(doc.pdf_id, 4, pdf_upload(2)))


class TestParsePageNumber:
    def test_accepts_strings_and_ints(self):
        """Form values arrive as strings."""
        assert parse_page_number("7") == 7
        assert parse_page_number(" 3 ") == 3
        assert parse_page_number(2) == 2

    def test_rejects_garbage(self):
        """Non-integers are a BadRequest."""
        with pytest.raises(BadRequest):
            parse_page_number("two")
        with pytest.raises(BadRequest):
            parse_page_number("")

    def test_whole_number_floats(self):
        """Integral decimals from number inputs name the same page."""
        assert parse_page_number("2.0") == 2
        assert parse_page_number(" 4.00 ") == 4
        assert parse_page_number(3.0) == 3

    def test_fractional_rejected(self):
        """A fractional page number is a BadRequest, never truncated."""
        with pytest.raises(BadRequest) as exc:
            parse_page_number("2.5")
        assert exc.value.message == "pageNumber must be a whole number, got '2.5'"
        with pytest.raises(BadRequest):
            parse_page_number("nan")
