"""
JSON file storage adapter for RootStudy.
Simple file-based storage for quick demos and testing.
Not production-ready (no proper locking, not suitable for concurrent access).
"""
import json
import logging
from typing import List, Dict, Any, Optional
from pathlib import Path

from core.errors import NotFound, StoreError
from models import Attachment, Group, utc_iso

logger = logging.getLogger(__name__)


class JsonAdapter:
    """
    JSON file-based storage adapter.
    Stores data in separate JSON files under the data directory.
    Uses atomic file operations for basic consistency.

    There are no transactions across files: `publish_page` writes the page
    file first and the groups file second. A crash in between leaves a page
    whose target groups were not updated.
    """

    def __init__(self, data_dir: str = "data"):
        """
        Initialize the JSON adapter.

        Args:
            data_dir: Directory to store JSON files
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        # File paths
        self.groups_file = self.data_dir / "groups.json"
        self.pages_file = self.data_dir / "pages.json"
        self.pdf_documents_file = self.data_dir / "pdf_documents.json"

        # Initialize files if they don't exist
        for file in [self.groups_file, self.pages_file, self.pdf_documents_file]:
            if not file.exists():
                self._write_file(file, [])

    def _read_file(self, filepath: Path) -> List[Dict[str, Any]]:
        """Read and parse a JSON file."""
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return []
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt JSON store file {filepath}: {e}")
            raise StoreError(f"Corrupt store file: {filepath.name}") from e
        except OSError as e:
            raise StoreError(f"Cannot read store file: {filepath.name}") from e

    def _write_file(self, filepath: Path, data: List[Dict[str, Any]]) -> None:
        """Write data to a JSON file atomically."""
        try:
            # Write to temporary file first
            tmp_file = filepath.with_suffix(".tmp")
            with open(tmp_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False, default=str)

            # Atomic rename
            tmp_file.replace(filepath)
        except OSError as e:
            raise StoreError(f"Cannot write store file: {filepath.name}") from e

    def ping(self) -> None:
        """Store is reachable if the data directory is readable."""
        if not self.data_dir.is_dir():
            raise StoreError(f"Data directory missing: {self.data_dir}")
        self._read_file(self.groups_file)

    # ========== Groups ==========

    def list_groups(self) -> List[Dict[str, Any]]:
        """All groups, in the order they were written."""
        return self._read_file(self.groups_file)

    def get_group(self, group_id: str) -> Optional[Dict[str, Any]]:
        groups = self._read_file(self.groups_file)
        return next((g for g in groups if g["group_id"] == group_id), None)

    def create_group(self, row: Dict[str, Any]) -> str:
        groups = self._read_file(self.groups_file)
        groups.append(dict(row))
        self._write_file(self.groups_file, groups)
        return row["group_id"]

    # ========== Pages ==========

    def get_page(self, page_id: str) -> Optional[Dict[str, Any]]:
        pages = self._read_file(self.pages_file)
        return next((p for p in pages if p["page_id"] == page_id), None)

    def publish_page(self, page_row: Dict[str, Any]) -> List[str]:
        """Write the page, then overwrite/append on each resolvable group."""
        page_id = page_row["page_id"]

        pages = self._read_file(self.pages_file)
        pages.append(dict(page_row))
        self._write_file(self.pages_file, pages)

        attachments = [Attachment.from_storage(a) for a in page_row.get("attachments") or []]
        groups = self._read_file(self.groups_file)
        by_id = {g["group_id"]: i for i, g in enumerate(groups)}

        updated: List[str] = []
        for gid in page_row.get("target_groups") or []:
            idx = by_id.get(gid)
            if idx is None:
                logger.info(f"publish_page: group {gid} not found, skipping")
                continue
            group = Group.from_storage(groups[idx])
            group.receive_page(page_id, attachments)
            groups[idx] = group.to_storage()
            updated.append(gid)

        if updated:
            self._write_file(self.groups_file, groups)
        return updated

    # ========== PDF documents ==========

    def create_pdf_document(self, row: Dict[str, Any]) -> str:
        docs = self._read_file(self.pdf_documents_file)
        docs.append(dict(row, rendered_pages=list(row.get("rendered_pages") or [])))
        self._write_file(self.pdf_documents_file, docs)
        return row["pdf_id"]

    def get_pdf_document(self, pdf_id: str) -> Optional[Dict[str, Any]]:
        docs = self._read_file(self.pdf_documents_file)
        return next((d for d in docs if d["pdf_id"] == pdf_id), None)

    def add_rendered_page(self, pdf_id: str, rendered: Dict[str, Any]) -> Dict[str, Any]:
        """Append a rendered page unless that page number is already cached."""
        docs = self._read_file(self.pdf_documents_file)
        doc = next((d for d in docs if d["pdf_id"] == pdf_id), None)
        if not doc:
            raise NotFound("PDF document not found")

        page_number = int(rendered["page_number"])
        existing = next(
            (rp for rp in doc.get("rendered_pages") or [] if int(rp["page_number"]) == page_number),
            None,
        )
        if existing:
            return existing

        entry = {
            "page_number": page_number,
            "thumbnail_url": rendered["thumbnail_url"],
            "high_res_url": rendered["high_res_url"],
        }
        doc.setdefault("rendered_pages", []).append(entry)
        doc["updated_at"] = utc_iso()
        self._write_file(self.pdf_documents_file, docs)
        return entry
