"""
Storage adapter interface for RootStudy.
Defines the contract that all storage backends must implement.
"""

from typing import Protocol, List, Dict, Any, Optional


class StorageAdapter(Protocol):
    """
    Protocol defining the interface for all storage adapters.

    This allows swapping between SQLite/Postgres (SQLAlchemy) and the JSON
    file backend without changing the router or service code.

    Adapters speak plain dicts in the storage shape produced by
    `models.*.to_storage()`. Missing entities on write paths raise
    `core.errors.NotFound`; connectivity failures raise `core.errors.StoreError`.
    """

    # ========== Health ==========

    def ping(self) -> None:
        """
        Cheap round-trip to the backing store.
        Raises StoreError when the store is unreachable.
        """
        ...

    # ========== Groups ==========

    def list_groups(self) -> List[Dict[str, Any]]:
        """
        Return all groups in insertion order (no explicit sort).
        """
        ...

    def get_group(self, group_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a group row by id, or None if not found.
        """
        ...

    def create_group(self, row: Dict[str, Any]) -> str:
        """
        Insert a new group (seed/admin path).

        Returns:
            The group_id from the row.
        """
        ...

    # ========== Pages ==========

    def get_page(self, page_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a published page by id, or None if not found.
        """
        ...

    def publish_page(self, page_row: Dict[str, Any]) -> List[str]:
        """
        Persist a new page and fan it out to its target groups.

        For every id in page_row["target_groups"] that resolves to a group:
            - attachment_snapshot is overwritten with page_row["attachments"]
            - page_id is appended to page_refs
        Ids that do not resolve are skipped.

        Implementations that support transactions must do the page insert
        and every group update in one transaction. Implementations that do
        not must write the page first, then the groups.

        Returns:
            Ids of the groups that were updated, in target order.
        """
        ...

    # ========== PDF documents ==========

    def create_pdf_document(self, row: Dict[str, Any]) -> str:
        """
        Insert PDF metadata captured at upload time.

        Returns:
            The pdf_id from the row.
        """
        ...

    def get_pdf_document(self, pdf_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch PDF metadata including `rendered_pages` (in render order),
        or None if not found.
        """
        ...

    def add_rendered_page(self, pdf_id: str, rendered: Dict[str, Any]) -> Dict[str, Any]:
        """
        Append a rendered page entry to a PDF document.

        Idempotent per page_number: if an entry already exists it is returned
        unchanged and nothing is written.

        Raises:
            NotFound if pdf_id does not exist.

        Returns:
            The stored entry (new or existing).
        """
        ...
