# services/api/adapters/sqlite/__init__.py
from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import (
    JSON,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
    event,
    insert,
    select,
    text,
    update,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.errors import NotFound, StoreError
from models import Attachment, Group, utc_iso

logger = logging.getLogger(__name__)

# ---- Engine (SQLite) with WAL & pragmas -------------------------------------

def _ensure_dir(path: str):
    d = os.path.dirname(path)
    if d and not os.path.isdir(d):
        os.makedirs(d, exist_ok=True)

def make_engine(db_url: str) -> Engine:
    # Create data dir if sqlite file
    if db_url.startswith("sqlite:///"):
        file_path = db_url.replace("sqlite:///", "", 1)
        _ensure_dir(file_path)

    engine = create_engine(db_url, future=True, pool_pre_ping=True)

    # Apply pragmas per-connection
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore
        if isinstance(dbapi_connection, sqlite3.Connection):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA synchronous=NORMAL;")
            cursor.execute("PRAGMA foreign_keys=ON;")
            cursor.close()

    return engine

# ---- Schema via SQLAlchemy Core ---------------------------------------------

metadata = MetaData()

# `seq` keeps insertion order; list endpoints never sort by anything else.
groups = Table(
    "groups",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("group_id", String, nullable=False, unique=True),
    Column("name", String, nullable=False),
    Column("image", Text),
    Column("member_count", Integer, nullable=False, default=50),
    Column("page_refs", JSON, nullable=False, default=list),
    Column("attachment_snapshot", JSON, nullable=False, default=list),
    Column("created_at", String, nullable=False),
    Column("updated_at", String, nullable=False),
)

pages = Table(
    "pages",
    metadata,
    Column("page_id", String, primary_key=True),
    Column("name", String, nullable=False),
    Column("preview_image", Text, nullable=False),
    Column("canvas_data", JSON),
    Column("transcription", Text, nullable=False, default=""),
    Column("attachments", JSON, nullable=False, default=list),
    Column("target_groups", JSON, nullable=False, default=list),
    Column("created_at", String, nullable=False),
)

pdf_documents = Table(
    "pdf_documents",
    metadata,
    Column("pdf_id", String, primary_key=True),
    Column("file_name", String, nullable=False),
    Column("file_size_bytes", Integer, nullable=False),
    Column("total_pages", Integer, nullable=False),
    Column("linked_page_id", String),
    Column("created_at", String, nullable=False),
    Column("updated_at", String, nullable=False),
)

pdf_rendered_pages = Table(
    "pdf_rendered_pages",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("pdf_id", String, ForeignKey("pdf_documents.pdf_id", ondelete="CASCADE"), nullable=False),
    Column("page_number", Integer, nullable=False),  # 1-based
    Column("thumbnail_url", Text, nullable=False),
    Column("high_res_url", Text, nullable=False),
    UniqueConstraint("pdf_id", "page_number", name="uq_rendered_pdf_page"),
)

Index("idx_rendered_pdf", pdf_rendered_pages.c.pdf_id)

_GROUP_COLS = [c for c in groups.c if c.name != "seq"]
_RENDERED_COLS = [
    pdf_rendered_pages.c.page_number,
    pdf_rendered_pages.c.thumbnail_url,
    pdf_rendered_pages.c.high_res_url,
]

# ---- Adapter implementation --------------------------------------------------

@dataclass(frozen=True)
class SqliteAdapter:
    """
    SQLAlchemy Core adapter. Named for its default URL; any SQLAlchemy
    database URL with JSON column support works (e.g. Postgres).
    """
    engine: Engine

    @classmethod
    def from_url(cls, db_url: str = "sqlite:///data/rootstudy.db") -> "SqliteAdapter":
        eng = make_engine(db_url)
        metadata.create_all(eng)
        return cls(engine=eng)

    @contextmanager
    def _tx(self) -> Iterator[Connection]:
        """Transaction scope; driver errors surface as StoreError."""
        try:
            with self.engine.begin() as conn:
                yield conn
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Database error: {str(e)}")
            raise StoreError(f"Database error: {e.__class__.__name__}") from e

    def ping(self) -> None:
        with self._tx() as conn:
            conn.execute(text("SELECT 1"))

    # Groups
    def list_groups(self) -> List[Dict[str, Any]]:
        with self._tx() as conn:
            rows = conn.execute(select(*_GROUP_COLS).order_by(groups.c.seq.asc())).mappings().all()
            return [dict(r) for r in rows]

    def get_group(self, group_id: str) -> Optional[Dict[str, Any]]:
        with self._tx() as conn:
            row = conn.execute(
                select(*_GROUP_COLS).where(groups.c.group_id == group_id)
            ).mappings().first()
            return dict(row) if row else None

    def create_group(self, row: Dict[str, Any]) -> str:
        with self._tx() as conn:
            conn.execute(insert(groups).values(**row))
        return row["group_id"]

    # Pages
    def get_page(self, page_id: str) -> Optional[Dict[str, Any]]:
        with self._tx() as conn:
            row = conn.execute(select(pages).where(pages.c.page_id == page_id)).mappings().first()
            return dict(row) if row else None

    # Page insert + group fan-out (atomic)
    def publish_page(self, page_row: Dict[str, Any]) -> List[str]:
        page_id = page_row["page_id"]
        attachments = [Attachment.from_storage(a) for a in page_row.get("attachments") or []]
        updated: List[str] = []
        with self._tx() as conn:
            conn.execute(insert(pages).values(**page_row))

            for gid in page_row.get("target_groups") or []:
                row = conn.execute(
                    select(*_GROUP_COLS).where(groups.c.group_id == gid).with_for_update()
                ).mappings().first()
                if not row:
                    logger.info(f"publish_page: group {gid} not found, skipping")
                    continue

                group = Group.from_storage(dict(row))
                group.receive_page(page_id, attachments)
                new_row = group.to_storage()
                conn.execute(
                    update(groups)
                    .where(groups.c.group_id == gid)
                    .values(
                        page_refs=new_row["page_refs"],
                        attachment_snapshot=new_row["attachment_snapshot"],
                        updated_at=new_row["updated_at"],
                    )
                )
                updated.append(gid)
        return updated

    # PDF documents
    def create_pdf_document(self, row: Dict[str, Any]) -> str:
        doc_row = {k: v for k, v in row.items() if k != "rendered_pages"}
        with self._tx() as conn:
            conn.execute(insert(pdf_documents).values(**doc_row))
            rendered = row.get("rendered_pages") or []
            if rendered:
                conn.execute(
                    pdf_rendered_pages.insert(),
                    [dict(pdf_id=row["pdf_id"], **r) for r in rendered],
                )
        return row["pdf_id"]

    def get_pdf_document(self, pdf_id: str) -> Optional[Dict[str, Any]]:
        with self._tx() as conn:
            doc = conn.execute(
                select(pdf_documents).where(pdf_documents.c.pdf_id == pdf_id)
            ).mappings().first()
            if not doc:
                return None
            rendered = conn.execute(
                select(*_RENDERED_COLS)
                .where(pdf_rendered_pages.c.pdf_id == pdf_id)
                .order_by(pdf_rendered_pages.c.seq.asc())
            ).mappings().all()
            out = dict(doc)
            out["rendered_pages"] = [dict(r) for r in rendered]
            return out

    def _find_rendered(self, conn: Connection, pdf_id: str, page_number: int) -> Optional[Dict[str, Any]]:
        row = conn.execute(
            select(*_RENDERED_COLS).where(
                pdf_rendered_pages.c.pdf_id == pdf_id,
                pdf_rendered_pages.c.page_number == page_number,
            )
        ).mappings().first()
        return dict(row) if row else None

    # Append rendered page (idempotent per page_number)
    def add_rendered_page(self, pdf_id: str, rendered: Dict[str, Any]) -> Dict[str, Any]:
        page_number = int(rendered["page_number"])
        try:
            with self._tx() as conn:
                exists = conn.execute(
                    select(pdf_documents.c.pdf_id).where(pdf_documents.c.pdf_id == pdf_id)
                ).first()
                if not exists:
                    raise NotFound("PDF document not found")

                existing = self._find_rendered(conn, pdf_id, page_number)
                if existing:
                    return existing

                conn.execute(
                    insert(pdf_rendered_pages).values(
                        pdf_id=pdf_id,
                        page_number=page_number,
                        thumbnail_url=rendered["thumbnail_url"],
                        high_res_url=rendered["high_res_url"],
                    )
                )
                conn.execute(
                    update(pdf_documents)
                    .where(pdf_documents.c.pdf_id == pdf_id)
                    .values(updated_at=utc_iso())
                )
        except IntegrityError:
            # a concurrent render of the same page won the insert
            with self._tx() as conn:
                return self._find_rendered(conn, pdf_id, page_number)
        return {
            "page_number": page_number,
            "thumbnail_url": rendered["thumbnail_url"],
            "high_res_url": rendered["high_res_url"],
        }
