# services/api/models/group.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from uuid import uuid4

from .page import Attachment, utc_iso

DEFAULT_MEMBER_COUNT = 50


def _gen_group_id() -> str:
    return f"g-{uuid4().hex[:10]}"


@dataclass
class Group:
    """
    A recipient collection (usually a class) that receives published pages.

    `page_refs` and Page.target_groups describe the same many-to-many link
    from both sides; the publication workflow keeps them in step.

    `attachment_snapshot` holds the attachments of the most recent page sent
    to this group. Each publish overwrites it.
    """

    group_id: str = field(default_factory=_gen_group_id)
    name: str = ""
    image: Optional[str] = None
    member_count: int = DEFAULT_MEMBER_COUNT

    page_refs: List[str] = field(default_factory=list)
    attachment_snapshot: List[Attachment] = field(default_factory=list)

    created_at: str = field(default_factory=utc_iso)
    updated_at: str = field(default_factory=utc_iso)

    # --------------------
    # Validation
    # --------------------
    def validate(self) -> None:
        if not self.name.strip():
            raise ValueError("name is required")
        if self.member_count < 0:
            raise ValueError("member_count must be >= 0")
        if any(not pid for pid in self.page_refs):
            raise ValueError("page_refs must not contain empty IDs")

    # --------------------
    # Publication fan-out
    # --------------------
    def receive_page(self, page_id: str, attachments: List[Attachment]) -> None:
        """Record a newly published page on this group."""
        self.attachment_snapshot = list(attachments)
        self.page_refs.append(page_id)
        self.updated_at = utc_iso()

    # ------------ storage layer ------------

    @classmethod
    def from_storage(cls, row: Dict[str, Any]) -> "Group":
        g = cls(
            group_id=row.get("group_id") or _gen_group_id(),
            name=(row.get("name") or "").strip(),
            image=row.get("image") or None,
            member_count=int(row.get("member_count") if row.get("member_count") is not None else DEFAULT_MEMBER_COUNT),
            page_refs=[str(x) for x in (row.get("page_refs") or []) if x],
            attachment_snapshot=[Attachment.from_storage(a) for a in (row.get("attachment_snapshot") or [])],
            created_at=row.get("created_at") or utc_iso(),
            updated_at=row.get("updated_at") or utc_iso(),
        )
        return g

    def to_storage(self) -> Dict[str, Any]:
        self.validate()
        return {
            "group_id": self.group_id,
            "name": self.name,
            "image": self.image,
            "member_count": self.member_count,
            "page_refs": list(self.page_refs),
            "attachment_snapshot": [a.to_storage() for a in self.attachment_snapshot],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    # ------------ API layer ------------

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Group":
        member_count = data.get("memberCount")
        g = cls(
            name=(data.get("name") or "").strip(),
            image=data.get("image") or None,
            member_count=int(member_count) if member_count is not None else DEFAULT_MEMBER_COUNT,
        )
        g.validate()
        return g

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.group_id,
            "name": self.name,
            "image": self.image,
            "memberCount": self.member_count,
            "pageRefs": list(self.page_refs),
            "attachmentSnapshot": [a.to_api() for a in self.attachment_snapshot],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
