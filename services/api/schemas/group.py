# services/api/schemas/group.py
from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Optional


class GroupCreate(BaseModel):
    """Payload to create a student group (seed/admin path)."""
    name: str = Field(..., min_length=1, max_length=200)
    image: Optional[str] = Field(None, description="Group image URL")
    memberCount: int = Field(50, ge=0, description="Number of students in the group")
