# services/api/routers/groups.py
from __future__ import annotations

import logging

from fastapi import APIRouter, status

from core.errors import BadRequest, NotFound
from models import Group
from routers.deps import Storage
from schemas.group import GroupCreate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/groups", tags=["groups"])


@router.get("")
async def list_groups(storage: Storage):
    """
    List all groups in insertion order.

    A store failure is answered with 503 (StoreError) rather than left
    without a response.
    """
    groups = [Group.from_storage(row).to_api() for row in storage.list_groups()]
    return {"message": "List of all the groups", "groups": groups}


@router.get("/{group_id}")
async def get_group(group_id: str, storage: Storage):
    row = storage.get_group(group_id)
    if not row:
        raise NotFound("Group not found")
    return {"message": "Group found", "group": Group.from_storage(row).to_api()}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_group(body: GroupCreate, storage: Storage):
    """
    Create a student group. Groups normally come from the seed script;
    this is the admin path for adding more.
    """
    try:
        group = Group.from_api(body.model_dump())
    except ValueError as e:
        raise BadRequest(str(e)) from e
    storage.create_group(group.to_storage())
    logger.info(f"Created group {group.group_id} ({group.name!r})")
    return {"message": "Group created successfully", "group": group.to_api()}
