"""
Seed script for local testing of RootStudy.
Creates the demo student groups so the editor has somewhere to publish.

Usage:
    python -m core.seed_local

Groups are matched by name, so running it twice does not duplicate them.
"""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from typing import List

from adapters.base import StorageAdapter
from models import Group
from settings import get_settings

DEMO_GROUPS = [
    {"name": "DSA Group", "memberCount": 30},
    {"name": "MERN Group", "memberCount": 45},
    {"name": "Hackathon Group", "memberCount": 50},
]


def seed_groups(adapter: StorageAdapter, groups=DEMO_GROUPS) -> List[str]:
    """Insert any demo group not already present. Returns the new ids."""
    existing = {(row.get("name") or "").strip() for row in adapter.list_groups()}
    created = []
    for data in groups:
        if data["name"] in existing:
            print(f"⏭️  {data['name']} already exists")
            continue
        group = Group.from_api(data)
        created.append(adapter.create_group(group.to_storage()))
        print(f"✅ Group created: {group.name} ({group.group_id}, {group.member_count} students)")
    return created


def seed():
    """Create sample data for testing."""
    from main import build_storage

    print("🌱 Seeding RootStudy...")

    settings = get_settings()
    print(f"📦 Using {settings.storage_backend} backend")
    adapter = build_storage(settings)

    created = seed_groups(adapter)

    print("\n" + "=" * 60)
    print(f"🎉 Seeding complete! {len(created)} group(s) created")
    print("=" * 60)
    for row in adapter.list_groups():
        print(f"   {row['group_id']}  {row['name']}")
    print()


if __name__ == "__main__":
    seed()
