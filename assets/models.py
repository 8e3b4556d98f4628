"""
assets/models.py -- Domain dataclasses for stored assets.

These are pure data containers with zero logic. Persistence and owner
scoping live in assets/store.py.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Asset:
    """A named binary object owned by exactly one user.

    (name, owner_id) addresses the asset; the name alone means nothing.
    created_at is None before the record is written to the database.
    """

    name: str
    owner_id: int
    data: bytes
    created_at: Optional[datetime] = None


@dataclass
class AssetSummary:
    """Listing row: everything about an asset except its bytes."""

    name: str
    owner_id: int
    size: int
    created_at: datetime
