"""
assets/store.py -- SQLAlchemy-backed, owner-scoped blob storage.

Pattern: Repository + Data Mapper. AssetStore is the repository; the
_row_to_* functions translate raw DB rows into domain dataclasses. Route
handlers never touch SQL directly.

Tenant boundary: every method takes owner_id and every statement filters on
it. There is deliberately no lookup by name alone, so a caller cannot reach
another user's asset even when the names collide.

Duplicate names: (name, owner_id) is not unique in the schema. get() returns
the newest row; delete() removes every row for the pair.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = AssetStore(engine)
    store.create(Asset(name="report.txt", owner_id=uid, data=b"hello"))
    asset = store.get("report.txt", uid)     # Asset or None
    rows = store.list_for_owner(uid)         # [AssetSummary, ...]
    store.delete("report.txt", uid)          # rows removed
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.engine import Engine

from assets.models import Asset, AssetSummary
from core.database import assets, from_db_timestamp, store_operation, to_db_timestamp, utcnow


class AssetStore:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create(self, asset: Asset) -> None:
        """Insert a new asset row. created_at defaults to now."""
        with store_operation("create_asset"), self.engine.begin() as conn:
            conn.execute(
                assets.insert().values(
                    name=asset.name,
                    uid=asset.owner_id,
                    data=asset.data,
                    created_at=to_db_timestamp(asset.created_at or utcnow()),
                )
            )

    def get(self, name: str, owner_id: int) -> Asset | None:
        """Return the newest asset called name owned by owner_id, or None."""
        with store_operation("get_asset"), self.engine.connect() as conn:
            row = conn.execute(
                assets.select()
                .where((assets.c.name == name) & (assets.c.uid == owner_id))
                .order_by(assets.c.created_at.desc(), assets.c.id.desc())
                .limit(1)
            ).fetchone()
        return _row_to_asset(row) if row is not None else None

    def list_for_owner(self, owner_id: int) -> list[AssetSummary]:
        """Return summaries (no bytes) of every asset owned by owner_id, oldest first."""
        query = (
            select(
                assets.c.name,
                assets.c.uid,
                assets.c.created_at,
                func.length(assets.c.data).label("size"),
            )
            .where(assets.c.uid == owner_id)
            .order_by(assets.c.created_at, assets.c.id)
        )
        with store_operation("list_assets"), self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_summary(r) for r in rows]

    def delete(self, name: str, owner_id: int) -> int:
        """Delete every asset called name owned by owner_id. Returns rows removed."""
        with store_operation("delete_asset"), self.engine.begin() as conn:
            removed = conn.execute(
                assets.delete().where((assets.c.name == name) & (assets.c.uid == owner_id))
            ).rowcount
        return removed


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_asset(row) -> Asset:
    return Asset(
        name=row.name,
        owner_id=row.uid,
        data=bytes(row.data),
        created_at=from_db_timestamp(row.created_at),
    )


def _row_to_summary(row) -> AssetSummary:
    return AssetSummary(
        name=row.name,
        owner_id=row.uid,
        size=row.size or 0,
        created_at=from_db_timestamp(row.created_at),
    )
