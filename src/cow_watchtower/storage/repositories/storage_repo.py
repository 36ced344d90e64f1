"""
Key/value storage repository.

The registry is persisted as whole-value snapshots keyed by name
(one per network, plus the last alert timestamp). Writes overwrite
the previous value; there is no merge and no version check.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Optional

from cow_watchtower.storage.models import StorageEntry

if TYPE_CHECKING:
    from cow_watchtower.storage.database import Database

logger = logging.getLogger(__name__)

_SELECT = "SELECT key, value, updated_at FROM watchtower_storage WHERE key = $1"

_UPSERT = """
    INSERT INTO watchtower_storage (key, value, updated_at)
    VALUES ($1, $2, NOW())
    ON CONFLICT (key) DO UPDATE
    SET value = EXCLUDED.value, updated_at = EXCLUDED.updated_at
"""


class StorageRepository:
    """
    Repository for the watchtower_storage key/value table.

    Usage:
        storage = StorageRepository(db)
        raw = await storage.get_str("CONDITIONAL_ORDER_REGISTRY_1")
        await storage.put_many({"CONDITIONAL_ORDER_REGISTRY_1": raw})
    """

    def __init__(self, db: "Database") -> None:
        self.db = db

    async def get_entry(self, key: str) -> Optional[StorageEntry]:
        record = await self.db.fetchrow(_SELECT, key)
        if record is None:
            return None
        return StorageEntry(**dict(record))

    async def get_str(self, key: str) -> Optional[str]:
        """Return the stored value for key, or None if absent."""
        entry = await self.get_entry(key)
        return entry.value if entry is not None else None

    async def put_many(self, entries: Dict[str, str]) -> None:
        """Overwrite several keys in a single transaction."""
        async with self.db.transaction() as conn:
            for key, value in entries.items():
                await conn.execute(_UPSERT, key, value)
        logger.debug(f"Wrote {len(entries)} storage keys: {', '.join(entries)}")
