"""
Storage layer test fixtures.

No PostgreSQL is needed: the registry is tested against an in-memory
key/value store with the StorageRepository interface, and the repository
itself against a mocked Database.
"""
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from cow_watchtower.storage.models import ConditionalOrderParams, Proof
from cow_watchtower.storage.registry import Registry

HANDLER = "0x" + "cc" * 20


class InMemoryStorage:
    """Key/value store with the StorageRepository methods the registry uses."""

    def __init__(self, values: Optional[Dict[str, str]] = None) -> None:
        self.values: Dict[str, str] = dict(values or {})
        self.writes: List[Dict[str, str]] = []

    async def get_str(self, key: str) -> Optional[str]:
        return self.values.get(key)

    async def put_many(self, entries: Dict[str, str]) -> None:
        self.writes.append(dict(entries))
        self.values.update(entries)


@pytest.fixture
def make_storage():
    return InMemoryStorage


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def registry(storage) -> Registry:
    return Registry({}, storage, network="1")


@pytest.fixture
def make_params():
    """Factory for ConditionalOrderParams with a distinct salt."""

    def _make(salt: int = 1, handler: str = HANDLER, static_input: str = "0x") -> ConditionalOrderParams:
        return ConditionalOrderParams(
            handler=handler,
            salt="0x" + salt.to_bytes(32, "big").hex(),
            static_input=static_input,
        )

    return _make


@pytest.fixture
def make_proof():
    def _make(root_byte: int = 1, path: Optional[List[str]] = None) -> Proof:
        return Proof(merkle_root="0x" + bytes([root_byte]).hex() * 32, path=path or [])

    return _make


@pytest.fixture
def mock_db():
    """Mock Database with an async transaction context manager."""
    conn = MagicMock()
    conn.execute = AsyncMock(return_value=None)

    transaction = MagicMock()
    transaction.__aenter__ = AsyncMock(return_value=conn)
    transaction.__aexit__ = AsyncMock(return_value=False)

    db = MagicMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.execute = AsyncMock(return_value=None)
    db.transaction = MagicMock(return_value=transaction)
    db.conn = conn
    return db
