"""
Ingestion test fixtures.

Log builders come from the shared root conftest (the ``logs`` fixture).
"""
from unittest.mock import MagicMock

import pytest

from cow_watchtower.storage.models import ConditionalOrderParams
from cow_watchtower.storage.registry import Registry


@pytest.fixture
def registry() -> Registry:
    return Registry({}, storage=MagicMock(), network="1")


@pytest.fixture
def make_params():
    def _make(salt: int = 1) -> ConditionalOrderParams:
        return ConditionalOrderParams(
            handler="0x" + "cc" * 20,
            salt="0x" + salt.to_bytes(32, "big").hex(),
            static_input="0x" + "ab" * 32,
        )

    return _make
