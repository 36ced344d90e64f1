"""
Integration test fixtures.

These fixtures wire the actions to a real PostgreSQL storage table and
verify cross-component interactions. The node, the order book and Slack
are mocked.
"""

import pytest

from cow_watchtower.core.actions import ActionRuntime
from cow_watchtower.monitoring.alerting import AlertManager
from cow_watchtower.storage import StorageRepository

# Mark all tests in this directory as integration tests
pytestmark = pytest.mark.integration


@pytest.fixture
def storage(db):
    return StorageRepository(db)


@pytest.fixture
def runtime(storage, mock_chain, http_client, mock_slack_api):
    return ActionRuntime(
        storage=storage,
        secrets={},
        chain=mock_chain,
        http_client=http_client,
        alert_manager=AlertManager(_slack_api=mock_slack_api),
    )
