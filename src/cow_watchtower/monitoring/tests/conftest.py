"""
Monitoring test fixtures.

Slack is never contacted: tests inject a mock API client.
"""
from unittest.mock import MagicMock

import pytest

from cow_watchtower.monitoring.alerting import AlertManager


@pytest.fixture
def mock_slack_api():
    api = MagicMock()
    api.post_message = MagicMock(return_value=None)
    return api


@pytest.fixture
def alert_manager(mock_slack_api) -> AlertManager:
    return AlertManager(slack_webhook_url="https://hooks.slack.com/services/test", _slack_api=mock_slack_api)
