"""
Per-run execution context.

Every action run starts by loading the registry for its network and
resolving its notification settings, and ends by writing the registry
back. Errors that escape a run go through handle_execution_error, which
alerts (rate limited) and re-raises.
"""
from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Mapping, NoReturn, Optional

from cow_watchtower.monitoring.alerting import AlertManager
from cow_watchtower.monitoring.tracing import RunSpan
from cow_watchtower.storage.registry import Registry

if TYPE_CHECKING:
    from cow_watchtower.storage.repositories import StorageRepository

logger = logging.getLogger(__name__)

NOTIFICATIONS_ENABLED_SECRET = "NOTIFICATIONS_ENABLED"
SLACK_WEBHOOK_URL_SECRET = "SLACK_WEBHOOK_URL"


class ConfigurationError(Exception):
    """Raised when a required secret or setting is missing."""

    pass


def notifications_enabled(secrets: Mapping[str, str]) -> bool:
    """Notifications are on unless explicitly set to "false"."""
    value = secrets.get(NOTIFICATIONS_ENABLED_SECRET)
    return value != "false" if value else True


class ExecutionContext:
    """
    State shared by one action run.

    Usage:
        context = await ExecutionContext.create("addContract", "1", storage)
        try:
            ...mutate context.registry...
            ok = await context.write_registry()
        except Exception as e:
            await context.handle_execution_error(e)
    """

    def __init__(
        self,
        transaction_name: str,
        network: str,
        registry: Registry,
        notifications_enabled: bool,
        alert_manager: Optional[AlertManager],
        span: RunSpan,
    ) -> None:
        self.transaction_name = transaction_name
        self.network = network
        self.registry = registry
        self.notifications_enabled = notifications_enabled
        self.alert_manager = alert_manager
        self.span = span

    @classmethod
    async def create(
        cls,
        transaction_name: str,
        network: str,
        storage: "StorageRepository",
        secrets: Optional[Mapping[str, str]] = None,
        alert_manager: Optional[AlertManager] = None,
    ) -> "ExecutionContext":
        """
        Load the registry and resolve notification settings.

        Args:
            transaction_name: Action name, used in logs and alerts
            network: Network id
            storage: Key/value storage holding the registry
            secrets: Secret lookup (defaults to the environment)
            alert_manager: Pre-built alert manager (tests inject one)

        Raises:
            ConfigurationError: If notifications are enabled without SLACK_WEBHOOK_URL
        """
        secrets = os.environ if secrets is None else secrets

        enabled = notifications_enabled(secrets)
        if enabled and alert_manager is None:
            webhook_url = secrets.get(SLACK_WEBHOOK_URL_SECRET)
            if not webhook_url:
                raise ConfigurationError(
                    f"{SLACK_WEBHOOK_URL_SECRET} secret is required when "
                    f"{NOTIFICATIONS_ENABLED_SECRET} is true"
                )
            alert_manager = AlertManager(slack_webhook_url=webhook_url)
        if not enabled:
            alert_manager = None

        registry = await Registry.load(storage, network)
        span = RunSpan.start(transaction_name, network)

        return cls(
            transaction_name=transaction_name,
            network=network,
            registry=registry,
            notifications_enabled=enabled,
            alert_manager=alert_manager,
            span=span,
        )

    async def write_registry(self) -> bool:
        """Persist the registry. Returns False (after logging) on failure."""
        try:
            await self.registry.write()
            return True
        except Exception as e:
            logger.error(f"[{self.transaction_name}] Error writing registry: {e}")
            return False

    def _notify(self, error: BaseException) -> bool:
        if not self.notifications_enabled or self.alert_manager is None:
            logger.info(f"[{self.transaction_name}] Notifications disabled, not alerting")
            return False

        if not self.alert_manager.should_notify(self.registry.last_notified_error):
            logger.warning(
                f"[{self.transaction_name}] Last alert sent at "
                f"{self.registry.last_notified_error.isoformat()}, not alerting again yet"
            )
            return False

        return self.alert_manager.alert_execution_error(
            self.transaction_name, self.network, error, run_id=self.span.run_id,
        )

    async def handle_execution_error(self, error: BaseException) -> NoReturn:
        """
        Alert about a failed run (rate limited), record the alert time, and
        re-raise the original error.
        """
        self.span.finish(error)
        try:
            if self._notify(error):
                self.registry.last_notified_error = datetime.now(timezone.utc)
                await self.write_registry()
        except Exception as e:
            logger.error(f"[{self.transaction_name}] Error sending alert: {e}")

        raise error
