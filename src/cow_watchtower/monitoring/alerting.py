"""
Alert Manager for Slack notifications.

Sends an alert when a watchtower run fails, at most once per alert period.
The time of the last alert is kept in the registry (not in memory), since
every run is a fresh process.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_ALERT_PERIOD = timedelta(hours=2)


class AlertManager:
    """
    Sends Slack alerts for failed runs, rate limited by the last alert time.

    Usage:
        manager = AlertManager(slack_webhook_url="https://hooks.slack.com/...")

        if manager.should_notify(registry.last_notified_error):
            if manager.alert_execution_error("checkForAndPlaceOrder", "1", error):
                registry.last_notified_error = datetime.now(timezone.utc)
    """

    def __init__(
        self,
        slack_webhook_url: Optional[str] = None,
        alert_period: timedelta = DEFAULT_ALERT_PERIOD,
        _slack_api: Optional[Any] = None,  # For testing
    ) -> None:
        """
        Initialize the alert manager.

        Args:
            slack_webhook_url: Incoming webhook of the alert channel
            alert_period: Minimum time between two alerts
            _slack_api: Injected API client for testing
        """
        self._webhook_url = slack_webhook_url
        self._alert_period = alert_period
        self._slack_api = _slack_api

    @property
    def alert_period(self) -> timedelta:
        return self._alert_period

    def should_notify(
        self,
        last_notified: Optional[datetime],
        now: Optional[datetime] = None,
    ) -> bool:
        """True unless the last alert is more recent than the alert period."""
        if last_notified is None:
            return True
        now = now or datetime.now(timezone.utc)
        return now - last_notified >= self._alert_period

    def send_alert(self, title: str, message: str, priority: str = "high") -> bool:
        """Post an alert; True if Slack accepted it."""
        return self._post(format_alert(title, message, priority))

    def alert_execution_error(
        self,
        transaction_name: str,
        network: str,
        error: BaseException,
        run_id: Optional[str] = None,
    ) -> bool:
        """
        Send the alert for a failed run.

        Args:
            transaction_name: Action that failed (addContract, checkForAndPlaceOrder, ...)
            network: Network id of the run
            error: The error the run raised
            run_id: Trace id of the run, if any
        """
        lines = [
            f"Network: {network}",
            f"Error: {type(error).__name__}: {error}",
            f"Time: {datetime.now(timezone.utc).isoformat()}",
        ]
        if run_id:
            lines.append(f"Run: {run_id}")
        return self.send_alert(f"Error executing {transaction_name}", "\n".join(lines))

    def _post(self, text: str) -> bool:
        if self._slack_api is not None:
            try:
                self._slack_api.post_message(text=text)
            except Exception as e:
                logger.error(f"Slack API error: {e}")
                return False
            return True

        if not self._webhook_url:
            logger.warning("Slack webhook not configured, dropping alert")
            return False

        try:
            requests.post(self._webhook_url, json={"text": text}, timeout=10).raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to send Slack alert: {e}")
            return False

        logger.info(f"Sent Slack alert: {text.splitlines()[0]}")
        return True


_PRIORITY_MARKERS = {
    "critical": ":rotating_light:",
    "high": ":warning:",
}


def format_alert(title: str, message: str, priority: str = "high") -> str:
    """Slack mrkdwn: bold title, prefixed by the priority emoji if any."""
    marker = _PRIORITY_MARKERS.get(priority)
    header = f"{marker} *{title}*" if marker else f"*{title}*"
    return f"{header}\n\n{message.strip()}"
