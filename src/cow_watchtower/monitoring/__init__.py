"""
Monitoring Layer - error alerts and run tracing.

Public API:
    AlertManager - Rate-limited Slack alerts for failed runs
    RunSpan - Per-run trace id and timing
"""
from cow_watchtower.monitoring.alerting import DEFAULT_ALERT_PERIOD, AlertManager
from cow_watchtower.monitoring.tracing import RunSpan

__all__ = ["AlertManager", "DEFAULT_ALERT_PERIOD", "RunSpan"]
