"""
Core - execution context, action entry points and the local runner.

Public API:
    ExecutionContext, ConfigurationError - Per-run registry and notifications
    ActionRuntime - Shared collaborators (storage, RPC, order book)
    add_contract, check_for_and_place_order, check_for_settlement - Actions
    WatchtowerExecutionError - Raised when a run had failures
    LocalRunner - Block-by-block driver
"""
from cow_watchtower.core.actions import (
    ActionRuntime,
    WatchtowerExecutionError,
    add_contract,
    check_for_and_place_order,
    check_for_settlement,
)
from cow_watchtower.core.context import ConfigurationError, ExecutionContext
from cow_watchtower.core.runner import LocalRunner

__all__ = [
    "ActionRuntime",
    "WatchtowerExecutionError",
    "add_contract",
    "check_for_and_place_order",
    "check_for_settlement",
    "ConfigurationError",
    "ExecutionContext",
    "LocalRunner",
]
