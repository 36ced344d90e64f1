"""
Execution Layer - evaluate conditional orders, submit discrete orders,
reconcile settlements.

Public API:
    OrderPlacementService - Per-block evaluate-then-submit pass
    OrderBookClient, OrderBookAPIError - Order book HTTP client
    process_settlement - Trade logs into FILLED statuses

    Order normalization:
        Order, OrderDomain, normalize_order, compute_order_uid
        UnknownConstantError
"""
from cow_watchtower.execution.order_book import OrderBookAPIError, OrderBookClient, order_payload
from cow_watchtower.execution.order_uid import (
    Order,
    OrderBalance,
    OrderDomain,
    OrderKind,
    UnknownConstantError,
    compute_order_uid,
    normalize_order,
)
from cow_watchtower.execution.service import (
    OrderPlacementService,
    ProcessResult,
    SimulationOutcome,
    classify_revert,
)
from cow_watchtower.execution.settlement import process_settlement

__all__ = [
    "OrderBookAPIError",
    "OrderBookClient",
    "order_payload",
    "Order",
    "OrderBalance",
    "OrderDomain",
    "OrderKind",
    "UnknownConstantError",
    "compute_order_uid",
    "normalize_order",
    "OrderPlacementService",
    "ProcessResult",
    "SimulationOutcome",
    "classify_revert",
    "process_settlement",
]
