"""
Settlement reconciler.

Marks submitted orders as FILLED when the settlement contract emits a
Trade for them. Only uids the registry already tracks are touched; trades
of other owners or orders are ignored.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cow_watchtower.chain.contracts import TRADE_TOPIC, decode_trade, topic0
from cow_watchtower.chain.models import Log
from cow_watchtower.storage.models import OrderStatus

if TYPE_CHECKING:
    from cow_watchtower.storage.registry import Registry

logger = logging.getLogger(__name__)


def process_settlement(tx: str, log: Log, registry: "Registry") -> bool:
    """
    Apply one settlement log to the registry.

    Returns:
        True if the log could not be processed
    """
    if topic0(log) != TRADE_TOPIC:
        return False

    try:
        trade = decode_trade(log)
    except Exception as e:
        logger.error(f"[checkForSettlement] Failed to decode Trade log {log.log_index} of tx {tx}: {e}")
        return True

    conditional_order = registry.find_order(trade.owner, trade.order_uid)
    if conditional_order is None:
        return False

    if conditional_order.orders[trade.order_uid] != OrderStatus.FILLED:
        conditional_order.orders[trade.order_uid] = OrderStatus.FILLED
        logger.info(
            f"[checkForSettlement] Order {trade.order_uid} of {trade.owner} filled. Tx: {tx}"
        )
    return False
