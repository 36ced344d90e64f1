"""
Log processor for conditional order ingestion.

Turns ComposableCoW events into registry mutations:
    - ConditionalOrderCreated: register a single-authorized order
    - MerkleRootSet: supersede the owner's previous merkle batch, then
      register the orders whose proofs were emitted with the new root

Every log is processed in isolation: a log that fails to decode is logged
and reported as an error without affecting the other logs of the
transaction.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cow_watchtower.chain.contracts import (
    CONDITIONAL_ORDER_CREATED_TOPIC,
    MERKLE_ROOT_SET_TOPIC,
    decode_conditional_order_created,
    decode_merkle_root_set,
    topic0,
)
from cow_watchtower.chain.models import Log
from cow_watchtower.storage.models import Proof

if TYPE_CHECKING:
    from cow_watchtower.storage.registry import Registry

logger = logging.getLogger(__name__)


def register_new_order(tx: str, log: Log, registry: "Registry") -> bool:
    """
    Apply one log to the registry.

    Args:
        tx: Hash of the transaction that emitted the log
        log: The log, emitted by the authorizing contract
        registry: Registry to mutate

    Returns:
        True if processing the log failed, False otherwise (including
        logs that are not ComposableCoW events)
    """
    topic = topic0(log)
    try:
        if topic == CONDITIONAL_ORDER_CREATED_TOPIC:
            _process_conditional_order_created(tx, log, registry)
        elif topic == MERKLE_ROOT_SET_TOPIC:
            _process_merkle_root_set(tx, log, registry)
        return False
    except Exception as e:
        logger.error(
            f"[register_new_order] Failed to process log {log.log_index} of tx {tx} "
            f"from {log.address}: {e}"
        )
        return True


def _process_conditional_order_created(tx: str, log: Log, registry: "Registry") -> None:
    event = decode_conditional_order_created(log)
    registry.add(tx, event.owner, event.params, None, log.address)


def _process_merkle_root_set(tx: str, log: Log, registry: "Registry") -> None:
    event = decode_merkle_root_set(log)

    # A new root invalidates every order authorized under a previous one
    registry.flush(event.owner, event.root)

    if not event.proofs_emitted:
        logger.info(
            f"[register_new_order] Merkle root {event.root} set for {event.owner} "
            f"without emitted proofs (location {event.proof_location}). Tx: {tx}"
        )
        return

    for path, params in event.decode_proofs():
        registry.add(
            tx,
            event.owner,
            params,
            Proof(merkle_root=event.root, path=path),
            log.address,
        )
