"""
Conditional order registry.

Models the state kept between executions: a map of owners to their
conditional orders, plus the last time an error alert was sent.

The registry is loaded at the start of every run and written back as a
full snapshot at the end. Writes are last-writer-wins, so two overlapping
runs against the same network can discard each other's mutations; callers
must serialize runs per network.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, List, Optional

from dateutil import parser as date_parser

from cow_watchtower.storage.models import (
    ConditionalOrder,
    ConditionalOrderParams,
    Proof,
    RegistrySnapshot,
    normalize_address,
    normalize_hex,
)

if TYPE_CHECKING:
    from cow_watchtower.storage.repositories import StorageRepository

logger = logging.getLogger(__name__)

LAST_NOTIFIED_ERROR_STORAGE_KEY = "LAST_NOTIFIED_ERROR"


def get_orders_storage_key(network: str) -> str:
    """Storage key holding the registry snapshot for a network."""
    return f"CONDITIONAL_ORDER_REGISTRY_{network}"


class Registry:
    """
    Registry of conditional orders per owner.

    Invariant: an owner holds at most one conditional order per
    (value-equal) ConditionalOrderParams.

    Usage:
        registry = await Registry.load(storage, network="1")
        registry.add(tx, owner, params, proof=None, composable_cow=address)
        registry.flush(owner, new_root)
        await registry.write()
    """

    def __init__(
        self,
        owner_orders: Dict[str, List[ConditionalOrder]],
        storage: "StorageRepository",
        network: str,
        last_notified_error: Optional[datetime] = None,
    ) -> None:
        self.owner_orders = owner_orders
        self.storage = storage
        self.network = network
        self.last_notified_error = last_notified_error

    @classmethod
    async def load(cls, storage: "StorageRepository", network: str) -> "Registry":
        """
        Load the registry for a network from storage.

        A missing snapshot yields an empty registry. A snapshot that cannot
        be parsed raises, so a broken registry is never silently replaced.
        """
        raw = await storage.get_str(get_orders_storage_key(network))
        last_notified_error = await cls._load_last_notified_error(storage)

        if not raw:
            logger.info(f"No registry stored for network {network}, starting empty")
            return cls({}, storage, network, last_notified_error)

        snapshot = RegistrySnapshot.model_validate_json(raw)
        registry = cls(snapshot.owner_orders, storage, network, last_notified_error)
        logger.info(
            f"Loaded registry for network {network}: "
            f"{len(registry.owner_orders)} owners, {registry.num_orders} conditional orders"
        )
        return registry

    @staticmethod
    async def _load_last_notified_error(storage: "StorageRepository") -> Optional[datetime]:
        try:
            value = await storage.get_str(LAST_NOTIFIED_ERROR_STORAGE_KEY)
            if not value:
                return None
            parsed = date_parser.isoparse(value)
        except Exception as e:
            logger.warning(f"Could not read {LAST_NOTIFIED_ERROR_STORAGE_KEY}: {e}")
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def to_snapshot(self) -> RegistrySnapshot:
        return RegistrySnapshot(owner_orders=self.owner_orders)

    async def write(self) -> None:
        """Persist the registry snapshot (and the last alert time, if set)."""
        entries = {
            get_orders_storage_key(self.network): self.to_snapshot().model_dump_json(),
        }
        if self.last_notified_error is not None:
            entries[LAST_NOTIFIED_ERROR_STORAGE_KEY] = self.last_notified_error.isoformat()

        await self.storage.put_many(entries)
        logger.debug(f"Registry for network {self.network} written ({self.num_orders} conditional orders)")

    @property
    def num_orders(self) -> int:
        """Total number of conditional orders across all owners."""
        return sum(len(orders) for orders in self.owner_orders.values())

    def get_orders(self, owner: str) -> List[ConditionalOrder]:
        """Conditional orders of an owner (empty list when unknown)."""
        return self.owner_orders.get(normalize_address(owner), [])

    def add(
        self,
        tx: str,
        owner: str,
        params: ConditionalOrderParams,
        proof: Optional[Proof],
        composable_cow: str,
    ) -> bool:
        """
        Add a conditional order for an owner unless the same params already exist.

        Returns:
            True if added, False if value-equal params were already registered
        """
        owner = normalize_address(owner)
        conditional_orders = self.owner_orders.get(owner)

        if conditional_orders is None:
            logger.info(f"[register:add] Adding conditional order {params} to new owner {owner}. Tx: {tx}")
            conditional_orders = self.owner_orders[owner] = []
        elif any(order.params == params for order in conditional_orders):
            logger.info(f"[register:add] Conditional order {params} already registered for {owner}. Tx: {tx}")
            return False
        else:
            logger.info(f"[register:add] Adding conditional order {params} to existing owner {owner}. Tx: {tx}")

        conditional_orders.append(
            ConditionalOrder(
                tx=tx,
                params=params,
                proof=proof,
                composable_cow=composable_cow,
            )
        )
        return True

    def flush(self, owner: str, root) -> int:
        """
        Remove an owner's merkle-authorized orders that are not under root.

        Orders without a proof are never flushed.

        Returns:
            Number of conditional orders removed
        """
        owner = normalize_address(owner)
        root = normalize_hex(root)
        conditional_orders = self.owner_orders.get(owner)
        if not conditional_orders:
            return 0

        kept = [
            order for order in conditional_orders
            if order.proof is None or order.proof.merkle_root == root
        ]
        removed = len(conditional_orders) - len(kept)
        conditional_orders[:] = kept

        if removed:
            logger.info(f"[register:flush] Flushed {removed} conditional orders of {owner} not under root {root}")
        return removed

    def remove(self, owner: str, conditional_order: ConditionalOrder) -> bool:
        """Remove a specific conditional order. Returns True if it was present."""
        conditional_orders = self.owner_orders.get(normalize_address(owner), [])
        for i, order in enumerate(conditional_orders):
            if order is conditional_order:
                del conditional_orders[i]
                return True
        return False

    def find_order(self, owner: str, order_uid: str) -> Optional[ConditionalOrder]:
        """Conditional order of an owner that produced the given order uid, if any."""
        order_uid = normalize_hex(order_uid)
        for conditional_order in self.get_orders(owner):
            if order_uid in conditional_order.orders:
                return conditional_order
        return None
