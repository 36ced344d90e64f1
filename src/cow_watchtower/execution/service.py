"""
OrderPlacementService - evaluate every conditional order and submit the
discrete orders that are tradeable now.

One pass per block:
    1. Validate the params with the handler's validator
    2. Simulate getTradeableOrderWithSignature (read-only)
    3. Classify reverts (not yet valid / no longer authorized / unexpected)
    4. Normalize the order, compute its OrderUid, and submit it once
    5. Drop the conditional orders marked for deletion, per owner

Failures of one conditional order never stop the pass; they are logged
and folded into the returned error flag.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from cow_watchtower.chain.client import SimulationRevertError
from cow_watchtower.chain.contracts import RevertReason, decode_revert_reason
from cow_watchtower.chain.models import TradeableOrder
from cow_watchtower.handlers.protocol import ValidationOutcome
from cow_watchtower.handlers.registry import HandlerValidatorRegistry, create_default_registry
from cow_watchtower.storage.models import ConditionalOrder, OrderStatus

from .order_book import OrderBookClient
from .order_uid import OrderDomain, compute_order_uid, normalize_order

if TYPE_CHECKING:
    from cow_watchtower.chain.client import ChainClient
    from cow_watchtower.chain.networks import NetworkConfig
    from cow_watchtower.storage.registry import Registry

logger = logging.getLogger(__name__)


class SimulationOutcome(Enum):
    """How a reverted getTradeableOrderWithSignature simulation is treated."""

    NOT_YET_VALID = "not_yet_valid"
    UNAUTHORIZED = "unauthorized"
    UNEXPECTED_ERROR = "unexpected_error"


def classify_revert(error: SimulationRevertError) -> SimulationOutcome:
    """Map a simulation revert to its outcome by custom error selector."""
    reason = decode_revert_reason(error.revert_data)
    if reason == RevertReason.ORDER_NOT_VALID:
        return SimulationOutcome.NOT_YET_VALID
    if reason in (RevertReason.SINGLE_ORDER_NOT_AUTHED, RevertReason.PROOF_NOT_AUTHED):
        return SimulationOutcome.UNAUTHORIZED
    return SimulationOutcome.UNEXPECTED_ERROR


@dataclass(frozen=True)
class ProcessResult:
    """Result of evaluating one conditional order."""

    error: bool = False
    delete_conditional_order: bool = False


class OrderPlacementService:
    """
    Evaluates the registry against the chain and posts tradeable orders.

    Usage:
        service = OrderPlacementService(
            chain=ChainClient.from_url(node_url),
            order_book=OrderBookClient(network.api_url),
            network=network,
        )

        has_errors = await service.run(registry, block_number)
    """

    def __init__(
        self,
        chain: "ChainClient",
        order_book: OrderBookClient,
        network: "NetworkConfig",
        validators: Optional[HandlerValidatorRegistry] = None,
    ) -> None:
        self._chain = chain
        self._order_book = order_book
        self._network = network
        self._domain = OrderDomain.for_network(network)
        self._validators = validators or create_default_registry()

    @property
    def domain(self) -> OrderDomain:
        return self._domain

    async def run(self, registry: "Registry", block_number: int) -> bool:
        """
        Evaluate every conditional order of every owner.

        Returns:
            True if any conditional order failed with an unexpected error
        """
        has_errors = False
        logger.info(
            f"[checkForAndPlaceOrder] Block {block_number}: checking "
            f"{registry.num_orders} conditional orders of {len(registry.owner_orders)} owners"
        )

        for owner, conditional_orders in list(registry.owner_orders.items()):
            to_delete: List[ConditionalOrder] = []

            for conditional_order in list(conditional_orders):
                result = await self.process_conditional_order(owner, conditional_order)
                has_errors = has_errors or result.error
                if result.delete_conditional_order:
                    to_delete.append(conditional_order)

                unfilled = conditional_order.unfilled_orders()
                if unfilled:
                    logger.info(
                        f"[checkForAndPlaceOrder] Unfilled orders of {conditional_order.params} "
                        f"({owner}): {', '.join(unfilled)}"
                    )

            for conditional_order in to_delete:
                registry.remove(owner, conditional_order)
                logger.info(
                    f"[checkForAndPlaceOrder] Delete conditional order {conditional_order.params} "
                    f"of {owner} (created in tx {conditional_order.tx})"
                )

        return has_errors

    async def process_conditional_order(
        self,
        owner: str,
        conditional_order: ConditionalOrder,
    ) -> ProcessResult:
        """Validate, simulate and (when tradeable) submit one conditional order."""
        params = conditional_order.params

        validation = await self._validators.validate(params)
        if not validation.is_success:
            error = validation.outcome == ValidationOutcome.FAILED
            log = logger.error if error else logger.info
            log(
                f"[checkForAndPlaceOrder] Validation of {params} ({owner}) "
                f"failed: {validation.reason}"
            )
            return ProcessResult(
                error=error,
                delete_conditional_order=validation.delete_conditional_order,
            )

        proof = conditional_order.proof.path if conditional_order.proof else []
        try:
            tradeable = await self._chain.get_tradeable_order_with_signature(
                conditional_order.composable_cow, owner, params, proof,
            )
        except SimulationRevertError as e:
            return self._handle_revert(owner, conditional_order, e)
        except Exception as e:
            logger.error(f"[checkForAndPlaceOrder] Simulation of {params} ({owner}) failed: {e}")
            return ProcessResult(error=True)

        try:
            await self._place_order(owner, conditional_order, tradeable)
        except Exception as e:
            logger.error(f"[checkForAndPlaceOrder] Could not place order of {params} ({owner}): {e}")
            return ProcessResult(error=True)

        return ProcessResult()

    def _handle_revert(
        self,
        owner: str,
        conditional_order: ConditionalOrder,
        error: SimulationRevertError,
    ) -> ProcessResult:
        outcome = classify_revert(error)
        params = conditional_order.params

        if outcome == SimulationOutcome.NOT_YET_VALID:
            logger.info(f"[checkForAndPlaceOrder] {params} ({owner}) is not tradeable yet")
            return ProcessResult()

        if outcome == SimulationOutcome.UNAUTHORIZED:
            logger.info(
                f"[checkForAndPlaceOrder] {params} ({owner}) is no longer authorized, "
                f"scheduling deletion"
            )
            return ProcessResult(delete_conditional_order=True)

        logger.error(
            f"[checkForAndPlaceOrder] Unexpected revert simulating {params} ({owner}): "
            f"{error} (data: {error.revert_data})"
        )
        return ProcessResult(error=True)

    async def _place_order(
        self,
        owner: str,
        conditional_order: ConditionalOrder,
        tradeable: TradeableOrder,
    ) -> None:
        order = normalize_order(tradeable.order)
        order_uid = compute_order_uid(self._domain, order, owner)

        status = conditional_order.orders.get(order_uid)
        if status is not None:
            logger.info(f"[checkForAndPlaceOrder] Order {order_uid} already {status.name}, skipping")
            return

        await self._order_book.post_order(order_uid, order, owner, tradeable.signature)
        conditional_order.orders[order_uid] = OrderStatus.SUBMITTED
        logger.info(f"[checkForAndPlaceOrder] Order {order_uid} of {owner} submitted")
