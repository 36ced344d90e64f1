"""
Action entry points.

The host invokes one of these per event:
    - add_contract: a transaction emitted ComposableCoW events
    - check_for_and_place_order: a new block
    - check_for_settlement: a transaction emitted GPv2Settlement trades

Each run loads the registry, processes the event with per-item error
isolation, always writes the registry back, and raises one
WatchtowerExecutionError if anything failed.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Mapping, Optional

import httpx

from cow_watchtower.chain.client import ChainClient
from cow_watchtower.chain.models import BlockEvent, TransactionEvent
from cow_watchtower.chain.networks import NetworkConfig, get_network
from cow_watchtower.execution.order_book import OrderBookClient
from cow_watchtower.execution.service import OrderPlacementService
from cow_watchtower.execution.settlement import process_settlement
from cow_watchtower.handlers.registry import HandlerValidatorRegistry
from cow_watchtower.ingestion.processor import register_new_order
from cow_watchtower.monitoring.alerting import AlertManager
from cow_watchtower.storage.repositories import StorageRepository

from .context import ConfigurationError, ExecutionContext

logger = logging.getLogger(__name__)


class WatchtowerExecutionError(Exception):
    """Raised at the end of a run in which at least one item failed."""

    pass


@dataclass
class ActionRuntime:
    """
    Collaborators shared by the actions of one process.

    Attributes:
        storage: Key/value storage holding the registries
        secrets: Secret lookup (defaults to the environment)
        chain: RPC client; built from NODE_URL_{network} when not given
        dry_run: Log orders instead of posting them
        http_client: Injected httpx client for the order book (tests)
        validators: Handler validators (defaults to the built-in ones)
        alert_manager: Injected alert manager (tests)
    """

    storage: StorageRepository
    secrets: Optional[Mapping[str, str]] = None
    chain: Optional[ChainClient] = None
    dry_run: bool = False
    http_client: Optional[httpx.AsyncClient] = None
    validators: Optional[HandlerValidatorRegistry] = None
    alert_manager: Optional[AlertManager] = None
    _chains: Dict[str, ChainClient] = field(default_factory=dict, init=False, repr=False)

    @property
    def resolved_secrets(self) -> Mapping[str, str]:
        return os.environ if self.secrets is None else self.secrets

    async def create_context(self, transaction_name: str, network: str) -> ExecutionContext:
        return await ExecutionContext.create(
            transaction_name,
            network,
            self.storage,
            secrets=self.resolved_secrets,
            alert_manager=self.alert_manager,
        )

    def chain_for(self, network: str) -> ChainClient:
        """
        RPC client for a network.

        Raises:
            ConfigurationError: If NODE_URL_{network} is not set
        """
        if self.chain is not None:
            return self.chain
        if network not in self._chains:
            secrets = self.resolved_secrets
            url = secrets.get(f"NODE_URL_{network}")
            if not url:
                raise ConfigurationError(f"NODE_URL_{network} secret is required")
            self._chains[network] = ChainClient.from_url(
                url,
                user=secrets.get(f"NODE_USER_{network}"),
                password=secrets.get(f"NODE_PASSWORD_{network}"),
            )
        return self._chains[network]

    def order_book_for(self, network: NetworkConfig) -> OrderBookClient:
        return OrderBookClient(
            network.api_url,
            client=self.http_client,
            dry_run=self.dry_run or network.is_local,
        )


async def _run_action(
    runtime: ActionRuntime,
    transaction_name: str,
    network: str,
    description: str,
    process: Callable[[ExecutionContext], Awaitable[bool]],
) -> None:
    context = await runtime.create_context(transaction_name, network)

    try:
        has_errors = await process(context)
    except Exception as e:
        logger.error(f"[{transaction_name}] Unexpected error processing {description}: {e}")
        has_errors = True

    if not await context.write_registry():
        has_errors = True

    if has_errors:
        await context.handle_execution_error(
            WatchtowerExecutionError(f"[{transaction_name}] Error processing {description}")
        )

    context.span.finish()


async def add_contract(runtime: ActionRuntime, event: TransactionEvent) -> None:
    """
    Register the conditional orders created (or merkle roots set) in a transaction.

    Raises:
        UnsupportedNetworkError: For an unknown network id
        WatchtowerExecutionError: If any log failed or the registry could not be written
    """
    get_network(event.network)

    async def process(context: ExecutionContext) -> bool:
        has_errors = False
        for log in event.logs:
            has_errors = register_new_order(event.hash, log, context.registry) or has_errors
        return has_errors

    await _run_action(runtime, "addContract", event.network, f"tx {event.hash}", process)


async def check_for_and_place_order(runtime: ActionRuntime, event: BlockEvent) -> None:
    """
    Evaluate every conditional order and post the tradeable ones.

    Raises:
        UnsupportedNetworkError: For an unknown network id
        WatchtowerExecutionError: If any conditional order failed unexpectedly
            or the registry could not be written
    """
    network = get_network(event.network)

    async def process(context: ExecutionContext) -> bool:
        chain = runtime.chain_for(network.network)
        async with runtime.order_book_for(network) as order_book:
            service = OrderPlacementService(chain, order_book, network, runtime.validators)
            return await service.run(context.registry, event.block_number)

    await _run_action(
        runtime, "checkForAndPlaceOrder", event.network, f"block {event.block_number}", process,
    )


async def check_for_settlement(runtime: ActionRuntime, event: TransactionEvent) -> None:
    """
    Mark tracked orders settled in a transaction as FILLED.

    Raises:
        UnsupportedNetworkError: For an unknown network id
        WatchtowerExecutionError: If any log failed or the registry could not be written
    """
    get_network(event.network)

    async def process(context: ExecutionContext) -> bool:
        has_errors = False
        for log in event.logs:
            has_errors = process_settlement(event.hash, log, context.registry) or has_errors
        return has_errors

    await _run_action(runtime, "checkForSettlement", event.network, f"tx {event.hash}", process)
