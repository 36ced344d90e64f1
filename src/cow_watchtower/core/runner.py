"""
LocalRunner - drive the actions from a node instead of a hosted platform.

For every block: each transaction with logs goes through add_contract and
check_for_settlement, then the block goes through check_for_and_place_order.
A failing action is logged and never stops the runner.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from cow_watchtower.chain.models import BlockEvent

from .actions import (
    ActionRuntime,
    add_contract,
    check_for_and_place_order,
    check_for_settlement,
)

logger = logging.getLogger(__name__)


class LocalRunner:
    """
    Processes one block, or follows the chain head.

    Usage:
        runner = LocalRunner(runtime, network="1")

        # A specific block
        await runner.process_block(17_000_000)

        # Follow new blocks until stop() is called
        await runner.watch()
    """

    def __init__(
        self,
        runtime: ActionRuntime,
        network: str,
        poll_interval_seconds: float = 5.0,
    ) -> None:
        self._runtime = runtime
        self._network = network
        self._poll_interval = poll_interval_seconds
        self._chain = runtime.chain_for(network)
        self._stop_event = asyncio.Event()
        self._last_block: Optional[int] = None

    @property
    def last_block(self) -> Optional[int]:
        """Last block processed."""
        return self._last_block

    def stop(self) -> None:
        self._stop_event.set()

    async def process_block(self, block_number: int) -> bool:
        """
        Run all actions for one block.

        Returns:
            True if any action failed
        """
        logger.info(f"[run_local] Processing block {block_number}")
        has_errors = False

        events = await self._chain.get_transaction_events(self._network, block_number)
        for event in events:
            if not event.logs:
                continue
            for action in (add_contract, check_for_settlement):
                try:
                    await action(self._runtime, event)
                except Exception as e:
                    logger.error(f"[run_local] {action.__name__} failed for tx {event.hash}: {e}")
                    has_errors = True

        try:
            await check_for_and_place_order(
                self._runtime, BlockEvent(network=self._network, block_number=block_number),
            )
        except Exception as e:
            logger.error(f"[run_local] check_for_and_place_order failed for block {block_number}: {e}")
            has_errors = True

        self._last_block = block_number
        return has_errors

    async def watch(self, from_block: Optional[int] = None) -> None:
        """
        Process every new block until stop() is called.

        Args:
            from_block: First block to process (defaults to the next block)
        """
        if from_block is None:
            self._last_block = await self._chain.block_number()
        else:
            self._last_block = from_block - 1
        logger.info(f"[run_local] Watching network {self._network} from block {self._last_block + 1}")

        self._stop_event.clear()
        while not self._stop_event.is_set():
            try:
                head = await self._chain.block_number()
                for block_number in range(self._last_block + 1, head + 1):
                    if self._stop_event.is_set():
                        break
                    await self.process_block(block_number)
            except Exception as e:
                logger.error(f"[run_local] Error following the chain: {e}")

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._poll_interval)
                break  # Stop requested
            except asyncio.TimeoutError:
                continue
