"""
Data models for on-chain events and simulation results.

These mirror what the host hands to each run:
- TransactionEvent: a mined transaction with its logs
- BlockEvent: a new block tick
and what the authorizing contract returns from a simulation:
- GPv2OrderData / TradeableOrder
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class Log:
    """
    Raw event log.

    Attributes:
        address: Contract that emitted the log
        topics: 0x-prefixed 32-byte topics (topic 0 is the event signature)
        data: 0x-prefixed ABI-encoded non-indexed arguments
    """
    address: str
    topics: List[str]
    data: str = "0x"
    log_index: int = 0


@dataclass(frozen=True)
class TransactionEvent:
    """A mined transaction and the logs it emitted."""
    network: str
    hash: str
    block_number: int
    logs: List[Log] = field(default_factory=list)


@dataclass(frozen=True)
class BlockEvent:
    """A new block on a network."""
    network: str
    block_number: int
    block_hash: str = ""


@dataclass(frozen=True)
class GPv2OrderData:
    """
    GPv2Order.Data as returned by the authorizing contract.

    kind, sell_token_balance and buy_token_balance are still the raw
    bytes32 constants (0x-prefixed hex); see execution.order_uid for the
    mapping to their order book names.
    """
    sell_token: str
    buy_token: str
    receiver: str
    sell_amount: int
    buy_amount: int
    valid_to: int
    app_data: str
    fee_amount: int
    kind: str
    partially_fillable: bool
    sell_token_balance: str
    buy_token_balance: str


@dataclass(frozen=True)
class TradeableOrder:
    """A discrete order ready to be posted, with its EIP-1271 signature."""
    order: GPv2OrderData
    signature: str
