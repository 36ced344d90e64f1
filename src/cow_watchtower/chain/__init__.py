"""
Chain Layer - network table, event decoding and read-only simulation.

Public API:
    ChainClient, SimulationRevertError - AsyncWeb3 wrapper
    NetworkConfig, get_network, api_url, UnsupportedNetworkError
    Log, TransactionEvent, BlockEvent, GPv2OrderData, TradeableOrder
    decode_conditional_order_created, decode_merkle_root_set, decode_trade
    decode_revert_reason, RevertReason, LogDecodeError
"""
from cow_watchtower.chain.client import ChainClient, SimulationRevertError
from cow_watchtower.chain.contracts import (
    CONDITIONAL_ORDER_CREATED_TOPIC,
    MERKLE_ROOT_SET_TOPIC,
    TRADE_TOPIC,
    LogDecodeError,
    RevertReason,
    decode_conditional_order_created,
    decode_merkle_root_set,
    decode_revert_reason,
    decode_trade,
)
from cow_watchtower.chain.models import (
    BlockEvent,
    GPv2OrderData,
    Log,
    TradeableOrder,
    TransactionEvent,
)
from cow_watchtower.chain.networks import (
    SETTLEMENT_CONTRACT,
    NetworkConfig,
    UnsupportedNetworkError,
    api_url,
    get_network,
)

__all__ = [
    "ChainClient",
    "SimulationRevertError",
    "CONDITIONAL_ORDER_CREATED_TOPIC",
    "MERKLE_ROOT_SET_TOPIC",
    "TRADE_TOPIC",
    "LogDecodeError",
    "RevertReason",
    "decode_conditional_order_created",
    "decode_merkle_root_set",
    "decode_revert_reason",
    "decode_trade",
    "BlockEvent",
    "GPv2OrderData",
    "Log",
    "TradeableOrder",
    "TransactionEvent",
    "SETTLEMENT_CONTRACT",
    "NetworkConfig",
    "UnsupportedNetworkError",
    "api_url",
    "get_network",
]
