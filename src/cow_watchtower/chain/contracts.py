"""
ComposableCoW and GPv2Settlement ABI fragments.

Only the pieces the watchtower needs:
    - ConditionalOrderCreated / MerkleRootSet events (ComposableCoW)
    - Trade event (GPv2Settlement)
    - getTradeableOrderWithSignature call and its custom errors

Encoding and decoding is done with eth_abi; topics and selectors are the
keccak hashes of the canonical signatures.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from eth_abi import decode, encode
from eth_utils import decode_hex, keccak

from cow_watchtower.chain.models import GPv2OrderData, Log, TradeableOrder
from cow_watchtower.storage.models import ConditionalOrderParams, normalize_hex

CONDITIONAL_ORDER_PARAMS_TYPE = "(address,bytes32,bytes)"
PROOF_TYPE = "(uint256,bytes)"
GPV2_ORDER_DATA_TYPE = (
    "(address,address,address,uint256,uint256,uint32,bytes32,uint256,bytes32,bool,bytes32,bytes32)"
)

# Proof.location value meaning the proofs were emitted inline in the event
PROOF_LOCATION_EMITTED = 1


def event_topic(signature: str) -> str:
    """Topic 0 of an event with the given canonical signature."""
    return "0x" + keccak(text=signature).hex()


def function_selector(signature: str) -> bytes:
    """4-byte selector of a function or custom error."""
    return keccak(text=signature)[:4]


CONDITIONAL_ORDER_CREATED_TOPIC = event_topic(
    f"ConditionalOrderCreated(address,{CONDITIONAL_ORDER_PARAMS_TYPE})"
)
MERKLE_ROOT_SET_TOPIC = event_topic(f"MerkleRootSet(address,bytes32,{PROOF_TYPE})")
TRADE_TOPIC = event_topic("Trade(address,address,address,uint256,uint256,uint256,bytes)")

GET_TRADEABLE_ORDER_SELECTOR = function_selector(
    f"getTradeableOrderWithSignature(address,{CONDITIONAL_ORDER_PARAMS_TYPE},bytes,bytes32[])"
)


class RevertReason(str, Enum):
    """Custom errors of getTradeableOrderWithSignature the watchtower understands."""

    ORDER_NOT_VALID = "OrderNotValid"
    SINGLE_ORDER_NOT_AUTHED = "SingleOrderNotAuthed"
    PROOF_NOT_AUTHED = "ProofNotAuthed"


_REVERT_SELECTORS: Dict[bytes, RevertReason] = {
    function_selector("OrderNotValid()"): RevertReason.ORDER_NOT_VALID,
    function_selector("OrderNotValid(string)"): RevertReason.ORDER_NOT_VALID,
    function_selector("SingleOrderNotAuthed()"): RevertReason.SINGLE_ORDER_NOT_AUTHED,
    function_selector("ProofNotAuthed()"): RevertReason.PROOF_NOT_AUTHED,
}


class LogDecodeError(Exception):
    """Raised when a log cannot be decoded as the expected event."""


def decode_revert_reason(revert_data) -> Optional[RevertReason]:
    """
    Map revert data to a known custom error.

    Returns:
        The RevertReason, or None if the data is missing or unrecognized
    """
    if not revert_data:
        return None
    if isinstance(revert_data, str):
        try:
            revert_data = decode_hex(revert_data)
        except ValueError:
            return None
    return _REVERT_SELECTORS.get(bytes(revert_data[:4]))


# =============================================================================
# EVENTS
# =============================================================================


@dataclass(frozen=True)
class ConditionalOrderCreated:
    owner: str
    params: ConditionalOrderParams


@dataclass(frozen=True)
class MerkleRootSet:
    owner: str
    root: str
    proof_location: int
    proof_data: bytes

    @property
    def proofs_emitted(self) -> bool:
        return self.proof_location == PROOF_LOCATION_EMITTED

    def decode_proofs(self) -> List[Tuple[List[str], ConditionalOrderParams]]:
        """Decode the inline proof data into (merkle path, params) pairs."""
        (entries,) = decode(["bytes[]"], self.proof_data)
        proofs = []
        for entry in entries:
            path, params = decode(["bytes32[]", CONDITIONAL_ORDER_PARAMS_TYPE], entry)
            proofs.append(([normalize_hex(p) for p in path], _params_from_tuple(params)))
        return proofs


@dataclass(frozen=True)
class TradeEvent:
    owner: str
    sell_token: str
    buy_token: str
    sell_amount: int
    buy_amount: int
    fee_amount: int
    order_uid: str


def _params_from_tuple(params: tuple) -> ConditionalOrderParams:
    handler, salt, static_input = params
    return ConditionalOrderParams(handler=handler, salt=salt, static_input=static_input)


def _indexed_address(log: Log, index: int = 1) -> str:
    if len(log.topics) <= index:
        raise LogDecodeError(f"Log from {log.address} is missing topic {index}")
    (address,) = decode(["address"], decode_hex(log.topics[index]))
    return address


def _data(log: Log) -> bytes:
    return decode_hex(log.data) if log.data else b""


def topic0(log: Log) -> Optional[str]:
    """Lower-cased event signature topic, or None for anonymous logs."""
    return log.topics[0].lower() if log.topics else None


def decode_conditional_order_created(log: Log) -> ConditionalOrderCreated:
    """Decode a ConditionalOrderCreated(owner indexed, params) log."""
    if topic0(log) != CONDITIONAL_ORDER_CREATED_TOPIC:
        raise LogDecodeError("Not a ConditionalOrderCreated log")
    try:
        owner = _indexed_address(log)
        (params,) = decode([CONDITIONAL_ORDER_PARAMS_TYPE], _data(log))
        return ConditionalOrderCreated(owner=owner, params=_params_from_tuple(params))
    except LogDecodeError:
        raise
    except Exception as e:
        raise LogDecodeError(f"Invalid ConditionalOrderCreated log: {e}") from e


def decode_merkle_root_set(log: Log) -> MerkleRootSet:
    """Decode a MerkleRootSet(owner indexed, root, proof) log."""
    if topic0(log) != MERKLE_ROOT_SET_TOPIC:
        raise LogDecodeError("Not a MerkleRootSet log")
    try:
        owner = _indexed_address(log)
        root, (location, data) = decode(["bytes32", PROOF_TYPE], _data(log))
        return MerkleRootSet(
            owner=owner,
            root=normalize_hex(root),
            proof_location=location,
            proof_data=data,
        )
    except LogDecodeError:
        raise
    except Exception as e:
        raise LogDecodeError(f"Invalid MerkleRootSet log: {e}") from e


def decode_trade(log: Log) -> TradeEvent:
    """Decode a GPv2Settlement Trade(owner indexed, ..., orderUid) log."""
    if topic0(log) != TRADE_TOPIC:
        raise LogDecodeError("Not a Trade log")
    try:
        owner = _indexed_address(log)
        sell_token, buy_token, sell_amount, buy_amount, fee_amount, order_uid = decode(
            ["address", "address", "uint256", "uint256", "uint256", "bytes"], _data(log)
        )
        return TradeEvent(
            owner=owner,
            sell_token=sell_token,
            buy_token=buy_token,
            sell_amount=sell_amount,
            buy_amount=buy_amount,
            fee_amount=fee_amount,
            order_uid=normalize_hex(order_uid),
        )
    except LogDecodeError:
        raise
    except Exception as e:
        raise LogDecodeError(f"Invalid Trade log: {e}") from e


# =============================================================================
# getTradeableOrderWithSignature
# =============================================================================


def encode_get_tradeable_order(
    owner: str,
    params: ConditionalOrderParams,
    offchain_input: bytes,
    proof: List[str],
) -> bytes:
    """Calldata for getTradeableOrderWithSignature(owner, params, offchainInput, proof)."""
    return GET_TRADEABLE_ORDER_SELECTOR + encode(
        ["address", CONDITIONAL_ORDER_PARAMS_TYPE, "bytes", "bytes32[]"],
        [owner, params.as_abi_tuple(), offchain_input, [decode_hex(p) for p in proof]],
    )


def decode_tradeable_order(return_data: bytes) -> TradeableOrder:
    """Decode the (GPv2Order.Data order, bytes signature) return value."""
    order, signature = decode([GPV2_ORDER_DATA_TYPE, "bytes"], return_data)
    (
        sell_token, buy_token, receiver, sell_amount, buy_amount, valid_to,
        app_data, fee_amount, kind, partially_fillable, sell_balance, buy_balance,
    ) = order
    return TradeableOrder(
        order=GPv2OrderData(
            sell_token=sell_token,
            buy_token=buy_token,
            receiver=receiver,
            sell_amount=sell_amount,
            buy_amount=buy_amount,
            valid_to=valid_to,
            app_data=normalize_hex(app_data),
            fee_amount=fee_amount,
            kind=normalize_hex(kind),
            partially_fillable=partially_fillable,
            sell_token_balance=normalize_hex(sell_balance),
            buy_token_balance=normalize_hex(buy_balance),
        ),
        signature=normalize_hex(signature),
    )
