"""
Order normalization and OrderUid computation.

The authorizing contract returns orders with kind and balance fields as
bytes32 constants (keccak of the name). The order book expects the names,
and the OrderUid is derived from the EIP-712 hash of the named order:

    uid = orderDigest (32 bytes) || owner (20 bytes) || validTo (uint32, 4 bytes)

The uid is the idempotency key for submission, so it must be deterministic
for a given (order, owner, network).
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from eth_abi import encode
from eth_utils import keccak, to_canonical_address

from cow_watchtower.chain.models import GPv2OrderData
from cow_watchtower.chain.networks import NetworkConfig

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

DOMAIN_NAME = "Gnosis Protocol"
DOMAIN_VERSION = "v2"

EIP712_DOMAIN_TYPE_HASH = keccak(
    text="EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
)
ORDER_TYPE_HASH = keccak(
    text=(
        "Order(address sellToken,address buyToken,address receiver,"
        "uint256 sellAmount,uint256 buyAmount,uint32 validTo,bytes32 appData,"
        "uint256 feeAmount,string kind,bool partiallyFillable,"
        "string sellTokenBalance,string buyTokenBalance)"
    )
)


class UnknownConstantError(ValueError):
    """Raised for an order kind or balance constant outside the lookup tables."""

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"Unknown {field}: {value}")


class OrderKind(str, Enum):
    SELL = "sell"
    BUY = "buy"


class OrderBalance(str, Enum):
    ERC20 = "erc20"
    EXTERNAL = "external"
    INTERNAL = "internal"


# keccak256 of the names, as returned by the contract
ORDER_KINDS: Dict[str, OrderKind] = {
    "0xf3b277728b3fee749481eb3e0b3b48980dbbab78658fc419025cb16eee346775": OrderKind.SELL,
    "0x6ed88e868af0a1983e3886d5f3e95a2fafbd6c3450bc229e27342283dc429ccc": OrderKind.BUY,
}

ORDER_BALANCES: Dict[str, OrderBalance] = {
    "0x5a28e9363bb942b639270062aa6bb295f434bcdfc42c97267bf003f272060dc9": OrderBalance.ERC20,
    "0xabee3b73373acd583a130924aad6dc38cfdc44ba0555ba94ce2ff63980ea0632": OrderBalance.EXTERNAL,
    "0x4ac99ace14ee0a5ef932dc609df0943ab7ac16b7583634612f8dc35a4289a6ce": OrderBalance.INTERNAL,
}


def kind_to_string(kind: str) -> OrderKind:
    """Map an order kind constant to its name."""
    try:
        return ORDER_KINDS[kind.lower()]
    except KeyError:
        raise UnknownConstantError("kind", kind) from None


def balance_to_string(balance: str) -> OrderBalance:
    """Map a balance source/destination constant to its name."""
    try:
        return ORDER_BALANCES[balance.lower()]
    except KeyError:
        raise UnknownConstantError("balance type", balance) from None


@dataclass(frozen=True)
class Order:
    """A discrete order with named kind and balances, ready for the order book."""

    sell_token: str
    buy_token: str
    receiver: Optional[str]
    sell_amount: int
    buy_amount: int
    valid_to: int
    app_data: str
    fee_amount: int
    kind: OrderKind
    partially_fillable: bool
    sell_token_balance: OrderBalance
    buy_token_balance: OrderBalance


def normalize_order(data: GPv2OrderData) -> Order:
    """
    Replace the contract constants with their names.

    Raises:
        UnknownConstantError: For a kind or balance outside the lookup tables
    """
    return Order(
        sell_token=data.sell_token,
        buy_token=data.buy_token,
        receiver=data.receiver,
        sell_amount=data.sell_amount,
        buy_amount=data.buy_amount,
        valid_to=data.valid_to,
        app_data=data.app_data,
        fee_amount=data.fee_amount,
        kind=kind_to_string(data.kind),
        partially_fillable=data.partially_fillable,
        sell_token_balance=balance_to_string(data.sell_token_balance),
        buy_token_balance=balance_to_string(data.buy_token_balance),
    )


@dataclass(frozen=True)
class OrderDomain:
    """EIP-712 domain of the settlement contract."""

    chain_id: int
    verifying_contract: str
    name: str = DOMAIN_NAME
    version: str = DOMAIN_VERSION

    @classmethod
    def for_network(cls, network: NetworkConfig) -> "OrderDomain":
        return cls(chain_id=network.chain_id, verifying_contract=network.settlement_contract)

    def separator(self) -> bytes:
        return keccak(
            encode(
                ["bytes32", "bytes32", "bytes32", "uint256", "address"],
                [
                    EIP712_DOMAIN_TYPE_HASH,
                    keccak(text=self.name),
                    keccak(text=self.version),
                    self.chain_id,
                    to_canonical_address(self.verifying_contract),
                ],
            )
        )


def _hash_receiver(receiver: Optional[str]) -> bytes:
    # A zero receiver and no receiver both mean "the owner"
    if receiver is None or int(receiver, 16) == 0:
        return to_canonical_address(ZERO_ADDRESS)
    return to_canonical_address(receiver)


def _hash_buy_token_balance(balance: OrderBalance) -> OrderBalance:
    # The settlement contract pays out external balances as erc20
    if balance == OrderBalance.EXTERNAL:
        return OrderBalance.ERC20
    return balance


def hash_order_struct(order: Order) -> bytes:
    """EIP-712 struct hash of an order."""
    return keccak(
        encode(
            [
                "bytes32", "address", "address", "address", "uint256", "uint256",
                "uint32", "bytes32", "uint256", "bytes32", "bool", "bytes32", "bytes32",
            ],
            [
                ORDER_TYPE_HASH,
                to_canonical_address(order.sell_token),
                to_canonical_address(order.buy_token),
                _hash_receiver(order.receiver),
                order.sell_amount,
                order.buy_amount,
                order.valid_to,
                bytes.fromhex(order.app_data[2:]),
                order.fee_amount,
                keccak(text=order.kind.value),
                order.partially_fillable,
                keccak(text=order.sell_token_balance.value),
                keccak(text=_hash_buy_token_balance(order.buy_token_balance).value),
            ],
        )
    )


def hash_order(domain: OrderDomain, order: Order) -> bytes:
    """EIP-712 signing digest of an order."""
    return keccak(b"\x19\x01" + domain.separator() + hash_order_struct(order))


def compute_order_uid(domain: OrderDomain, order: Order, owner: str) -> str:
    """Compute the 56-byte OrderUid as a lower-case 0x hex string."""
    digest = hash_order(domain, order)
    uid = digest + to_canonical_address(owner) + order.valid_to.to_bytes(4, "big")
    return "0x" + uid.hex()
