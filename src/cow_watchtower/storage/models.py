"""
Pydantic models for the conditional order registry.

These models define the JSON snapshot persisted per network.
Hex values (salts, static inputs, merkle roots, order uids) are stored as
lower-case 0x-prefixed strings so value equality does not depend on casing.
Owner and handler addresses are stored checksummed.
"""
from __future__ import annotations

from datetime import datetime
from enum import IntEnum
from typing import Dict, List, Optional

from eth_utils import is_address, to_checksum_address
from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_hex(value) -> str:
    """Normalize bytes or a hex string to a lower-case 0x-prefixed string."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if not isinstance(value, str):
        raise ValueError(f"Expected hex string or bytes, got {type(value).__name__}")
    text = value.lower()
    if not text.startswith("0x"):
        text = "0x" + text
    try:
        bytes.fromhex(text[2:])
    except ValueError as e:
        raise ValueError(f"Invalid hex value: {value}") from e
    return text


def normalize_address(value) -> str:
    """Checksum an address given as bytes or hex string."""
    if isinstance(value, (bytes, bytearray)):
        value = "0x" + bytes(value).hex()
    if not is_address(value):
        raise ValueError(f"Invalid address: {value}")
    return to_checksum_address(value)


# =============================================================================
# ORDER STATUS
# =============================================================================


class OrderStatus(IntEnum):
    """Status of a discrete order created from a conditional order.

    Transitions are one-way: SUBMITTED -> FILLED.
    """

    SUBMITTED = 1
    FILLED = 2

    def __str__(self) -> str:
        return self.name


# =============================================================================
# CONDITIONAL ORDERS
# =============================================================================


class ConditionalOrderParams(BaseModel):
    """Parameters identifying a conditional order (handler, salt, staticInput)."""

    model_config = ConfigDict(frozen=True)

    handler: str
    salt: str
    static_input: str

    @field_validator("handler", mode="before")
    @classmethod
    def _checksum_handler(cls, v):
        return normalize_address(v)

    @field_validator("salt", "static_input", mode="before")
    @classmethod
    def _normalize_hex(cls, v):
        return normalize_hex(v)

    def as_abi_tuple(self) -> tuple:
        """Return the params as the (address, bytes32, bytes) ABI tuple."""
        return (
            self.handler,
            bytes.fromhex(self.salt[2:]),
            bytes.fromhex(self.static_input[2:]),
        )


class Proof(BaseModel):
    """Merkle proof authorizing a conditional order under a root."""

    model_config = ConfigDict(frozen=True)

    merkle_root: str
    path: List[str] = Field(default_factory=list)

    @field_validator("merkle_root", mode="before")
    @classmethod
    def _normalize_root(cls, v):
        return normalize_hex(v)

    @field_validator("path", mode="before")
    @classmethod
    def _normalize_path(cls, v):
        return [normalize_hex(p) for p in v]


class ConditionalOrder(BaseModel):
    """A conditional order registered for an owner."""

    tx: str  # transaction that created the conditional order
    params: ConditionalOrderParams
    proof: Optional[Proof] = None
    composable_cow: str  # contract to poll for tradeable orders
    orders: Dict[str, OrderStatus] = Field(default_factory=dict)

    @field_validator("composable_cow", mode="before")
    @classmethod
    def _checksum_contract(cls, v):
        return normalize_address(v)

    def unfilled_orders(self) -> List[str]:
        """Order uids that were submitted but not yet settled."""
        return [
            uid for uid, status in self.orders.items()
            if status == OrderStatus.SUBMITTED
        ]


class RegistrySnapshot(BaseModel):
    """Serialized form of the registry for one network."""

    owner_orders: Dict[str, List[ConditionalOrder]] = Field(default_factory=dict)


class StorageEntry(BaseModel):
    """Row of the key/value storage table."""

    key: str
    value: str
    updated_at: Optional[datetime] = None
