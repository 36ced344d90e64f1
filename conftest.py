"""
Shared test fixtures spanning multiple components.

Builds ABI-encoded ComposableCoW and GPv2Settlement logs the way a node
returns them, so ingestion, settlement and action tests exercise the real
decoders. Component-specific fixtures live in
src/cow_watchtower/{component}/tests/conftest.py.
"""
from typing import List, Optional, Sequence, Tuple

import pytest
from eth_abi import encode

from cow_watchtower.chain.contracts import (
    CONDITIONAL_ORDER_CREATED_TOPIC,
    CONDITIONAL_ORDER_PARAMS_TYPE,
    MERKLE_ROOT_SET_TOPIC,
    PROOF_LOCATION_EMITTED,
    PROOF_TYPE,
    TRADE_TOPIC,
)
from cow_watchtower.chain.models import Log
from cow_watchtower.chain.networks import SETTLEMENT_CONTRACT
from cow_watchtower.storage.models import ConditionalOrderParams

COMPOSABLE_COW = "0xfdaFc9d1902f4e0b84f65F49f244b32b31013b74"


def address_topic(address: str) -> str:
    """32-byte topic of an indexed address."""
    return "0x" + encode(["address"], [address]).hex()


def _hex_bytes(value: str) -> bytes:
    return bytes.fromhex(value[2:])


class LogFactory:
    """Builds logs for the events the watchtower listens to."""

    def conditional_order_created(
        self,
        owner: str,
        params: ConditionalOrderParams,
        address: str = COMPOSABLE_COW,
        log_index: int = 0,
    ) -> Log:
        data = encode([CONDITIONAL_ORDER_PARAMS_TYPE], [params.as_abi_tuple()])
        return Log(
            address=address,
            topics=[CONDITIONAL_ORDER_CREATED_TOPIC, address_topic(owner)],
            data="0x" + data.hex(),
            log_index=log_index,
        )

    def merkle_root_set(
        self,
        owner: str,
        root: str,
        proofs: Sequence[Tuple[List[str], ConditionalOrderParams]] = (),
        location: int = PROOF_LOCATION_EMITTED,
        address: str = COMPOSABLE_COW,
        log_index: int = 0,
    ) -> Log:
        if location == PROOF_LOCATION_EMITTED:
            entries = [
                encode(
                    ["bytes32[]", CONDITIONAL_ORDER_PARAMS_TYPE],
                    [[_hex_bytes(p) for p in path], params.as_abi_tuple()],
                )
                for path, params in proofs
            ]
            proof_data = encode(["bytes[]"], [entries])
        else:
            proof_data = b""

        data = encode(["bytes32", PROOF_TYPE], [_hex_bytes(root), (location, proof_data)])
        return Log(
            address=address,
            topics=[MERKLE_ROOT_SET_TOPIC, address_topic(owner)],
            data="0x" + data.hex(),
            log_index=log_index,
        )

    def trade(
        self,
        owner: str,
        order_uid: str,
        sell_token: str = "0x" + "01" * 20,
        buy_token: str = "0x" + "02" * 20,
        address: str = SETTLEMENT_CONTRACT,
        log_index: int = 0,
    ) -> Log:
        data = encode(
            ["address", "address", "uint256", "uint256", "uint256", "bytes"],
            [sell_token, buy_token, 10**18, 2 * 10**18, 0, _hex_bytes(order_uid)],
        )
        return Log(
            address=address,
            topics=[TRADE_TOPIC, address_topic(owner)],
            data="0x" + data.hex(),
            log_index=log_index,
        )

    def unrelated(self, topic: Optional[str] = None, address: str = COMPOSABLE_COW) -> Log:
        """A log with a topic the watchtower does not handle."""
        return Log(address=address, topics=[topic or "0x" + "ee" * 32], data="0x")


@pytest.fixture
def logs() -> LogFactory:
    return LogFactory()
