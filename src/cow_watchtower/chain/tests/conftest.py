"""
Chain layer test fixtures.

The RPC is never contacted: ChainClient is built around a mocked AsyncWeb3.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_abi import encode

from cow_watchtower.chain.client import ChainClient
from cow_watchtower.chain.contracts import GPV2_ORDER_DATA_TYPE
from cow_watchtower.storage.models import ConditionalOrderParams

SELL_KIND = bytes.fromhex("f3b277728b3fee749481eb3e0b3b48980dbbab78658fc419025cb16eee346775")
ERC20_BALANCE = bytes.fromhex("5a28e9363bb942b639270062aa6bb295f434bcdfc42c97267bf003f272060dc9")


@pytest.fixture
def params() -> ConditionalOrderParams:
    return ConditionalOrderParams(
        handler="0x6cf1e9ca41f7611def408122793c358a3d11e5a5",
        salt="0x" + "01" * 32,
        static_input="0x" + "ab" * 64,
    )


@pytest.fixture
def tradeable_return_data() -> bytes:
    """ABI-encoded (GPv2Order.Data, bytes signature) return value."""
    order = (
        "0x" + "01" * 20,  # sellToken
        "0x" + "02" * 20,  # buyToken
        "0x" + "00" * 20,  # receiver
        10**18,
        2 * 10**18,
        1_700_000_000,
        b"\x00" * 32,  # appData
        0,
        SELL_KIND,
        False,
        ERC20_BALANCE,
        ERC20_BALANCE,
    )
    return encode([GPV2_ORDER_DATA_TYPE, "bytes"], [order, b"\xde\xad\xbe\xef"])


@pytest.fixture
def mock_web3():
    web3 = MagicMock()
    web3.eth = MagicMock()
    web3.eth.call = AsyncMock()
    web3.eth.get_block = AsyncMock()
    web3.eth.get_transaction_receipt = AsyncMock()
    return web3


@pytest.fixture
def chain_client(mock_web3) -> ChainClient:
    return ChainClient(mock_web3)
