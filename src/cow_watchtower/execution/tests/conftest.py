"""
Execution layer test fixtures.

The chain is an AsyncMock and the order book runs over an
httpx.MockTransport, so no node or API is contacted.
"""
import json
from typing import List
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio

from cow_watchtower.chain.models import GPv2OrderData, TradeableOrder
from cow_watchtower.chain.networks import get_network
from cow_watchtower.execution.order_book import OrderBookClient
from cow_watchtower.storage.models import ConditionalOrderParams
from cow_watchtower.storage.registry import Registry

SELL_KIND = "0xf3b277728b3fee749481eb3e0b3b48980dbbab78658fc419025cb16eee346775"
ERC20_BALANCE = "0x5a28e9363bb942b639270062aa6bb295f434bcdfc42c97267bf003f272060dc9"
EXTERNAL_BALANCE = "0xabee3b73373acd583a130924aad6dc38cfdc44ba0555ba94ce2ff63980ea0632"
API_URL = "https://api.cow.fi/mainnet"


@pytest.fixture
def network():
    return get_network("1")


@pytest.fixture
def make_order_data():
    """Factory for GPv2OrderData as the contract returns it."""

    def _make(**overrides) -> GPv2OrderData:
        values = dict(
            sell_token="0x" + "01" * 20,
            buy_token="0x" + "02" * 20,
            receiver="0x" + "00" * 20,
            sell_amount=10**18,
            buy_amount=2 * 10**18,
            valid_to=1_700_000_000,
            app_data="0x" + "00" * 32,
            fee_amount=0,
            kind=SELL_KIND,
            partially_fillable=False,
            sell_token_balance=ERC20_BALANCE,
            buy_token_balance=ERC20_BALANCE,
        )
        values.update(overrides)
        return GPv2OrderData(**values)

    return _make


@pytest.fixture
def tradeable(make_order_data) -> TradeableOrder:
    return TradeableOrder(order=make_order_data(), signature="0xdeadbeef")


@pytest.fixture
def mock_chain(tradeable):
    chain = MagicMock()
    chain.get_tradeable_order_with_signature = AsyncMock(return_value=tradeable)
    return chain


@pytest.fixture
def make_params():
    def _make(salt: int = 1, handler: str = "0x" + "cc" * 20, static_input: str = "0x") -> ConditionalOrderParams:
        return ConditionalOrderParams(
            handler=handler,
            salt="0x" + salt.to_bytes(32, "big").hex(),
            static_input=static_input,
        )

    return _make


@pytest.fixture
def registry() -> Registry:
    return Registry({}, storage=MagicMock(), network="1")


class OrderBookRecorder:
    """Records order book requests and answers with a configurable response."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.status_code = 201
        self.body = "0xuid"
        self.error = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.body)

    @property
    def payloads(self) -> List[dict]:
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def order_book_api() -> OrderBookRecorder:
    return OrderBookRecorder()


@pytest_asyncio.fixture
async def order_book(order_book_api):
    client = httpx.AsyncClient(transport=httpx.MockTransport(order_book_api))
    async with OrderBookClient(API_URL, client=client) as order_book:
        yield order_book
    await client.aclose()
