"""
Core test fixtures.

Actions run against an in-memory key/value store, a mocked chain and an
order book behind httpx.MockTransport. Slack is replaced by a mock API.
"""
import json
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio

from cow_watchtower.chain.models import GPv2OrderData, TradeableOrder
from cow_watchtower.core.actions import ActionRuntime
from cow_watchtower.monitoring.alerting import AlertManager
from cow_watchtower.storage.models import ConditionalOrderParams

SELL_KIND = "0xf3b277728b3fee749481eb3e0b3b48980dbbab78658fc419025cb16eee346775"
ERC20_BALANCE = "0x5a28e9363bb942b639270062aa6bb295f434bcdfc42c97267bf003f272060dc9"


class InMemoryStorage:
    """Key/value store with the StorageRepository methods the registry uses."""

    def __init__(self) -> None:
        self.values: Dict[str, str] = {}
        self.writes: List[Dict[str, str]] = []
        self.fail_writes = False

    async def get_str(self, key: str) -> Optional[str]:
        return self.values.get(key)

    async def put_many(self, entries: Dict[str, str]) -> None:
        if self.fail_writes:
            raise ConnectionError("database unavailable")
        self.writes.append(dict(entries))
        self.values.update(entries)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def mock_slack_api():
    api = MagicMock()
    api.post_message = MagicMock(return_value=None)
    return api


@pytest.fixture
def alert_manager(mock_slack_api) -> AlertManager:
    return AlertManager(slack_webhook_url="https://hooks.slack.com/services/test", _slack_api=mock_slack_api)


@pytest.fixture
def tradeable() -> TradeableOrder:
    return TradeableOrder(
        order=GPv2OrderData(
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
        ),
        signature="0xdeadbeef",
    )


@pytest.fixture
def mock_chain(tradeable):
    chain = MagicMock()
    chain.get_tradeable_order_with_signature = AsyncMock(return_value=tradeable)
    chain.get_transaction_events = AsyncMock(return_value=[])
    chain.block_number = AsyncMock(return_value=100)
    return chain


class OrderBookRecorder:
    """Accepts every order and records the request payloads."""

    def __init__(self) -> None:
        self.payloads: List[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.payloads.append(json.loads(request.content))
        return httpx.Response(201, json="0xuid")


@pytest.fixture
def order_book_api() -> OrderBookRecorder:
    return OrderBookRecorder()


@pytest_asyncio.fixture
async def http_client(order_book_api):
    client = httpx.AsyncClient(transport=httpx.MockTransport(order_book_api))
    yield client
    await client.aclose()


@pytest.fixture
def runtime(storage, mock_chain, http_client, alert_manager) -> ActionRuntime:
    return ActionRuntime(
        storage=storage,
        secrets={},
        chain=mock_chain,
        http_client=http_client,
        alert_manager=alert_manager,
    )


@pytest.fixture
def make_params():
    def _make(salt: int = 1) -> ConditionalOrderParams:
        return ConditionalOrderParams(
            handler="0x" + "cc" * 20,
            salt="0x" + salt.to_bytes(32, "big").hex(),
            static_input="0x",
        )

    return _make
