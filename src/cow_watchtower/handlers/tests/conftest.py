"""
Handler validator test fixtures.
"""
import pytest
from eth_abi import encode

from cow_watchtower.handlers.twap import TWAP_DATA_TYPES, TWAP_HANDLER_ADDRESS
from cow_watchtower.storage.models import ConditionalOrderParams

SELL_TOKEN = "0x" + "01" * 20
BUY_TOKEN = "0x" + "02" * 20


@pytest.fixture
def twap_values():
    """A valid TWAP static input: 10 parts of 1 token, one hour apart."""
    return {
        "sell_token": SELL_TOKEN,
        "buy_token": BUY_TOKEN,
        "receiver": "0x" + "00" * 20,
        "part_sell_amount": 10**18,
        "min_part_limit": 1,
        "t0": 1_700_000_000,
        "n": 10,
        "t": 3600,
        "span": 0,
    }


@pytest.fixture
def make_twap_params():
    def _make(values: dict, handler: str = TWAP_HANDLER_ADDRESS) -> ConditionalOrderParams:
        static_input = encode(TWAP_DATA_TYPES, list(values.values()))
        return ConditionalOrderParams(handler=handler, salt="0x" + "01" * 32, static_input=static_input)

    return _make
