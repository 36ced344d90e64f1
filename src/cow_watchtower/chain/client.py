"""
JSON-RPC client for the watchtower.

Wraps an AsyncWeb3 instance with the few calls the watchtower makes:
    - read-only simulation of getTradeableOrderWithSignature (eth_call)
    - block and receipt lookups for the local runner

Never sends transactions.
"""
from __future__ import annotations

import base64
import logging
from typing import List, Optional

from eth_utils import to_checksum_address
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import ContractLogicError

from cow_watchtower.chain.contracts import decode_tradeable_order, encode_get_tradeable_order
from cow_watchtower.chain.models import Log, TradeableOrder, TransactionEvent
from cow_watchtower.storage.models import ConditionalOrderParams

logger = logging.getLogger(__name__)

OFFCHAIN_INPUT = b""  # "0x"


class SimulationRevertError(Exception):
    """Raised when the simulated call reverts."""

    def __init__(self, message: str, revert_data: Optional[str] = None):
        super().__init__(message)
        self.revert_data = revert_data


def _revert_data(error: ContractLogicError) -> Optional[str]:
    """Extract the raw revert data from a web3 contract error."""
    data = getattr(error, "data", None)
    if isinstance(data, dict):
        data = data.get("data")
    if isinstance(data, (bytes, bytearray)):
        data = "0x" + bytes(data).hex()
    if isinstance(data, str) and data.startswith("0x"):
        return data
    if error.args and isinstance(error.args[0], str) and error.args[0].startswith("0x"):
        return error.args[0]
    return None


def _hex(value) -> str:
    if isinstance(value, str):
        return value if value.startswith("0x") else "0x" + value
    return "0x" + bytes(value).hex()


def basic_auth_header(user: str, password: str) -> str:
    token = base64.b64encode(f"{user}:{password}".encode()).decode()
    return f"Basic {token}"


class ChainClient:
    """
    Async RPC access for one network.

    Usage:
        client = ChainClient.from_url("https://rpc.example", user, password)

        tradeable = await client.get_tradeable_order_with_signature(
            composable_cow, owner, params, proof_path,
        )
    """

    def __init__(self, web3: AsyncWeb3) -> None:
        self._web3 = web3

    @classmethod
    def from_url(
        cls,
        url: str,
        user: Optional[str] = None,
        password: Optional[str] = None,
    ) -> "ChainClient":
        """Create a client for a node URL, with basic auth when both credentials are set."""
        request_kwargs = {}
        if user and password:
            request_kwargs["headers"] = {"Authorization": basic_auth_header(user, password)}
        web3 = AsyncWeb3(AsyncHTTPProvider(url, request_kwargs=request_kwargs))
        return cls(web3)

    async def block_number(self) -> int:
        return await self._web3.eth.block_number

    async def get_tradeable_order_with_signature(
        self,
        composable_cow: str,
        owner: str,
        params: ConditionalOrderParams,
        proof: List[str],
    ) -> TradeableOrder:
        """
        Simulate getTradeableOrderWithSignature against the authorizing contract.

        Raises:
            SimulationRevertError: If the call reverts (revert_data carries the custom error)
        """
        calldata = encode_get_tradeable_order(owner, params, OFFCHAIN_INPUT, proof)
        call = {
            "to": to_checksum_address(composable_cow),
            "data": "0x" + calldata.hex(),
        }
        logger.debug(f"[getTradeableOrderWithSignature] Simulate {call}")

        try:
            result = await self._web3.eth.call(call)
        except ContractLogicError as e:
            raise SimulationRevertError(str(e), _revert_data(e)) from e

        return decode_tradeable_order(bytes(result))

    async def get_transaction_events(self, network: str, block_number: int) -> List[TransactionEvent]:
        """Build a TransactionEvent (with receipt logs) for every transaction in a block."""
        block = await self._web3.eth.get_block(block_number, full_transactions=True)
        events = []
        for transaction in block["transactions"]:
            tx_hash = _hex(transaction["hash"])
            receipt = await self._web3.eth.get_transaction_receipt(tx_hash)
            if receipt is None:
                continue
            logs = [
                Log(
                    address=log["address"],
                    topics=[_hex(t) for t in log["topics"]],
                    data=_hex(log["data"]),
                    log_index=log.get("logIndex", 0),
                )
                for log in receipt["logs"]
            ]
            events.append(
                TransactionEvent(
                    network=network,
                    hash=tx_hash,
                    block_number=block_number,
                    logs=logs,
                )
            )
        return events
