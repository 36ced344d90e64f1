"""
Static network table.

Maps a network id (the chain id as a string) to the order book API and the
settlement contract. An unknown network id is a configuration error.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

# Constant across all networks supported by CoW Protocol
SETTLEMENT_CONTRACT = "0x9008D19f58AAbD9eD0D60971565AA8510560ab41"

API_URLS: Dict[str, str] = {
    "1": "https://api.cow.fi/mainnet",
    "5": "https://api.cow.fi/goerli",
    "100": "https://api.cow.fi/xdai",
    "31337": "http://localhost:3000",
}


class UnsupportedNetworkError(Exception):
    """Raised for a network id missing from the network table."""

    def __init__(self, network: str):
        self.network = network
        super().__init__(f"Unsupported network: {network}")


@dataclass(frozen=True)
class NetworkConfig:
    """Per-network constants."""

    network: str
    chain_id: int
    api_url: str
    settlement_contract: str = SETTLEMENT_CONTRACT

    @property
    def is_local(self) -> bool:
        """True for local development chains (orders are never posted)."""
        return "localhost" in self.api_url


def api_url(network: str) -> str:
    """Order book API base URL for a network."""
    try:
        return API_URLS[str(network)]
    except KeyError:
        raise UnsupportedNetworkError(str(network)) from None


def get_network(network: str) -> NetworkConfig:
    """Resolve the full configuration for a network id."""
    network = str(network)
    return NetworkConfig(network=network, chain_id=int(network), api_url=api_url(network))
