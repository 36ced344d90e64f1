"""
Order book API client.

Posts discrete orders with an EIP-1271 signature. The order book rejects an
order it already knows with HTTP 400 and errorType "DuplicatedOrder"; that
response is treated as success since the order is live either way.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from cow_watchtower.execution.order_uid import Order

logger = logging.getLogger(__name__)

ORDERS_PATH = "/api/v1/orders"
SIGNING_SCHEME = "eip1271"
DUPLICATED_ORDER_ERROR = "DuplicatedOrder"


class OrderBookAPIError(Exception):
    """Raised when the order book rejects an order or cannot be reached."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_type: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error_type = error_type


def order_payload(order: Order, owner: str, signature: str) -> Dict[str, Any]:
    """JSON body for POST /api/v1/orders. Amounts are decimal strings."""
    return {
        "sellToken": order.sell_token,
        "buyToken": order.buy_token,
        "receiver": order.receiver,
        "sellAmount": str(order.sell_amount),
        "buyAmount": str(order.buy_amount),
        "validTo": order.valid_to,
        "appData": order.app_data,
        "feeAmount": str(order.fee_amount),
        "kind": order.kind.value,
        "partiallyFillable": order.partially_fillable,
        "sellTokenBalance": order.sell_token_balance.value,
        "buyTokenBalance": order.buy_token_balance.value,
        "signingScheme": SIGNING_SCHEME,
        "signature": signature,
        "from": owner,
    }


def _error_type(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("errorType")
    return None


class OrderBookClient:
    """
    Async client for the order book API of one network.

    Usage:
        async with OrderBookClient("https://api.cow.fi/mainnet") as order_book:
            await order_book.post_order(order_uid, order, owner, signature)

    With dry_run=True the payload is logged and nothing is sent.
    """

    def __init__(
        self,
        api_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        dry_run: bool = False,
    ) -> None:
        """
        Args:
            api_url: Base URL, e.g. https://api.cow.fi/mainnet
            client: Injected httpx client (tests pass one with a MockTransport)
            timeout: Request timeout in seconds when creating our own client
            dry_run: Log orders instead of posting them
        """
        self._api_url = api_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._dry_run = dry_run

    @property
    def api_url(self) -> str:
        return self._api_url

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    async def __aenter__(self) -> "OrderBookClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def post_order(
        self,
        order_uid: str,
        order: Order,
        owner: str,
        signature: str,
    ) -> Optional[str]:
        """
        Submit a discrete order.

        Returns:
            The order uid echoed by the API, the local uid for a duplicate,
            or None in dry-run mode

        Raises:
            OrderBookAPIError: On any non-2xx response other than a duplicate,
                or when the API cannot be reached
        """
        payload = order_payload(order, owner, signature)

        if self._dry_run:
            logger.info(f"[placeOrder] Dry run, not posting order {order_uid}: {payload}")
            return None

        url = f"{self._api_url}{ORDERS_PATH}"
        logger.info(f"[placeOrder] Post order {order_uid} to {url}")
        logger.debug(f"[placeOrder] Order payload: {payload}")

        try:
            response = await self._client.post(url, json=payload)
        except httpx.HTTPError as e:
            raise OrderBookAPIError(f"Order book unreachable at {url}: {e}") from e

        if response.is_success:
            body = response.json()
            logger.info(f"[placeOrder] API response: {body}")
            return body if isinstance(body, str) else order_uid

        error_type = _error_type(response)
        if response.status_code == 400 and error_type == DUPLICATED_ORDER_ERROR:
            logger.warning(f"[placeOrder] Order {order_uid} already exists in the order book")
            return order_uid

        raise OrderBookAPIError(
            f"Order book rejected order {order_uid}: {response.status_code} {response.text}",
            status_code=response.status_code,
            error_type=error_type,
        )
