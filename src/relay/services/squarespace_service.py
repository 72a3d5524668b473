"""Squarespace Commerce Orders API client.

Reads single orders by id with a Bearer API key.
"""

import logging
from urllib.parse import quote

import httpx

from relay.models.errors import ErrorCode, RelayError
from relay.models.order import Order

logger = logging.getLogger(__name__)


class OrderFetchError(RelayError):
    """Raised when the Orders API answers with a non-2xx status."""

    code = ErrorCode.ORDER_FETCH_FAILED

    def __init__(self, status_code: int, reason: str, body: str) -> None:
        """Initialize with the failed response's details.

        Args:
            status_code: HTTP status code.
            reason: HTTP reason phrase.
            body: Response body text.
        """
        super().__init__(f"Squarespace {status_code} {reason}: {body}")
        self.status_code = status_code
        self.reason = reason
        self.body = body


class SquarespaceService:
    """Authenticated reader for Squarespace orders.

    Usage:
        squarespace = SquarespaceService(api_key="...", orders_url=settings.squarespace_orders_url)
        order = squarespace.get_order("585d498fdee9f31a60284a37")
    """

    def __init__(
        self,
        api_key: str,
        orders_url: str,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the Orders API client.

        Args:
            api_key: Squarespace API key.
            orders_url: Orders collection URL, without trailing slash.
            client: Preconfigured httpx.Client, mainly for tests.
        """
        self._api_key = api_key
        self._orders_url = orders_url.rstrip("/")
        self._client = client or httpx.Client()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    def order_url(self, order_id: str) -> str:
        """URL of a single order, with the id escaped as one path segment."""
        return f"{self._orders_url}/{quote(order_id, safe='')}"

    def get_order(self, order_id: str) -> Order:
        """Fetch an order by id.

        Args:
            order_id: Squarespace order ID taken from charge metadata.

        Returns:
            The parsed order.

        Raises:
            OrderFetchError: If the API answers with a non-2xx status.
            httpx.HTTPError: On transport failures.
        """
        url = self.order_url(order_id)
        logger.info("Fetching Squarespace order %s", order_id)

        response = self._client.get(url, headers=self._headers())
        if not response.is_success:
            logger.error(
                "Squarespace order fetch failed for %s: %d %s",
                order_id,
                response.status_code,
                response.reason_phrase,
            )
            raise OrderFetchError(response.status_code, response.reason_phrase, response.text)

        return Order.model_validate(response.json())

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()
