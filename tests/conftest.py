"""Pytest configuration and fixtures for the order relay tests.

This module provides reusable fixtures for testing:
- A Settings bundle with test credentials
- A mocked StripeClient behind a real StripeService
- A Squarespace service backed by httpx.MockTransport
- A signed-event poster for the webhook endpoint

Payload builders live in ``payloads.py``.
"""

import json
from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from payloads import (
    TEST_ORDERS_URL,
    TEST_SQUARESPACE_API_KEY,
    TEST_STRIPE_API_KEY,
    TEST_WEBHOOK_SECRET,
    OrdersApiStub,
    create_stripe_signature,
    make_charge,
)
from relay.api.main import create_app
from relay.config import Settings
from relay.services.squarespace_service import SquarespaceService
from relay.services.stripe_service import StripeService


# === Fixtures ===


@pytest.fixture
def settings() -> Settings:
    """Settings with test credentials."""
    return Settings(
        stripe_api_key=TEST_STRIPE_API_KEY,
        stripe_webhook_secret=TEST_WEBHOOK_SECRET,
        squarespace_api_key=TEST_SQUARESPACE_API_KEY,
        squarespace_orders_url=TEST_ORDERS_URL,
    )


@pytest.fixture
def mock_stripe_client() -> MagicMock:
    """Mock StripeClient; each test sets the return values it needs."""
    client = MagicMock()
    client.charges.retrieve.return_value = make_charge()
    client.payment_intents.update.side_effect = lambda pi_id, params=None: {
        "id": pi_id,
        "object": "payment_intent",
        **(params or {}),
    }
    return client


@pytest.fixture
def stripe_service(settings: Settings, mock_stripe_client: MagicMock) -> StripeService:
    """StripeService with a mocked client and the test webhook secret."""
    return StripeService(
        api_key=settings.stripe_api_key,
        webhook_secret=settings.stripe_webhook_secret,
        client=mock_stripe_client,
    )


@pytest.fixture
def orders_api() -> OrdersApiStub:
    """Stub for the Squarespace Orders API."""
    return OrdersApiStub()


@pytest.fixture
def squarespace_service(
    settings: Settings, orders_api: OrdersApiStub
) -> Generator[SquarespaceService, None, None]:
    """SquarespaceService talking to the Orders API stub."""
    service = SquarespaceService(
        api_key=settings.squarespace_api_key,
        orders_url=settings.squarespace_orders_url,
        client=httpx.Client(transport=httpx.MockTransport(orders_api)),
    )
    yield service
    service.close()


@pytest.fixture
def client(
    settings: Settings,
    stripe_service: StripeService,
    squarespace_service: SquarespaceService,
) -> TestClient:
    """Test client for the relay app with mocked outbound services."""
    app = create_app(
        settings,
        stripe_service=stripe_service,
        squarespace_service=squarespace_service,
    )
    return TestClient(app)


@pytest.fixture
def post_event(client: TestClient) -> Callable[..., httpx.Response]:
    """Post a correctly signed event to the webhook endpoint."""

    def _post(event: dict[str, Any], **headers: str) -> httpx.Response:
        payload = json.dumps(event).encode("utf-8")
        return client.post(
            "/webhooks/stripe",
            content=payload,
            headers={
                "Content-Type": "application/json",
                "stripe-signature": create_stripe_signature(payload),
                **headers,
            },
        )

    return _post
