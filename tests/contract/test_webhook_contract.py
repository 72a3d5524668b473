"""Contract tests for POST /webhooks/stripe and GET /health.

Signatures are real HMAC-SHA256 headers, so stripe.Webhook.construct_event
runs unmocked. Stripe API calls and Squarespace requests are mocked.

Test categories:
- Signature validation (400)
- Ignored event types (200)
- Successful processing (200)
- Silent aborts (200)
- Caught processing errors (200 with error flag)
- Health check
"""

import json
from collections.abc import Callable
from unittest.mock import MagicMock

import httpx
import stripe
from fastapi.testclient import TestClient
from starlette.status import HTTP_200_OK, HTTP_400_BAD_REQUEST

from payloads import (
    TEST_CHARGE_ID,
    TEST_PAYMENT_INTENT_ID,
    OrdersApiStub,
    create_stripe_signature,
    make_charge,
    make_event,
    make_order,
)
from relay.api.middleware.correlation import CORRELATION_ID_HEADER

PostEvent = Callable[..., httpx.Response]


def _payment_intent_succeeded(latest_charge: str | None = TEST_CHARGE_ID) -> dict:
    return make_event(
        "payment_intent.succeeded",
        {"id": TEST_PAYMENT_INTENT_ID, "object": "payment_intent", "latest_charge": latest_charge},
    )


def _charge_succeeded() -> dict:
    return make_event(
        "charge.succeeded",
        {"id": TEST_CHARGE_ID, "object": "charge", "payment_intent": TEST_PAYMENT_INTENT_ID},
    )


def _assert_no_outbound_calls(mock_stripe_client: MagicMock, orders_api: OrdersApiStub) -> None:
    assert mock_stripe_client.mock_calls == []
    assert orders_api.requests == []


# === Signature Validation ===


class TestSignatureValidation:
    """Invalid signatures answer 400 and stop processing."""

    def test_wrong_secret_returns_400(
        self,
        client: TestClient,
        mock_stripe_client: MagicMock,
        orders_api: OrdersApiStub,
    ):
        payload = json.dumps(_charge_succeeded()).encode()

        response = client.post(
            "/webhooks/stripe",
            content=payload,
            headers={"stripe-signature": create_stripe_signature(payload, secret="whsec_other")},
        )

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.text.startswith("Webhook Error: ")
        _assert_no_outbound_calls(mock_stripe_client, orders_api)

    def test_missing_header_returns_400(
        self,
        client: TestClient,
        mock_stripe_client: MagicMock,
        orders_api: OrdersApiStub,
    ):
        response = client.post(
            "/webhooks/stripe",
            content=json.dumps(_charge_succeeded()).encode(),
        )

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.text == "Webhook Error: No stripe-signature header value was provided."
        _assert_no_outbound_calls(mock_stripe_client, orders_api)

    def test_body_changed_after_signing_returns_400(
        self,
        client: TestClient,
        mock_stripe_client: MagicMock,
        orders_api: OrdersApiStub,
    ):
        signed = json.dumps(_charge_succeeded()).encode()
        sent = json.dumps(_charge_succeeded(), indent=2).encode()

        response = client.post(
            "/webhooks/stripe",
            content=sent,
            headers={"stripe-signature": create_stripe_signature(signed)},
        )

        assert response.status_code == HTTP_400_BAD_REQUEST
        _assert_no_outbound_calls(mock_stripe_client, orders_api)

    def test_malformed_header_returns_400(self, client: TestClient):
        response = client.post(
            "/webhooks/stripe",
            content=b"{}",
            headers={"stripe-signature": "garbage"},
        )

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.headers["content-type"].startswith("text/plain")


# === Ignored Event Types ===


class TestIgnoredEvents:
    """Other event types are acknowledged without outbound calls."""

    def test_ignored_type_returns_received(
        self,
        post_event: PostEvent,
        mock_stripe_client: MagicMock,
        orders_api: OrdersApiStub,
    ):
        response = post_event(make_event("customer.created", {"id": "cus_1", "object": "customer"}))

        assert response.status_code == HTTP_200_OK
        assert response.json() == {"received": True}
        _assert_no_outbound_calls(mock_stripe_client, orders_api)


# === Successful Processing ===


class TestSuccessfulProcessing:
    """Both handled event types describe the PaymentIntent."""

    def test_payment_intent_succeeded(
        self,
        post_event: PostEvent,
        mock_stripe_client: MagicMock,
        orders_api: OrdersApiStub,
    ):
        orders_api.respond_with(200, json=make_order(["A", " ", "B"]))

        response = post_event(_payment_intent_succeeded())

        assert response.status_code == HTTP_200_OK
        assert response.json() == {"received": True}
        mock_stripe_client.charges.retrieve.assert_called_once_with(TEST_CHARGE_ID)
        params = mock_stripe_client.payment_intents.update.call_args.kwargs["params"]
        assert params["description"] == "A, B"
        assert params["metadata"]["product_count"] == "2"

    def test_charge_succeeded(
        self,
        post_event: PostEvent,
        mock_stripe_client: MagicMock,
    ):
        response = post_event(_charge_succeeded())

        assert response.status_code == HTTP_200_OK
        assert response.json() == {"received": True}
        assert mock_stripe_client.payment_intents.update.call_args.args[0] == TEST_PAYMENT_INTENT_ID

    def test_correlation_id_is_echoed(self, post_event: PostEvent):
        response = post_event(_charge_succeeded(), **{CORRELATION_ID_HEADER: "req-42"})

        assert response.headers[CORRELATION_ID_HEADER] == "req-42"


# === Silent Aborts ===


class TestSilentAborts:
    """Missing join data is acknowledged without an error flag."""

    def test_no_order_id_in_metadata(
        self,
        post_event: PostEvent,
        mock_stripe_client: MagicMock,
        orders_api: OrdersApiStub,
    ):
        mock_stripe_client.charges.retrieve.return_value = make_charge(metadata={"note": "walk-in"})

        response = post_event(_charge_succeeded())

        assert response.status_code == HTTP_200_OK
        assert response.json() == {"received": True}
        assert orders_api.requests == []
        mock_stripe_client.payment_intents.update.assert_not_called()

    def test_order_without_product_names(
        self,
        post_event: PostEvent,
        mock_stripe_client: MagicMock,
        orders_api: OrdersApiStub,
    ):
        orders_api.respond_with(200, json=make_order([]))

        response = post_event(_charge_succeeded())

        assert response.json() == {"received": True}
        mock_stripe_client.payment_intents.update.assert_not_called()


# === Caught Processing Errors ===


class TestProcessingErrors:
    """Failures after verification answer 200 with an error flag."""

    def test_order_fetch_failure(
        self,
        post_event: PostEvent,
        mock_stripe_client: MagicMock,
        orders_api: OrdersApiStub,
    ):
        orders_api.respond_with(503, text="maintenance")

        response = post_event(_charge_succeeded())

        assert response.status_code == HTTP_200_OK
        assert response.json() == {"received": True, "error": True}
        mock_stripe_client.payment_intents.update.assert_not_called()

    def test_stripe_api_failure(
        self,
        post_event: PostEvent,
        mock_stripe_client: MagicMock,
        orders_api: OrdersApiStub,
    ):
        mock_stripe_client.charges.retrieve.side_effect = stripe.APIConnectionError("Network down")

        response = post_event(_charge_succeeded())

        assert response.status_code == HTTP_200_OK
        assert response.json() == {"received": True, "error": True}
        assert orders_api.requests == []

    def test_unexpected_failure(
        self,
        post_event: PostEvent,
        orders_api: OrdersApiStub,
    ):
        orders_api.respond_with(200, text="<html>not json</html>")

        response = post_event(_charge_succeeded())

        assert response.status_code == HTTP_200_OK
        assert response.json() == {"received": True, "error": True}

    def test_signed_event_with_unreadable_object(
        self,
        post_event: PostEvent,
        mock_stripe_client: MagicMock,
        orders_api: OrdersApiStub,
    ):
        response = post_event(make_event("charge.succeeded", "oops"))

        assert response.status_code == HTTP_200_OK
        assert response.json() == {"received": True, "error": True}
        _assert_no_outbound_calls(mock_stripe_client, orders_api)


# === Health Check ===


class TestHealth:
    def test_health_returns_ok(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == HTTP_200_OK
        assert response.text == "ok"
