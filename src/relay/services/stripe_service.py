"""Stripe service for webhook verification and PaymentIntent descriptions.

Uses the v8+ StripeClient pattern. Credentials come from the Settings
bundle handed in at construction.
"""

import logging
from typing import Any

import stripe
from stripe import StripeClient

from relay.models.errors import ErrorCode, RelayError
from relay.models.stripe_webhook import (
    ChargeRecord,
    PaymentIntentUpdate,
    as_mapping,
    expandable_id,
)

logger = logging.getLogger(__name__)

# Charges attached to a PaymentIntent, newest first
PAYMENT_INTENT_CHARGE_EXPANSIONS = ["charges.data"]


class WebhookSignatureError(RelayError):
    """Raised when a webhook payload fails signature verification."""

    code = ErrorCode.INVALID_WEBHOOK_SIGNATURE


class StripeServiceError(RelayError):
    """Raised when a Stripe API operation fails."""

    code = ErrorCode.STRIPE_API_ERROR

    def __init__(self, message: str, stripe_error_code: str | None = None) -> None:
        """Initialize with message and optional Stripe error code.

        Args:
            message: Human-readable error message.
            stripe_error_code: Stripe-specific error code if available.
        """
        super().__init__(message)
        self.stripe_error_code = stripe_error_code


class StripeService:
    """Service for the Stripe side of the relay.

    Handles:
    - Webhook signature validation
    - Charge lookup (directly or through its PaymentIntent)
    - Writing description and metadata onto a PaymentIntent

    Usage:
        stripe_svc = StripeService(api_key="sk_live_...", webhook_secret="whsec_...")
        event = stripe_svc.verify_webhook_signature(payload, signature)
    """

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        client: StripeClient | None = None,
    ) -> None:
        """Initialize the Stripe service.

        Args:
            api_key: Stripe secret API key.
            webhook_secret: Webhook endpoint signing secret (whsec_...).
            client: Preconfigured StripeClient, mainly for tests.
        """
        self._api_key = api_key
        self._webhook_secret = webhook_secret
        self._client = client

    def _get_client(self) -> StripeClient:
        """Get or create the Stripe client (lazy initialization)."""
        if self._client is None:
            self._client = StripeClient(self._api_key)
            logger.info("Stripe client initialized")
        return self._client

    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> dict:
        """Verify a webhook signature and parse the event.

        Args:
            payload: Raw request body bytes, exactly as received.
            signature: Stripe-Signature header value.

        Returns:
            Parsed Stripe event dictionary.

        Raises:
            WebhookSignatureError: If the signature is missing or invalid,
                or the payload is not valid JSON.
        """
        if not signature:
            logger.warning("Webhook request missing Stripe-Signature header")
            raise WebhookSignatureError("No stripe-signature header value was provided.")

        try:
            event = stripe.Webhook.construct_event(
                payload, signature, self._webhook_secret
            )
        except stripe.SignatureVerificationError as e:
            logger.warning("Invalid webhook signature: %s", e.user_message or e)
            raise WebhookSignatureError(str(e.user_message or e)) from e
        except ValueError as e:
            logger.warning("Invalid webhook payload: %s", e)
            raise WebhookSignatureError(f"Invalid payload: {e}") from e

        event = dict(as_mapping(event))
        logger.info("Webhook signature verified for event: %s", event.get("id"))
        return event

    def retrieve_charge(self, charge_id: str) -> ChargeRecord:
        """Retrieve a Charge by id.

        Raises:
            StripeServiceError: If the Stripe API call fails.
        """
        client = self._get_client()
        try:
            charge = client.charges.retrieve(charge_id)
        except stripe.StripeError as e:
            raise self._api_error(f"Failed to retrieve charge {charge_id}", e) from e
        return ChargeRecord.from_stripe(charge)

    def retrieve_payment_intent_charge(self, payment_intent_id: str) -> ChargeRecord | None:
        """Retrieve the first Charge attached to a PaymentIntent.

        The PaymentIntent is fetched with its charge list expanded. API
        versions that dropped the ``charges`` list reject that expansion;
        the PaymentIntent is then fetched plain and its ``latest_charge``
        is used instead.

        Returns:
            The first Charge, or None if the PaymentIntent has none.

        Raises:
            StripeServiceError: If the Stripe API call fails.
        """
        client = self._get_client()
        try:
            payment_intent = client.payment_intents.retrieve(
                payment_intent_id,
                params={"expand": PAYMENT_INTENT_CHARGE_EXPANSIONS},
            )
        except stripe.InvalidRequestError as e:
            logger.info(
                "Charge list expansion rejected for %s (%s), using latest_charge",
                payment_intent_id,
                e.user_message or e,
            )
            payment_intent = self._retrieve_payment_intent(payment_intent_id)
        except stripe.StripeError as e:
            raise self._api_error(
                f"Failed to retrieve PaymentIntent {payment_intent_id}", e
            ) from e

        payment_intent = as_mapping(payment_intent)
        charges = as_mapping(payment_intent.get("charges")).get("data") or []
        if charges:
            return ChargeRecord.from_stripe(charges[0])

        latest_charge = payment_intent.get("latest_charge")
        if latest_charge and not isinstance(latest_charge, str):
            return ChargeRecord.from_stripe(latest_charge)
        latest_charge_id = expandable_id(latest_charge)
        if latest_charge_id:
            return self.retrieve_charge(latest_charge_id)
        return None

    def _retrieve_payment_intent(self, payment_intent_id: str) -> Any:
        try:
            return self._get_client().payment_intents.retrieve(payment_intent_id)
        except stripe.StripeError as e:
            raise self._api_error(
                f"Failed to retrieve PaymentIntent {payment_intent_id}", e
            ) from e

    def update_payment_intent(
        self,
        payment_intent_id: str,
        update: PaymentIntentUpdate,
    ) -> str:
        """Write description and metadata onto a PaymentIntent.

        Args:
            payment_intent_id: Stripe PaymentIntent ID (pi_xxx).
            update: Description and metadata to set.

        Returns:
            The id of the updated PaymentIntent.

        Raises:
            StripeServiceError: If the update fails.
        """
        client = self._get_client()
        try:
            updated = client.payment_intents.update(
                payment_intent_id,
                params={
                    "description": update.description,
                    "metadata": dict(update.metadata),
                },
            )
        except stripe.StripeError as e:
            raise self._api_error(
                f"Failed to update PaymentIntent {payment_intent_id}", e
            ) from e

        return as_mapping(updated).get("id") or payment_intent_id

    @staticmethod
    def _api_error(message: str, error: stripe.StripeError) -> StripeServiceError:
        error_code = getattr(error, "code", None)
        logger.error("%s: %s (code: %s)", message, error, error_code)
        return StripeServiceError(f"{message}: {error}", stripe_error_code=error_code)
