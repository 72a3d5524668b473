"""Webhook handler that describes Stripe payments with their Squarespace order.

Provides business logic for handling webhook events separate from
HTTP routing concerns. Each event runs through a fixed chain of lookups:

    event -> charge -> order id -> order -> product names -> PaymentIntent

Any lookup that comes back empty ends processing with a "skipped"
outcome. Missing data is logged, never raised. Only API failures raise.
"""

from collections.abc import Mapping

from relay.models.order import Order
from relay.models.stripe_webhook import (
    MAX_DESCRIPTION_LENGTH,
    ChargeRecord,
    PaymentEvent,
    PaymentIntentUpdate,
    PaymentReferences,
    ProcessingOutcome,
    expandable_id,
)
from relay.services.squarespace_service import SquarespaceService
from relay.services.stripe_service import StripeService
from relay.utils.logging import get_logger, log_webhook_event

logger = get_logger(__name__)

# Event types we handle
HANDLED_EVENT_TYPES = frozenset({
    "payment_intent.succeeded",
    "charge.succeeded",
})

# Charge metadata keys that may hold the Squarespace order id, highest
# priority first. Stripe lowercases metadata keys.
ORDER_ID_METADATA_KEYS = (
    "metadataid",
    "orderid",
    "squarespace_order_id",
)

DESCRIPTION_SEPARATOR = ", "


def extract_references(event: PaymentEvent) -> PaymentReferences:
    """Pull the PaymentIntent and charge ids out of a payment event."""
    obj = event.data_object

    if event.event_type.startswith("payment_intent."):
        return PaymentReferences(
            payment_intent_id=obj.get("id"),
            charge_id=expandable_id(obj.get("latest_charge")),
        )
    if event.event_type == "charge.succeeded":
        return PaymentReferences(
            payment_intent_id=expandable_id(obj.get("payment_intent")),
            charge_id=obj.get("id"),
        )
    return PaymentReferences()


def find_order_id(metadata: Mapping[str, str]) -> str | None:
    """Return the first non-empty order id among the candidate metadata keys."""
    for key in ORDER_ID_METADATA_KEYS:
        value = metadata.get(key)
        if value:
            return value
    return None


def build_description(product_names: list[str]) -> str:
    """Join product names into a PaymentIntent description, capped in length."""
    return DESCRIPTION_SEPARATOR.join(product_names)[:MAX_DESCRIPTION_LENGTH]


class WebhookHandler:
    """Handler for Stripe payment success events.

    Looks up the Squarespace order referenced by the charge metadata and
    writes its product names onto the PaymentIntent description.
    """

    def __init__(
        self,
        stripe_service: StripeService,
        squarespace_service: SquarespaceService,
    ) -> None:
        self._stripe = stripe_service
        self._squarespace = squarespace_service

    def handle_event(self, event: PaymentEvent) -> ProcessingOutcome:
        """Process one verified event.

        Args:
            event: Verified Stripe event

        Returns:
            What was done with the event.

        Raises:
            OrderFetchError: If the Squarespace order cannot be read.
            StripeServiceError: If a Stripe API call fails.
        """
        if event.event_type not in HANDLED_EVENT_TYPES:
            logger.info("Unhandled event type %s, ignoring", event.event_type)
            return ProcessingOutcome(
                result="ignored",
                reason=f"Event type '{event.event_type}' not handled",
            )

        refs = extract_references(event)

        charge = self._resolve_charge(refs)
        if charge is None:
            return self._skip(
                event, refs, "No charge found; cannot read metadata join key"
            )

        order_id = find_order_id(charge.metadata)
        if order_id is None:
            return self._skip(
                event,
                refs,
                "No Squarespace order id in charge metadata",
                charge_id=charge.id,
            )

        order = self._squarespace.get_order(order_id)

        product_names = order.product_names()
        if not product_names:
            return self._skip(
                event,
                refs,
                f"Order {order_id} has no productName entries",
                charge_id=charge.id,
                order_id=order_id,
            )

        description = build_description(product_names)

        payment_intent_id = refs.payment_intent_id or charge.payment_intent
        if not payment_intent_id:
            return self._skip(
                event,
                refs,
                "No PaymentIntent id available; cannot update description",
                charge_id=charge.id,
                order_id=order_id,
            )

        update = self._build_update(order, order_id, description, len(product_names))
        updated_id = self._stripe.update_payment_intent(payment_intent_id, update)

        logger.info('Updated PaymentIntent %s description -> "%s"', updated_id, description)
        log_webhook_event(
            logger,
            event.event_type,
            event.event_id,
            payment_intent_id=updated_id,
            order_id=order_id,
            result="updated",
            product_count=len(product_names),
        )
        return ProcessingOutcome(
            result="updated",
            payment_intent_id=updated_id,
            charge_id=charge.id,
            order_id=order_id,
            description=description,
        )

    def _resolve_charge(self, refs: PaymentReferences) -> ChargeRecord | None:
        """Fetch the charge directly, or through its PaymentIntent."""
        if refs.charge_id:
            return self._stripe.retrieve_charge(refs.charge_id)
        if refs.payment_intent_id:
            return self._stripe.retrieve_payment_intent_charge(refs.payment_intent_id)
        return None

    @staticmethod
    def _build_update(
        order: Order,
        order_id: str,
        description: str,
        product_count: int,
    ) -> PaymentIntentUpdate:
        return PaymentIntentUpdate(
            description=description,
            metadata={
                "squarespace_order_id": order.id or order_id,
                "squarespace_order_number": str(order.order_number or ""),
                "product_count": str(product_count),
            },
        )

    @staticmethod
    def _skip(
        event: PaymentEvent,
        refs: PaymentReferences,
        reason: str,
        *,
        charge_id: str | None = None,
        order_id: str | None = None,
    ) -> ProcessingOutcome:
        log_webhook_event(
            logger,
            event.event_type,
            event.event_id,
            payment_intent_id=refs.payment_intent_id,
            order_id=order_id,
            result="skipped",
            error=reason,
        )
        return ProcessingOutcome(
            result="skipped",
            reason=reason,
            payment_intent_id=refs.payment_intent_id,
            charge_id=charge_id or refs.charge_id,
            order_id=order_id,
        )
