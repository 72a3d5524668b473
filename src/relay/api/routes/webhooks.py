"""Webhook endpoint for Stripe payment events.

Receives signed payloads, so there is no other authentication.
Everything after the signature check answers 200 so Stripe does not
redeliver; failures are only visible in the logs.
"""

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from relay.api.dependencies import get_stripe_service, get_webhook_handler
from relay.models.stripe_webhook import PaymentEvent
from relay.services.stripe_service import StripeService
from relay.services.webhook_handler import WebhookHandler
from relay.utils.logging import get_logger, log_webhook_event

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])

SIGNATURE_HEADER = "stripe-signature"


class WebhookResponse(BaseModel):
    """Acknowledgement returned to Stripe."""

    received: bool = True
    error: bool | None = None


@router.post(
    "/webhooks/stripe",
    summary="Receive Stripe webhook events",
    description="""
Handles `payment_intent.succeeded` and `charge.succeeded`: looks up the
Squarespace order referenced by the charge metadata and writes its product
names onto the PaymentIntent description. Other event types are acknowledged
and ignored.

**No authentication required** - signature is verified using the Stripe webhook secret.
""",
    response_model=WebhookResponse,
    response_model_exclude_none=True,
    responses={
        200: {"description": "Event received (processed, ignored or failed internally)"},
        400: {
            "description": "Invalid signature or missing header",
            "content": {"text/plain": {"example": "Webhook Error: No signatures found"}},
        },
    },
)
async def handle_stripe_webhook(
    request: Request,
    stripe_service: StripeService = Depends(get_stripe_service),
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> WebhookResponse:
    """Verify a Stripe event and describe its PaymentIntent.

    Raises WebhookSignatureError (answered with 400) when the signature
    does not match the raw body.
    """
    # Raw body; the signature covers the exact bytes Stripe sent
    payload = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)

    raw_event = stripe_service.verify_webhook_signature(payload, signature)
    event_id = raw_event.get("id")
    event_type = str(raw_event.get("type"))

    try:
        event = PaymentEvent.from_stripe(raw_event)
        log_webhook_event(logger, event_type, event_id, result="received")
        outcome = await run_in_threadpool(handler.handle_event, event)
    except Exception as e:
        logger.exception("Handler error for event %s: %s", event_id, e)
        log_webhook_event(
            logger,
            event_type,
            event_id,
            result="error",
            error=str(e),
        )
        return WebhookResponse(received=True, error=True)

    logger.debug("Event %s processed: %s", event_id, outcome.result)
    return WebhookResponse(received=True)
