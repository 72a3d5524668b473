"""FastAPI dependencies exposing the service bundle built at startup."""

from fastapi import Request

from relay.services.stripe_service import StripeService
from relay.services.webhook_handler import WebhookHandler


def get_stripe_service(request: Request) -> StripeService:
    """Stripe service attached to the running app."""
    return request.app.state.stripe_service


def get_webhook_handler(request: Request) -> WebhookHandler:
    """Webhook handler attached to the running app."""
    return request.app.state.webhook_handler
