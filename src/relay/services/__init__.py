"""Services for the order relay."""

from .squarespace_service import OrderFetchError, SquarespaceService
from .stripe_service import StripeService, StripeServiceError, WebhookSignatureError
from .webhook_handler import WebhookHandler

__all__ = [
    "OrderFetchError",
    "SquarespaceService",
    "StripeService",
    "StripeServiceError",
    "WebhookSignatureError",
    "WebhookHandler",
]
