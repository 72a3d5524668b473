"""Pydantic models for the order relay."""

from .errors import ErrorCode, RelayError
from .order import LineItem, Order
from .stripe_webhook import (
    MAX_DESCRIPTION_LENGTH,
    ChargeRecord,
    PaymentEvent,
    PaymentIntentUpdate,
    PaymentReferences,
    ProcessingOutcome,
)

__all__ = [
    # Errors
    "ErrorCode",
    "RelayError",
    # Squarespace
    "LineItem",
    "Order",
    # Stripe
    "MAX_DESCRIPTION_LENGTH",
    "ChargeRecord",
    "PaymentEvent",
    "PaymentIntentUpdate",
    "PaymentReferences",
    "ProcessingOutcome",
]
