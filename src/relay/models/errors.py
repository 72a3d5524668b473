"""Standard error codes for the order relay.

Every failure the relay raises itself derives from RelayError so the
API layer can map it to a response in one place.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes surfaced in logs and error responses."""

    # Stripe error codes (ERR_STRIPE_001-ERR_STRIPE_002)
    INVALID_WEBHOOK_SIGNATURE = "ERR_STRIPE_001"
    STRIPE_API_ERROR = "ERR_STRIPE_002"

    # Squarespace error codes
    ORDER_FETCH_FAILED = "ERR_ORDER_001"

    # Startup error codes
    MISSING_CONFIGURATION = "ERR_CONFIG_001"


class RelayError(Exception):
    """Base exception for relay failures.

    Carries an ErrorCode so handlers can pick a response without
    inspecting the concrete exception type.
    """

    code: ErrorCode = ErrorCode.STRIPE_API_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
