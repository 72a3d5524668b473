"""FastAPI exception handlers for converting relay errors to HTTP responses.

Signature failures answer 400 in plain text, the shape Stripe's
dashboard shows for failed deliveries. Any other error that escapes a
route becomes a generic JSON 500.

Usage:
    from relay.api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR

from relay.models.errors import ErrorCode
from relay.services.stripe_service import WebhookSignatureError

logger = logging.getLogger(__name__)

# Map ErrorCode to HTTP status codes
ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: HTTP_400_BAD_REQUEST,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode, defaulting to 500."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_500_INTERNAL_SERVER_ERROR)


async def webhook_signature_error_handler(
    request: Request, exc: WebhookSignatureError
) -> PlainTextResponse:
    """Answer a failed signature check with ``Webhook Error: <message>``."""
    return PlainTextResponse(
        f"Webhook Error: {exc.message}",
        status_code=get_http_status_for_error(exc.code),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with a generic error response."""
    logger.exception("Unhandled exception: %s", exc)

    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error_code": "ERR_INTERNAL",
            "message": "An unexpected error occurred",
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(WebhookSignatureError, webhook_signature_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
