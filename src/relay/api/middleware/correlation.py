"""Correlation ID middleware for request tracing.

Every webhook delivery gets a correlation ID, taken from the incoming
X-Correlation-ID header or freshly generated. It is visible to every log
line written while the event is handled and is echoed on the response.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from relay.utils.logging import clear_correlation_id, set_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Middleware that tags each request's log lines with a correlation ID."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Bind a correlation ID for the duration of one request.

        Args:
            request: Incoming request
            call_next: Next middleware or route in the chain

        Returns:
            Response carrying the X-Correlation-ID header
        """
        # Caller-supplied ID wins; otherwise a new one is generated
        incoming_id = request.headers.get(CORRELATION_ID_HEADER)
        correlation_id = set_correlation_id(incoming_id)

        try:
            response = await call_next(request)

            # Echo the ID back to the caller
            response.headers[CORRELATION_ID_HEADER] = correlation_id

            return response
        finally:
            # Unbind once the response is built
            clear_correlation_id()
