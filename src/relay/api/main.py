"""FastAPI application for the Stripe → Squarespace order relay.

Provides:
- POST /webhooks/stripe - Stripe payment events
- GET /health - Liveness probe
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from relay import __version__
from relay.api.exceptions import register_exception_handlers
from relay.api.middleware.correlation import CorrelationIdMiddleware
from relay.api.routes.health import router as health_router
from relay.api.routes.webhooks import router as webhooks_router
from relay.config import Settings, load_settings_or_exit
from relay.services.squarespace_service import SquarespaceService
from relay.services.stripe_service import StripeService
from relay.services.webhook_handler import WebhookHandler
from relay.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def create_app(
    settings: Settings,
    *,
    stripe_service: StripeService | None = None,
    squarespace_service: SquarespaceService | None = None,
) -> FastAPI:
    """Build the relay application around an explicit settings bundle.

    Args:
        settings: Loaded configuration.
        stripe_service: Prebuilt Stripe service, mainly for tests.
        squarespace_service: Prebuilt Squarespace service, mainly for tests.

    Returns:
        Configured FastAPI app with its services on ``app.state``.
    """
    stripe_service = stripe_service or StripeService(
        api_key=settings.stripe_api_key,
        webhook_secret=settings.stripe_webhook_secret,
    )
    squarespace_service = squarespace_service or SquarespaceService(
        api_key=settings.squarespace_api_key,
        orders_url=settings.squarespace_orders_url,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        squarespace_service.close()

    app = FastAPI(
        title="Stripe Order Relay",
        description="Describes Stripe payments with their Squarespace order line items",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.stripe_service = stripe_service
    app.state.squarespace_service = squarespace_service
    app.state.webhook_handler = WebhookHandler(stripe_service, squarespace_service)

    app.add_middleware(CorrelationIdMiddleware)

    # Register exception handlers for consistent error responses
    register_exception_handlers(app)

    app.include_router(webhooks_router)
    app.include_router(health_router)

    return app


def run_server(host: str = "0.0.0.0", port: int | None = None) -> None:
    """Run the relay with uvicorn.

    Exits with status 1 before binding if required configuration is missing.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: PORT env var, else 8080)
    """
    import uvicorn

    settings = load_settings_or_exit()
    configure_logging(settings.log_level)

    app = create_app(settings)
    listen_port = port or settings.port
    logger.info("Listening on :%d", listen_port)
    uvicorn.run(app, host=host, port=listen_port, log_config=None)


if __name__ == "__main__":
    run_server()
