"""Service configuration loaded from environment variables.

Settings are read once at startup into an immutable model and passed
explicitly into the application factory.
"""

import logging
import os
import sys
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

from relay.models.errors import ErrorCode, RelayError

logger = logging.getLogger(__name__)

DEFAULT_SQUARESPACE_ORDERS_URL = "https://api.squarespace.com/1.0/commerce/orders"
DEFAULT_PORT = 8080

REQUIRED_VARIABLES = (
    "STRIPE_API_KEY",
    "STRIPE_WEBHOOK_SECRET",
    "SQUARESPACE_API_KEY",
)


class ConfigurationError(RelayError):
    """Raised when required configuration is missing or invalid."""

    code = ErrorCode.MISSING_CONFIGURATION


class Settings(BaseModel):
    """Immutable configuration bundle for the relay."""

    model_config = ConfigDict(frozen=True)

    stripe_api_key: str = Field(..., min_length=1)
    stripe_webhook_secret: str = Field(..., min_length=1)
    squarespace_api_key: str = Field(..., min_length=1)
    squarespace_orders_url: str = DEFAULT_SQUARESPACE_ORDERS_URL
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Returns:
            Populated Settings.

        Raises:
            ConfigurationError: If a required variable is missing or blank,
                or PORT is not an integer.
        """
        env = os.environ if environ is None else environ

        missing = [name for name in REQUIRED_VARIABLES if not env.get(name, "").strip()]
        if missing:
            raise ConfigurationError(f"Missing required env vars: {', '.join(missing)}")

        raw_port = env.get("PORT", "").strip() or str(DEFAULT_PORT)
        try:
            port = int(raw_port)
        except ValueError as e:
            raise ConfigurationError(f"PORT must be an integer, got {raw_port!r}") from e

        return cls(
            stripe_api_key=env["STRIPE_API_KEY"].strip(),
            stripe_webhook_secret=env["STRIPE_WEBHOOK_SECRET"].strip(),
            squarespace_api_key=env["SQUARESPACE_API_KEY"].strip(),
            squarespace_orders_url=(
                env.get("SQUARESPACE_ORDERS_URL", "").strip() or DEFAULT_SQUARESPACE_ORDERS_URL
            ).rstrip("/"),
            port=port,
            log_level=env.get("LOG_LEVEL", "").strip().upper() or "INFO",
        )


def load_settings_or_exit(environ: Mapping[str, str] | None = None) -> Settings:
    """Load settings, terminating the process if they are incomplete."""
    try:
        return Settings.from_env(environ)
    except ConfigurationError as e:
        logger.error("%s", e.message)
        sys.exit(1)
