"""Runtime configuration for the fulfillment backend.

Settings are read from environment variables once per process and cached.
Stripe secrets may be left unset; the Stripe service then falls back to
SSM Parameter Store under ``/storefront/<environment>/stripe/``.

Usage:
    from fulfillment.config import get_settings

    settings = get_settings()
    settings.table_prefix  # "storefront-dev"
"""

import os
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


class Settings(BaseModel):
    """Process-wide configuration values."""

    model_config = ConfigDict(frozen=True)

    environment: str = Field(default="dev", description="Deployment environment")
    table_prefix: str = Field(
        default="storefront-dev",
        description="Prefix prepended to every DynamoDB table name",
    )
    stripe_secret_key: str | None = Field(
        default=None,
        description="Stripe API key (sk_/rk_). Read from SSM when unset.",
    )
    stripe_webhook_secret: str | None = Field(
        default=None,
        description="Webhook signing secret (whsec_). Read from SSM when unset.",
    )
    stripe_webhook_tolerance: int = Field(
        default=300,
        ge=0,
        description="Maximum signature timestamp age in seconds",
    )
    inventory_cache_ttl: float = Field(
        default=30.0,
        ge=0,
        description="Seconds an inventory read stays cached",
    )
    clamp_negative_stock: bool = Field(
        default=True,
        description="Floor decremented stock at zero instead of going negative",
    )
    currency: str = Field(default="eur", description="ISO currency for payments")
    log_level: str = Field(default="INFO")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current process environment."""
        environment = os.environ.get("ENVIRONMENT", "dev")
        return cls(
            environment=environment,
            table_prefix=os.environ.get(
                "DYNAMODB_TABLE_PREFIX", f"storefront-{environment}"
            ),
            stripe_secret_key=os.environ.get("STRIPE_SECRET_KEY") or None,
            stripe_webhook_secret=os.environ.get("STRIPE_WEBHOOK_SECRET") or None,
            stripe_webhook_tolerance=int(
                os.environ.get("STRIPE_WEBHOOK_TOLERANCE", "300")
            ),
            inventory_cache_ttl=float(os.environ.get("INVENTORY_CACHE_TTL", "30")),
            clamp_negative_stock=_env_bool("CLAMP_NEGATIVE_STOCK", True),
            currency=os.environ.get("CURRENCY", "eur").lower(),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )

    def ssm_parameter(self, name: str) -> str:
        """Full SSM path for a Stripe parameter in this environment."""
        return f"/storefront/{self.environment}/stripe/{name}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the cached process settings.

    Call ``get_settings.cache_clear()`` after changing the environment
    (tests do this in their fixtures).
    """
    return Settings.from_env()
