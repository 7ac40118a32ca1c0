"""Environment-driven settings for the asset publisher service."""

from __future__ import annotations

from pydantic_settings import BaseSettings

from asset_publisher.errors import ConfigurationError


class Settings(BaseSettings):
    """Single shop/token pair plus the webhook secret and polling defaults."""

    shopify_shop_domain: str = ""  # e.g. "tc32.myshopify.com"
    shopify_admin_access_token: str = ""
    shopify_api_version: str = "2026-01"
    shopify_webhook_secret: str = ""

    preview_poll_attempts: int = 12
    preview_poll_interval: float = 0.8
    http_timeout: float = 30.0

    model_config = {"env_file": ".env", "extra": "ignore"}

    def require(self, name: str) -> str:
        """Return a non-empty setting or raise ConfigurationError."""
        value = getattr(self, name)
        if not value:
            raise ConfigurationError(name.upper())
        return value
