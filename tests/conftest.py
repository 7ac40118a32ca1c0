"""Shared fixtures for the asset publisher test suite."""

from __future__ import annotations

import pytest

from asset_publisher.config import Settings
from fakes import ACCESS_TOKEN, SHOP_DOMAIN, WEBHOOK_SECRET, FakeShopify, FakeSleep


@pytest.fixture()
def settings() -> Settings:
    """Fixture credentials, no environment or .env involved."""
    return Settings(
        _env_file=None,
        shopify_shop_domain=SHOP_DOMAIN,
        shopify_admin_access_token=ACCESS_TOKEN,
        shopify_webhook_secret=WEBHOOK_SECRET,
        preview_poll_attempts=4,
        preview_poll_interval=0.0,
    )


@pytest.fixture()
def fake_shopify() -> FakeShopify:
    """Shopify that reports the file ready on the 3rd poll."""
    return FakeShopify(ready_after=3)


@pytest.fixture()
def fake_sleep() -> FakeSleep:
    return FakeSleep()
