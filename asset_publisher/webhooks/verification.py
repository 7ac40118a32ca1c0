"""Shopify webhook signature verification — constant-time HMAC.

Security contract:
- The HMAC is computed over the raw request body, never a re-serialized form
- Missing signature -> rejected before any HMAC is computed
- Length mismatch -> rejected, equal lengths compared with hmac.compare_digest()
- Missing secret -> ConfigurationError (a deployment fault, not an auth failure)
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging

from asset_publisher.errors import ConfigurationError

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-shopify-hmac-sha256"


def sign_shopify(body: bytes, secret: str) -> str:
    """Return the base64-encoded HMAC-SHA256 of body, as Shopify sends it."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_shopify(body: bytes, signature_header: str | None, secret: str) -> bool:
    """Verify Shopify webhook HMAC-SHA256 signature.

    Shopify sends: X-Shopify-Hmac-SHA256 header (base64-encoded HMAC-SHA256).

    Args:
        body: Raw request body bytes
        signature_header: Value of X-Shopify-Hmac-SHA256 header
        secret: Shared webhook secret

    Returns:
        True if signature is valid

    Raises:
        ConfigurationError: if no secret is configured
    """
    if not secret:
        raise ConfigurationError("SHOPIFY_WEBHOOK_SECRET")
    if not signature_header:
        return False

    computed = sign_shopify(body, secret).encode("ascii")
    supplied = signature_header.encode("utf-8")
    if len(computed) != len(supplied):
        return False
    return hmac.compare_digest(computed, supplied)


def verify_webhook(body: bytes, headers: dict[str, str], secret: str) -> bool:
    """Verify a webhook request given lowercase-keyed headers."""
    return verify_shopify(body, headers.get(SIGNATURE_HEADER), secret)
