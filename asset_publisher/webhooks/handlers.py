"""Webhook HTTP handler — FastAPI route for Shopify orders/paid.

The handler:
1. Requires the webhook secret (ConfigurationError -> 500)
2. Reads raw body (needed for HMAC verification)
3. Verifies the signature (401, uniform message, body never parsed)
4. Parses the payload into an InboundEvent (malformed JSON -> 500)
5. Hands the event to the downstream consumer

Security contract:
- Missing and mismatched signatures get the same response
- Unexpected errors return a generic message (info disclosure)
- Log all webhook activity for audit trail
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from asset_publisher.config import Settings
from asset_publisher.errors import AssetPipelineError, AuthenticationError
from asset_publisher.webhooks.events import (
    OrderEventConsumer,
    hand_off,
    log_order_event,
    parse_order_event,
)
from asset_publisher.webhooks.verification import verify_webhook

logger = logging.getLogger(__name__)

ORDERS_PAID_PATH = "/webhooks/shopify/orders-paid"


def _log_webhook(topic: str, webhook_id: str, status: str) -> None:
    """Audit log for webhook activity."""
    logger.info(
        "WEBHOOK_AUDIT topic=%s id=%s status=%s",
        topic or "unknown",
        webhook_id or "unknown",
        status,
    )


def _error(exc: AssetPipelineError) -> JSONResponse:
    return JSONResponse({"ok": False, "error": exc.message}, status_code=exc.status_code)


async def handle_orders_paid(
    request: Request,
    settings: Settings,
    consumer: OrderEventConsumer = log_order_event,
) -> JSONResponse:
    """Authenticate an orders/paid webhook and hand off the event.

    Returns 200 on success, 401 on signature failure, 500 otherwise.
    """
    start = time.time()
    headers = {k.lower(): v for k, v in request.headers.items()}
    topic = headers.get("x-shopify-topic", "")
    webhook_id = headers.get("x-shopify-webhook-id", "")

    try:
        secret = settings.require("shopify_webhook_secret")
        body = await request.body()

        if not verify_webhook(body, headers, secret):
            _log_webhook(topic, webhook_id, "signature_failed")
            raise AuthenticationError()

        event = parse_order_event(body, headers)
        await hand_off(event, consumer)
    except AssetPipelineError as e:
        if e.status_code >= 500:
            logger.error("[orders-paid] error topic=%s id=%s: %s", topic, webhook_id, e.message)
        return _error(e)
    except Exception:
        logger.exception("[orders-paid] unhandled error topic=%s id=%s", topic, webhook_id)
        return JSONResponse({"ok": False, "error": "Internal error"}, status_code=500)

    _log_webhook(topic, webhook_id, "accepted")
    elapsed_ms = (time.time() - start) * 1000
    logger.debug("Webhook processed in %.1fms: order=%s", elapsed_ms, event.order_id)
    return JSONResponse({"ok": True}, status_code=200)


def register_webhook_routes(
    app: FastAPI,
    settings: Settings,
    consumer: OrderEventConsumer = log_order_event,
) -> None:
    """Register the orders/paid webhook route on the FastAPI app."""

    @app.post(ORDERS_PAID_PATH)
    async def shopify_orders_paid(request: Request):
        """Receive Shopify orders/paid webhooks (signature-verified)."""
        return await handle_orders_paid(request, settings, consumer)

    logger.info("Webhook routes registered: %s", ORDERS_PAID_PATH)
