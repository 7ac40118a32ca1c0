"""Inbound order event — normalized projection of a verified webhook.

Only built after the signature has been verified. Every field is a
null-safe read of the parsed body or headers: absent values resolve to
None (body fields) or "" (headers), never an exception.
"""

from __future__ import annotations

import inspect
import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable, Union

from asset_publisher.errors import PayloadDecodeError

logger = logging.getLogger(__name__)

TOPIC_HEADER = "x-shopify-topic"
SHOP_DOMAIN_HEADER = "x-shopify-shop-domain"
WEBHOOK_ID_HEADER = "x-shopify-webhook-id"


@dataclass(frozen=True)
class InboundEvent:
    """Verified order notification, consumed once by a downstream handler."""

    topic: str
    shop_domain: str
    webhook_id: str
    order_id: int | str | None
    order_name: str | None
    financial_status: str | None
    paid_at: str | None

    def to_log_fields(self) -> dict[str, Any]:
        return asdict(self)


OrderEventConsumer = Callable[[InboundEvent], Union[None, Awaitable[None]]]


def decode_payload(body: bytes) -> dict[str, Any]:
    """Parse a verified webhook body. An empty body is an empty object.

    Raises:
        PayloadDecodeError: if the body is not valid UTF-8 JSON
    """
    if not body:
        return {}
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise PayloadDecodeError(f"Invalid JSON payload: {e}") from e
    if not isinstance(payload, dict):
        # Valid JSON but not an order object: every order field reads as None
        return {}
    return payload


def parse_order_event(body: bytes, headers: dict[str, str]) -> InboundEvent:
    """Build an InboundEvent from a verified body and lowercase headers."""
    payload = decode_payload(body)
    return InboundEvent(
        topic=headers.get(TOPIC_HEADER, ""),
        shop_domain=headers.get(SHOP_DOMAIN_HEADER, ""),
        webhook_id=headers.get(WEBHOOK_ID_HEADER, ""),
        order_id=payload.get("id"),
        order_name=payload.get("name"),
        financial_status=payload.get("financial_status"),
        paid_at=payload.get("processed_at") or payload.get("updated_at") or None,
    )


def log_order_event(event: InboundEvent) -> None:
    """Default consumer: record the event for the audit trail."""
    logger.info("[orders-paid] webhook received %s", event.to_log_fields())


async def hand_off(event: InboundEvent, consumer: OrderEventConsumer) -> None:
    """Deliver the event to a sync or async consumer."""
    result = consumer(event)
    if inspect.isawaitable(result):
        await result
