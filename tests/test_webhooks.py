"""Tests for the webhook inbound system.

Tests:
- Signature verification (constant-time HMAC over the raw body)
- Property-based: signed bodies verify, any flipped byte fails
- InboundEvent projection with null-safe defaults
- Handler integration (full request flow through FastAPI)
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from hypothesis import given, settings as hsettings
from hypothesis import strategies as st

from asset_publisher.api import create_app
from asset_publisher.errors import ConfigurationError, PayloadDecodeError
from asset_publisher.webhooks.events import InboundEvent, decode_payload, parse_order_event
from asset_publisher.webhooks.handlers import ORDERS_PAID_PATH
from asset_publisher.webhooks.verification import sign_shopify, verify_shopify, verify_webhook
from fakes import WEBHOOK_SECRET

ORDER_BODY = json.dumps(
    {
        "id": 820982911946154508,
        "name": "#9999",
        "financial_status": "paid",
        "processed_at": "2026-10-19T10:00:00-05:00",
        "updated_at": "2026-10-19T10:00:05-05:00",
    }
).encode()


def _sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    """Compute valid Shopify signature."""
    digest = hmac.new(secret.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


# ── Signature Verification ────────────────────────────────────────────────


class TestShopifyVerification:
    """Shopify HMAC-SHA256 verification (base64-encoded)."""

    def test_valid_signature(self):
        assert verify_shopify(ORDER_BODY, _sign(ORDER_BODY), WEBHOOK_SECRET) is True

    def test_sign_matches_reference_digest(self):
        assert sign_shopify(ORDER_BODY, WEBHOOK_SECRET) == _sign(ORDER_BODY)

    def test_invalid_signature(self):
        assert verify_shopify(ORDER_BODY, "invalid-signature", WEBHOOK_SECRET) is False

    def test_tampered_body(self):
        sig = _sign(b'{"id": 123}')
        assert verify_shopify(b'{"id": 456}', sig, WEBHOOK_SECRET) is False

    def test_wrong_secret(self):
        sig = _sign(ORDER_BODY, secret="other-secret")
        assert verify_shopify(ORDER_BODY, sig, WEBHOOK_SECRET) is False

    def test_reserialized_body_fails(self):
        """The digest covers raw bytes, so re-serializing breaks it."""
        sig = _sign(ORDER_BODY)
        reserialized = json.dumps(json.loads(ORDER_BODY), separators=(",", ":")).encode()
        assert verify_shopify(reserialized, sig, WEBHOOK_SECRET) is False

    def test_missing_signature(self):
        assert verify_shopify(b"body", None, WEBHOOK_SECRET) is False

    def test_empty_signature(self):
        assert verify_shopify(b"body", "", WEBHOOK_SECRET) is False

    def test_missing_signature_computes_no_hmac(self):
        with patch("asset_publisher.webhooks.verification.hmac.new") as mock_new:
            assert verify_shopify(b"body", None, WEBHOOK_SECRET) is False
        mock_new.assert_not_called()

    def test_empty_body_is_signed(self):
        assert verify_shopify(b"", _sign(b""), WEBHOOK_SECRET) is True

    def test_missing_secret_raises_configuration_error(self):
        """No secret configured is a deployment fault, not an auth failure."""
        with pytest.raises(ConfigurationError, match="SHOPIFY_WEBHOOK_SECRET"):
            verify_shopify(ORDER_BODY, "anything", "")

    def test_non_ascii_signature_rejected(self):
        assert verify_shopify(ORDER_BODY, "é" * 44, WEBHOOK_SECRET) is False

    def test_length_mismatch_skips_comparison(self):
        with patch(
            "asset_publisher.webhooks.verification.hmac.compare_digest",
            wraps=hmac.compare_digest,
        ) as compare:
            assert verify_shopify(ORDER_BODY, "short", WEBHOOK_SECRET) is False
        compare.assert_not_called()

    def test_equal_length_uses_constant_time_compare(self):
        wrong = "A" * len(_sign(ORDER_BODY))
        with patch(
            "asset_publisher.webhooks.verification.hmac.compare_digest",
            wraps=hmac.compare_digest,
        ) as compare:
            assert verify_shopify(ORDER_BODY, wrong, WEBHOOK_SECRET) is False
        compare.assert_called_once()


class TestVerifyWebhook:
    """verify_webhook reads the signature from lowercase headers."""

    def test_reads_hmac_header(self):
        headers = {"x-shopify-hmac-sha256": _sign(b"test")}
        assert verify_webhook(b"test", headers, WEBHOOK_SECRET) is True

    def test_missing_header(self):
        assert verify_webhook(b"test", {}, WEBHOOK_SECRET) is False


class TestVerificationProperties:
    """Property-based checks over arbitrary bodies and secrets."""

    @given(body=st.binary(max_size=512), secret=st.text(min_size=1, max_size=64))
    @hsettings(max_examples=100)
    def test_signed_body_always_verifies(self, body, secret):
        assert verify_shopify(body, sign_shopify(body, secret), secret) is True

    @given(data=st.data(), body=st.binary(min_size=1, max_size=512))
    @hsettings(max_examples=100)
    def test_any_flipped_byte_fails(self, data, body):
        sig = sign_shopify(body, WEBHOOK_SECRET)
        index = data.draw(st.integers(min_value=0, max_value=len(body) - 1))
        flip = data.draw(st.integers(min_value=1, max_value=255))
        tampered = bytearray(body)
        tampered[index] ^= flip
        assert verify_shopify(bytes(tampered), sig, WEBHOOK_SECRET) is False


# ── Event Parsing ─────────────────────────────────────────────────────────


class TestParseOrderEvent:
    """InboundEvent projection from verified body + headers."""

    HEADERS = {
        "x-shopify-topic": "orders/paid",
        "x-shopify-shop-domain": "tc32.myshopify.com",
        "x-shopify-webhook-id": "b54557e4-bdd9-4b37-8a5f-bf7d70bcd043",
    }

    def test_orders_paid(self):
        event = parse_order_event(ORDER_BODY, self.HEADERS)
        assert event == InboundEvent(
            topic="orders/paid",
            shop_domain="tc32.myshopify.com",
            webhook_id="b54557e4-bdd9-4b37-8a5f-bf7d70bcd043",
            order_id=820982911946154508,
            order_name="#9999",
            financial_status="paid",
            paid_at="2026-10-19T10:00:00-05:00",
        )

    def test_paid_at_falls_back_to_updated_at(self):
        body = json.dumps({"id": 1, "updated_at": "2026-10-19T11:00:00Z"}).encode()
        assert parse_order_event(body, {}).paid_at == "2026-10-19T11:00:00Z"

    def test_missing_fields_resolve_to_none(self):
        event = parse_order_event(b"{}", {})
        assert event.order_id is None
        assert event.order_name is None
        assert event.financial_status is None
        assert event.paid_at is None

    def test_missing_headers_default_to_empty(self):
        event = parse_order_event(ORDER_BODY, {})
        assert (event.topic, event.shop_domain, event.webhook_id) == ("", "", "")

    def test_empty_body_is_empty_object(self):
        assert decode_payload(b"") == {}

    def test_non_object_json_resolves_to_none(self):
        assert parse_order_event(b"[1, 2, 3]", {}).order_id is None

    def test_invalid_json_raises_decode_error(self):
        with pytest.raises(PayloadDecodeError) as exc_info:
            decode_payload(b"{not json")
        assert exc_info.value.status_code == 500

    def test_event_is_immutable(self):
        event = parse_order_event(ORDER_BODY, {})
        with pytest.raises(AttributeError):
            event.order_id = 5  # type: ignore[misc]


# ── Handler Integration ───────────────────────────────────────────────────


class TestOrdersPaidHandler:
    """Full request flow through the FastAPI route."""

    def _client(self, settings, consumer=None) -> TestClient:
        kwargs = {"consumer": consumer} if consumer is not None else {}
        return TestClient(create_app(settings, **kwargs), raise_server_exceptions=False)

    def _post(self, client: TestClient, body: bytes, signature: str | None):
        headers = {
            "Content-Type": "application/json",
            "X-Shopify-Topic": "orders/paid",
            "X-Shopify-Shop-Domain": "tc32.myshopify.com",
            "X-Shopify-Webhook-Id": "wh_1",
        }
        if signature is not None:
            headers["X-Shopify-Hmac-Sha256"] = signature
        return client.post(ORDERS_PAID_PATH, content=body, headers=headers)

    def test_valid_webhook_hands_off_event(self, settings):
        consumer = MagicMock(return_value=None)
        resp = self._post(self._client(settings, consumer), ORDER_BODY, _sign(ORDER_BODY))
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}
        assert resp.headers["content-type"] == "application/json"
        event = consumer.call_args[0][0]
        assert event.order_id == 820982911946154508
        assert event.topic == "orders/paid"
        assert event.webhook_id == "wh_1"

    def test_async_consumer_is_awaited(self, settings):
        seen: list[InboundEvent] = []

        async def consumer(event: InboundEvent) -> None:
            seen.append(event)

        resp = self._post(self._client(settings, consumer), ORDER_BODY, _sign(ORDER_BODY))
        assert resp.status_code == 200
        assert seen[0].order_name == "#9999"

    def test_invalid_hmac_returns_401_without_parsing(self, settings):
        with patch("asset_publisher.webhooks.handlers.parse_order_event") as mock_parse:
            resp = self._post(self._client(settings), ORDER_BODY, _sign(b"something else"))
        assert resp.status_code == 401
        assert resp.json() == {"ok": False, "error": "Invalid HMAC"}
        mock_parse.assert_not_called()

    def test_missing_hmac_returns_uniform_401(self, settings):
        resp = self._post(self._client(settings), ORDER_BODY, None)
        assert resp.status_code == 401
        assert resp.json() == {"ok": False, "error": "Invalid HMAC"}

    def test_missing_secret_returns_500(self, settings):
        settings.shopify_webhook_secret = ""
        resp = self._post(self._client(settings), ORDER_BODY, _sign(ORDER_BODY))
        assert resp.status_code == 500
        assert resp.json() == {"ok": False, "error": "Missing env: SHOPIFY_WEBHOOK_SECRET"}

    def test_malformed_json_after_verification_returns_500(self, settings):
        body = b"{not json"
        resp = self._post(self._client(settings), body, _sign(body))
        assert resp.status_code == 500
        assert resp.json()["ok"] is False
        assert "Invalid JSON" in resp.json()["error"]

    def test_empty_body_verified_and_accepted(self, settings):
        consumer = MagicMock(return_value=None)
        resp = self._post(self._client(settings, consumer), b"", _sign(b""))
        assert resp.status_code == 200
        assert consumer.call_args[0][0].order_id is None

    def test_consumer_failure_returns_generic_500(self, settings):
        consumer = MagicMock(side_effect=RuntimeError("db password is hunter2"))
        resp = self._post(self._client(settings, consumer), ORDER_BODY, _sign(ORDER_BODY))
        assert resp.status_code == 500
        assert resp.json() == {"ok": False, "error": "Internal error"}
