"""Webhook inbound system.

Receives Shopify orders/paid webhooks. Each webhook is signature-verified,
projected into an InboundEvent and handed to a downstream consumer.
"""
