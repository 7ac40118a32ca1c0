"""Order asset publisher — Shopify orders/paid webhooks and preview uploads to Shopify Files."""

__version__ = "0.1.0"
