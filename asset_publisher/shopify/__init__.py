from asset_publisher.shopify.client import ShopifyAdminClient

__all__ = ["ShopifyAdminClient"]
