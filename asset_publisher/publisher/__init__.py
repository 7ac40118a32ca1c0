"""Asset publisher — pushes preview images to Shopify Files."""

from asset_publisher.publisher.models import PendingResult, PollConfig, PublishResult
from asset_publisher.publisher.pipeline import AssetPublisher

__all__ = ["AssetPublisher", "PendingResult", "PollConfig", "PublishResult"]
