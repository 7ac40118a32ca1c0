"""HTTP surface — FastAPI app exposing the webhook and preview upload routes."""

from __future__ import annotations

import json
import logging

import httpx
import pydantic
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from asset_publisher.config import Settings
from asset_publisher.errors import AssetPipelineError, RemoteProtocolError, ValidationError
from asset_publisher.publisher import AssetPublisher, PollConfig
from asset_publisher.shopify import ShopifyAdminClient
from asset_publisher.webhooks.events import OrderEventConsumer, log_order_event
from asset_publisher.webhooks.handlers import register_webhook_routes

logger = logging.getLogger(__name__)

UPLOAD_PREVIEW_PATH = "/api/previews/upload"


class UploadPreviewInput(BaseModel):
    data_url: str = Field(alias="dataUrl", min_length=1, description="data:<mime>;base64,<payload>")
    filename: str = Field(min_length=1, description="Filename reported to Shopify")
    group_id: str | None = Field(default=None, alias="groupId")
    area_key: str | None = Field(default=None, alias="areaKey")


async def _read_upload_input(request: Request) -> UploadPreviewInput:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Request body must be JSON") from e
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    if not body.get("dataUrl") or not body.get("filename"):
        raise ValidationError("Missing dataUrl or filename")
    try:
        return UploadPreviewInput.model_validate(body)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid request: {e.errors()[0]['msg']}") from e


def register_upload_routes(
    app: FastAPI,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """Register the preview upload route on the FastAPI app."""
    poll_config = PollConfig(
        attempts=settings.preview_poll_attempts,
        interval=settings.preview_poll_interval,
    )

    @app.post(UPLOAD_PREVIEW_PATH)
    async def upload_preview(request: Request):
        """Publish a preview image to Shopify Files.

        200 when the URL is ready, 202 when the file is created but pending,
        400 for malformed input, 500 for configuration or Shopify failures.
        """
        try:
            params = await _read_upload_input(request)
            async with ShopifyAdminClient.from_settings(settings, transport=transport) as client:
                publisher = AssetPublisher(client, poll_config)
                result = await publisher.publish(
                    params.data_url,
                    params.filename,
                    group_id=params.group_id,
                    area_key=params.area_key,
                )
        except RemoteProtocolError as e:
            logger.error("[%s] ERROR id=%s: %s", UPLOAD_PREVIEW_PATH, e.file_id, e.message)
            body = {"ok": False, "error": e.message}
            if e.file_id:
                body["extra"] = {"id": e.file_id, "image": None}
            return JSONResponse(body, status_code=e.status_code)
        except AssetPipelineError as e:
            if e.status_code >= 500:
                logger.error("[%s] ERROR: %s", UPLOAD_PREVIEW_PATH, e.message)
            return JSONResponse({"ok": False, "error": e.message}, status_code=e.status_code)
        except Exception:
            logger.exception("[%s] unhandled error", UPLOAD_PREVIEW_PATH)
            return JSONResponse({"ok": False, "error": "Internal error"}, status_code=500)

        status = 200 if result.url else 202
        return JSONResponse(result.to_response(), status_code=status)

    logger.info("Upload routes registered: %s", UPLOAD_PREVIEW_PATH)


def create_app(
    settings: Settings | None = None,
    consumer: OrderEventConsumer = log_order_event,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the FastAPI app with injected settings.

    Args:
        settings: Service configuration, read from the environment if omitted
        consumer: Downstream handler for verified orders/paid events
        transport: httpx transport for Shopify calls (tests inject a mock)
    """
    settings = settings or Settings()
    app = FastAPI(title="Order Asset Publisher")
    register_webhook_routes(app, settings, consumer)
    register_upload_routes(app, settings, transport)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app
