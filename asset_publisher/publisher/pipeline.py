"""Asset publication pipeline: data URI -> Shopify Files URL.

Stages run strictly in order and each fails fast:

1. decode: parse the data URI (no remote call on failure)
2. stage: stagedUploadsCreate, one-time upload target
3. upload: multipart POST to the staged URL
4. register: fileCreate from the staged resource
5. poll: node(id) until a URL appears or the budget runs out

Running out of polls is not an error: the file exists, so a PendingResult
with its id is returned. Nothing here is idempotent on Shopify's side; a
caller retrying the whole pipeline may create duplicate files.
"""

from __future__ import annotations

import asyncio
import logging

from asset_publisher.errors import RemoteProtocolError
from asset_publisher.publisher.datauri import decode_data_url
from asset_publisher.publisher.models import (
    DecodedImage,
    PendingResult,
    PollConfig,
    PublishResult,
    RemoteFile,
    StagedParameter,
    StagedTarget,
    alt_text,
    group_key,
)
from asset_publisher.publisher.polling import ReadinessPoller, Sleep
from asset_publisher.shopify import queries
from asset_publisher.shopify.client import ShopifyAdminClient

logger = logging.getLogger(__name__)


def _user_errors(operation: str, payload: dict) -> None:
    errors = payload.get("userErrors") or []
    if errors:
        messages = "; ".join(str(e.get("message", e)) for e in errors)
        raise RemoteProtocolError(operation, messages, detail=errors)


class AssetPublisher:
    """Publishes in-memory images to Shopify Files.

    Holds no per-invocation state, so concurrent publish() calls are
    independent.
    """

    def __init__(
        self,
        client: ShopifyAdminClient,
        poll_config: PollConfig | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self._client = client
        self._poll_config = poll_config or PollConfig()
        self._sleep = sleep

    async def stage(self, filename: str, image: DecodedImage) -> StagedTarget:
        data = await self._client.graphql(
            "stagedUploadsCreate",
            queries.STAGED_UPLOADS_CREATE,
            {
                "input": [
                    {
                        "resource": "IMAGE",
                        "filename": filename,
                        "mimeType": image.mime_type,
                        "fileSize": str(image.size),
                        "httpMethod": "POST",
                    }
                ]
            },
        )
        payload = data.get("stagedUploadsCreate") or {}
        _user_errors("stagedUploadsCreate", payload)

        targets = payload.get("stagedTargets") or []
        target = targets[0] if targets else {}
        if not target.get("url") or not target.get("resourceUrl"):
            raise RemoteProtocolError("stagedUploadsCreate", "No staged target received")
        return StagedTarget(
            upload_url=target["url"],
            resource_url=target["resourceUrl"],
            parameters=tuple(
                StagedParameter(p["name"], p["value"]) for p in target.get("parameters") or []
            ),
        )

    async def upload(self, target: StagedTarget, filename: str, image: DecodedImage) -> None:
        await self._client.upload_staged(
            target.upload_url,
            target.form_fields(),
            filename,
            image.data,
            image.mime_type,
        )

    async def register(self, target: StagedTarget, alt: str) -> RemoteFile:
        data = await self._client.graphql(
            "fileCreate",
            queries.FILE_CREATE,
            {
                "files": [
                    {
                        "alt": alt,
                        "contentType": "IMAGE",
                        "originalSource": target.resource_url,
                    }
                ]
            },
        )
        payload = data.get("fileCreate") or {}
        _user_errors("fileCreate", payload)

        files = payload.get("files") or []
        created = RemoteFile.from_node(files[0]) if files and files[0] else None
        if created is None or not created.id:
            raise RemoteProtocolError("fileCreate", "File created but no ID returned")
        return created

    async def fetch_file(self, file_id: str) -> RemoteFile:
        data = await self._client.graphql("node", queries.FILE_NODE, {"id": file_id})
        node = data.get("node") or {}
        return RemoteFile.from_node({"id": file_id, **node})

    async def publish(
        self,
        data_url: str,
        filename: str,
        group_id: str | None = None,
        area_key: str | None = None,
        poll_config: PollConfig | None = None,
        cancel: asyncio.Event | None = None,
    ) -> PublishResult | PendingResult:
        """Publish an encoded image and wait for a servable URL.

        Args:
            data_url: ``data:<mime>;base64,<payload>`` image
            filename: Filename reported to Shopify and the storage target
            group_id: Grouping identifier (e.g. order), defaults to "TC32"
            area_key: Area within the group, defaults to "HERO"
            poll_config: Overrides the publisher's default polling budget
            cancel: Checked before each poll; when set, polling stops early

        Returns:
            PublishResult when a URL was observed, PendingResult otherwise

        Raises:
            ValidationError: malformed data URI (no remote calls made)
            RemoteProtocolError: any remote stage failed; carries ``file_id``
                when the failure happened after fileCreate
        """
        key = group_key(group_id, area_key)
        image = decode_data_url(data_url)
        created: RemoteFile | None = None

        try:
            target = await self.stage(filename, image)
            logger.info("PUBLISH_AUDIT stage=staged key=%s filename=%s", key, filename)
            await self.upload(target, filename, image)
            logger.info("PUBLISH_AUDIT stage=uploaded key=%s resource=%s", key, target.resource_url)
            created = await self.register(target, alt_text(group_id, area_key))
            logger.info("PUBLISH_AUDIT stage=registered key=%s id=%s", key, created.id)

            ready = created if created.ready else None
            if ready is None:
                poller = ReadinessPoller(
                    self.fetch_file,
                    poll_config or self._poll_config,
                    sleep=self._sleep,
                    cancel=cancel,
                )
                ready = await poller.run(created.id)
        except RemoteProtocolError as e:
            if created is not None:
                e.file_id = created.id
            logger.error(
                "PUBLISH_AUDIT stage=failed key=%s id=%s operation=%s error=%s",
                key,
                e.file_id,
                e.operation,
                e.message,
            )
            raise

        if ready is None:
            logger.info("PUBLISH_AUDIT stage=pending key=%s id=%s", key, created.id)
            return PendingResult(key=key, id=created.id)

        logger.info("PUBLISH_AUDIT stage=ready key=%s id=%s", key, created.id)
        return PublishResult(key=key, id=created.id, url=ready.url)
