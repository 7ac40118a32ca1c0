"""Shopify GraphQL Admin API client.

Async wrapper around the Admin GraphQL endpoint and the staged-upload
storage URL it hands out. Every call is a single attempt: staging tokens and
file records are not idempotent, so retries are left to the caller.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from asset_publisher.config import Settings
from asset_publisher.errors import ConfigurationError, RemoteProtocolError

logger = logging.getLogger(__name__)

# Maximum response body echoed into error messages
_MAX_DETAIL_LENGTH = 2000


def _truncate(text: str) -> str:
    if len(text) > _MAX_DETAIL_LENGTH:
        return text[:_MAX_DETAIL_LENGTH] + "..."
    return text


class ShopifyAdminClient:
    """Admin API client bound to one shop/token pair."""

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        api_version: str = "2026-01",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not shop_domain:
            raise ConfigurationError("SHOPIFY_SHOP_DOMAIN")
        if not access_token:
            raise ConfigurationError("SHOPIFY_ADMIN_ACCESS_TOKEN")
        self.shop_domain = shop_domain
        self.api_version = api_version
        self._access_token = access_token
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> ShopifyAdminClient:
        return cls(
            shop_domain=settings.require("shopify_shop_domain"),
            access_token=settings.require("shopify_admin_access_token"),
            api_version=settings.shopify_api_version,
            timeout=settings.http_timeout,
            transport=transport,
        )

    @property
    def endpoint(self) -> str:
        return f"https://{self.shop_domain}/admin/api/{self.api_version}/graphql.json"

    async def graphql(
        self, operation: str, query: str, variables: dict | None = None
    ) -> dict[str, Any]:
        """Execute a GraphQL request and return its ``data`` object.

        Args:
            operation: Name used in logs and error messages
            query: GraphQL document
            variables: Query variables

        Raises:
            RemoteProtocolError: on transport failure, non-2xx status or
                top-level GraphQL errors
        """
        try:
            response = await self._http.post(
                self.endpoint,
                json={"query": query, "variables": variables or {}},
                headers={
                    "X-Shopify-Access-Token": self._access_token,
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError as e:
            raise RemoteProtocolError(
                operation, f"Shopify GraphQL request failed ({type(e).__name__}): {e}"
            ) from e
        try:
            body = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            body = {}
        if not isinstance(body, dict):
            body = {}

        if not response.is_success:
            raise RemoteProtocolError(
                operation,
                f"Shopify GraphQL HTTP {response.status_code}: "
                f"{_truncate(json.dumps(body) if body else response.text)}",
                detail=body,
            )
        errors = body.get("errors")
        if errors:
            raise RemoteProtocolError(
                operation,
                f"Shopify GraphQL errors: {_truncate(json.dumps(errors))}",
                detail=errors,
            )
        return body.get("data") or {}

    async def upload_staged(
        self,
        url: str,
        parameters: list[tuple[str, str]],
        filename: str,
        data: bytes,
        mime_type: str,
    ) -> None:
        """POST a multipart form to a staged upload URL.

        Parameters are sent verbatim and in order (repeated names included) as
        plain form parts, followed by the file part.

        Raises:
            RemoteProtocolError: on transport failure or non-2xx status, with
                the response body
        """
        parts: list[tuple[str, tuple]] = [(name, (None, value)) for name, value in parameters]
        parts.append(("file", (filename, data, mime_type or "application/octet-stream")))
        try:
            response = await self._http.post(url, files=parts)
        except httpx.HTTPError as e:
            raise RemoteProtocolError(
                "stagedUpload", f"Error uploading to staged url ({type(e).__name__}): {e}"
            ) from e
        if not response.is_success:
            raise RemoteProtocolError(
                "stagedUpload",
                f"Error uploading to staged url (HTTP {response.status_code}): "
                f"{_truncate(response.text)}",
                detail=response.text,
            )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> ShopifyAdminClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
