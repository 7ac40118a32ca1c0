"""Error taxonomy for the webhook and publication pipelines.

Every terminal failure raised by this package derives from AssetPipelineError
and carries the HTTP status it surfaces as. A readiness timeout is not an
error: the publisher returns a PendingResult instead.
"""

from __future__ import annotations


class AssetPipelineError(Exception):
    """Base exception for webhook verification and asset publication."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize pipeline error.

        Args:
            message: Error description safe to return to the caller
            status_code: Overrides the class-level HTTP status
        """
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(AssetPipelineError):
    """Required credential or secret is absent. Not retryable."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Missing env: {name}")
        self.name = name


class AuthenticationError(AssetPipelineError):
    """Webhook signature missing or mismatched."""

    status_code = 401

    def __init__(self) -> None:
        super().__init__("Invalid HMAC")


class ValidationError(AssetPipelineError):
    """Malformed input payload (bad encoding, missing required field)."""

    status_code = 400


class PayloadDecodeError(AssetPipelineError):
    """Verified webhook body is not valid JSON."""


class RemoteProtocolError(AssetPipelineError):
    """Shopify returned a non-success status or a GraphQL user error."""

    def __init__(self, operation: str, message: str, detail: object = None) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.detail = detail
        # Set once fileCreate succeeded, so the created file can be re-checked
        self.file_id: str | None = None
