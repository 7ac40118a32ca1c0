"""Value types passed between the publication pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_GROUP_ID = "TC32"
DEFAULT_AREA_KEY = "HERO"


class FileStatus(str, Enum):
    """Shopify ``fileStatus`` values."""
    UPLOADED = "UPLOADED"
    PROCESSING = "PROCESSING"
    READY = "READY"
    FAILED = "FAILED"


@dataclass(frozen=True)
class PollConfig:
    """Fixed-interval readiness polling budget (~10s by default)."""

    attempts: int = 12
    interval: float = 0.8

    def __post_init__(self) -> None:
        if self.attempts < 0:
            raise ValueError("attempts must be >= 0")
        if self.interval < 0:
            raise ValueError("interval must be >= 0")


@dataclass(frozen=True)
class DecodedImage:
    mime_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class StagedParameter:
    name: str
    value: str


@dataclass(frozen=True)
class StagedTarget:
    """Single-use upload credentials returned by stagedUploadsCreate."""

    upload_url: str
    resource_url: str
    parameters: tuple[StagedParameter, ...] = ()

    def form_fields(self) -> list[tuple[str, str]]:
        return [(p.name, p.value) for p in self.parameters]


@dataclass(frozen=True)
class RemoteFile:
    """Shopify-managed file as observed by fileCreate or a node query."""

    id: str
    status: FileStatus | None = None
    url: str | None = None
    errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def ready(self) -> bool:
        return bool(self.url)

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> RemoteFile:
        """Build from a MediaImage/GenericFile GraphQL node."""
        image = node.get("image") or {}
        url = image.get("url") or node.get("url") or None
        raw_status = node.get("fileStatus")
        try:
            status = FileStatus(raw_status) if raw_status else None
        except ValueError:
            status = None
        errors = tuple(
            e.get("message", "") for e in (node.get("fileErrors") or []) if isinstance(e, dict)
        )
        return cls(id=node.get("id", ""), status=status, url=url, errors=errors)


@dataclass(frozen=True)
class PublishResult:
    """File created and confirmed servable."""

    key: str
    id: str
    url: str

    def to_response(self) -> dict[str, Any]:
        return {"ok": True, "key": self.key, "id": self.id, "url": self.url}


@dataclass(frozen=True)
class PendingResult:
    """File created but not confirmed ready within the polling budget.

    Callers may re-check later using ``id``.
    """

    key: str
    id: str
    message: str = "File created but no URL received yet; retry later with the file id"
    url: None = None

    def to_response(self) -> dict[str, Any]:
        return {"ok": False, "error": self.message, "extra": {"id": self.id, "image": None}}


def group_key(group_id: str | None, area_key: str | None) -> str:
    return f"{group_id or DEFAULT_GROUP_ID}__{area_key or DEFAULT_AREA_KEY}"


def alt_text(group_id: str | None, area_key: str | None) -> str:
    return f"{group_id or DEFAULT_GROUP_ID}_{area_key or DEFAULT_AREA_KEY}"
