"""Decoding of ``data:<mime>;base64,<payload>`` image URIs."""

from __future__ import annotations

import base64
import binascii
import re

from asset_publisher.errors import ValidationError
from asset_publisher.publisher.models import DecodedImage

_DATA_URL_RE = re.compile(r"^data:([^;,]+);base64,(.+)$", re.IGNORECASE)


def decode_data_url(data_url: str) -> DecodedImage:
    """Split a base64 data URI into its mime type and raw bytes.

    Raises:
        ValidationError: if the prefix is not recognized or the payload is
            not valid base64
    """
    match = _DATA_URL_RE.match(data_url or "")
    if not match:
        raise ValidationError("Invalid dataUrl (expected data:*/*;base64,...)")
    mime_type, payload = match.group(1), match.group(2)
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Invalid dataUrl base64 payload: {e}") from e
    return DecodedImage(mime_type=mime_type, data=data)
