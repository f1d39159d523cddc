"""Cursor encoding and decoding for user listing.

Cursors are opaque strings that encode a position the identity provider can
resume from. The provider offers two ways to address a record, so a cursor
takes one of two shapes:

1. Scan cursor: the provider's continuation token plus an offset into the
   batch that token returns.
2. Point cursor: a lookup field and value identifying a single record.

The cursor format is:
1. JSON object with short keys (f, v, l, o); unset fields are omitted
2. Standard base64 encoded

Example cursor payloads:
    {"l": "AKx1p9...", "o": 0}
    {"f": "id", "v": "u1"}

Encoded: eyJmIjoiaWQiLCJ2IjoidTEifQ==
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from pydantic import BaseModel, Field, StrictInt, StrictStr, ValidationError

from identity_directory.core.exceptions import MalformedCursorException

# Provider continuation tokens are a few hundred characters
MAX_CURSOR_LENGTH = 8192

_KEYS = {
    "field": "f",
    "value": "v",
    "list_token": "l",
    "offset": "o",
}


class CursorData(BaseModel):
    """Internal representation of cursor data.

    Every field is optional. Unset fields stay ``None`` after a round trip so
    callers can tell "no offset" apart from "offset zero".

    Attributes:
        field: Lookup field of a point cursor
        value: Lookup value of a point cursor
        list_token: Provider continuation token of a scan cursor
        offset: Number of batch entries to skip when resuming a scan
    """

    field: StrictStr | None = Field(default=None, description="Point lookup field")
    value: StrictStr | None = Field(default=None, description="Point lookup value")
    list_token: StrictStr | None = Field(
        default=None,
        description="Provider continuation token",
    )
    offset: StrictInt | None = Field(
        default=None,
        ge=0,
        description="Entries to skip inside the fetched batch",
    )

    model_config = {"frozen": True}

    @property
    def is_point(self) -> bool:
        """Whether this cursor resumes a filtered point lookup."""
        return self.field is not None


class CursorCodec:
    """Encode and decode pagination cursors.

    Usage:
        # Encoding
        cursor = CursorCodec.encode(CursorData(list_token=token, offset=0))

        # Decoding
        data = CursorCodec.decode(cursor)
        print(data.list_token, data.offset)
    """

    @staticmethod
    def encode(data: CursorData) -> str:
        """Encode cursor data to an opaque string.

        Args:
            data: Cursor data to serialize

        Returns:
            Base64 encoded JSON document
        """
        serialized = {
            key: getattr(data, name)
            for name, key in _KEYS.items()
            if getattr(data, name) is not None
        }
        json_str = json.dumps(serialized, separators=(",", ":"))
        return base64.b64encode(json_str.encode("utf-8")).decode("ascii")

    @staticmethod
    def decode(cursor: str) -> CursorData:
        """Decode a cursor string to cursor data.

        Args:
            cursor: Base64 encoded cursor string

        Returns:
            CursorData with the fields present in the payload

        Raises:
            MalformedCursorException: If the cursor is oversized, not base64,
                not a JSON object (including JSON nested too deeply to parse),
                or carries a field of the wrong type
        """
        if len(cursor) > MAX_CURSOR_LENGTH:
            msg = f"Invalid cursor: longer than {MAX_CURSOR_LENGTH} characters"
            raise MalformedCursorException(msg, extra={"cursor": cursor[:64]})

        try:
            json_str = base64.b64decode(cursor.encode("ascii"), validate=True).decode("utf-8")
            payload: Any = json.loads(json_str)
        except (UnicodeError, binascii.Error, ValueError, RecursionError) as e:
            msg = f"Invalid cursor: {e}"
            raise MalformedCursorException(msg, extra={"cursor": cursor}) from e

        if not isinstance(payload, dict):
            msg = "Invalid cursor: payload is not a JSON object"
            raise MalformedCursorException(msg, extra={"cursor": cursor})

        try:
            return CursorData(
                **{name: payload[key] for name, key in _KEYS.items() if key in payload}
            )
        except ValidationError as e:
            msg = f"Invalid cursor: {e.errors()[0]['msg']}"
            raise MalformedCursorException(msg, extra={"cursor": cursor}) from e

    @staticmethod
    def scan(list_token: str | None, offset: int) -> str:
        """Create a scan cursor resuming ``offset`` entries into a batch."""
        return CursorCodec.encode(CursorData(list_token=list_token, offset=offset))

    @staticmethod
    def point(field: str, value: str) -> str:
        """Create a point cursor addressing a single record."""
        return CursorCodec.encode(CursorData(field=field, value=value))


__all__ = ["CursorCodec", "CursorData"]
