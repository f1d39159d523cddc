"""Cursor pagination primitives for the GraphQL Connection style.

The identity provider cannot seek by value, so cursors here encode either a
provider continuation token with an in-batch offset, or a point lookup key.
Cursors are opaque base64 strings that clients pass back unchanged.
"""

from identity_directory.core.pagination.cursor import CursorCodec, CursorData
from identity_directory.core.pagination.schemas import Connection, Edge, PageInfo

__all__ = [
    "Connection",
    "CursorCodec",
    "CursorData",
    "Edge",
    "PageInfo",
]
