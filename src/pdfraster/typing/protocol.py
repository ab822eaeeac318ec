"""Storage interfaces."""

from __future__ import annotations

from typing import Protocol


class ObjectStore(Protocol):
    """Object storage capability used by the upload fan-out."""

    async def put_object(self, key: str, data: bytes, *, content_type: str) -> None:
        """Write bytes at key, overwriting any existing object.

        Args:
            key: Object key.
            data: Object payload.
            content_type: MIME type stored with the object.
        """
