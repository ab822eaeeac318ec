"""Content addressing for rendered pages."""

from __future__ import annotations

import hashlib
import struct

_FINGERPRINT_VERSION = b"pdfraster/1"


def _update_framed(digest: hashlib._Hash, chunk: bytes) -> None:
    """Feed a length-prefixed chunk so field boundaries stay unambiguous."""
    digest.update(struct.pack(">Q", len(chunk)))
    digest.update(chunk)


def fingerprint_document(data: bytes, *, scale: float, password: str | None) -> str:
    """Compute the key prefix shared by every page of one conversion.

    Only inputs that change rendered pixels feed the hash: the document bytes,
    the scale and the password. Output format and page selection do not.

    Args:
        data (bytes): Raw PDF bytes.
        scale (float): Render scale.
        password (str | None): Document password, if any.

    Returns:
        str: SHA-256 hex digest.
    """
    digest = hashlib.sha256()
    _update_framed(digest, _FINGERPRINT_VERSION)
    _update_framed(digest, data)
    _update_framed(digest, repr(float(scale)).encode("ascii"))
    if password is None:
        _update_framed(digest, b"\x00")
    else:
        _update_framed(digest, b"\x01")
        _update_framed(digest, password.encode("utf-8"))
    return digest.hexdigest()


def build_object_key(fingerprint: str, position: int, extension: str) -> str:
    """Return the object key for one page of a conversion.

    Args:
        fingerprint (str): Shared conversion fingerprint.
        position (int): Index of the page within the selection.
        extension (str): Output file extension.

    Returns:
        str: Key of the form ``{fingerprint}-{position}.{extension}``.
    """
    return f"{fingerprint}-{position}.{extension}"
