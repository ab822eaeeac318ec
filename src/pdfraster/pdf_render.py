"""PDF decoding and page rasterization on top of PyMuPDF.

PyMuPDF documents are not safe for concurrent use. Opening a document goes
through a process-wide lock, and every call into an open document goes through
the lock owned by its `DocumentSession`.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Self

import fitz

from pdfraster.exceptions import DecryptionFailureError, MalformedDocumentError, RenderFailureError
from pdfraster.logging import get_logger
from pdfraster.typing.models import RawPixelBuffer

if TYPE_CHECKING:
    from types import TracebackType

logger = get_logger(__name__)

_OPEN_LOCK = threading.Lock()


class DocumentSession:
    """One decoded PDF, owned by a single conversion request."""

    def __init__(self, document: fitz.Document) -> None:
        self._document = document
        self._lock = threading.Lock()
        self._closed = False
        self._page_count = document.page_count

    @classmethod
    def open(cls, data: bytes, password: str | None = None) -> DocumentSession:
        """Decode PDF bytes, authenticating when the document is encrypted.

        Args:
            data (bytes): Raw PDF bytes.
            password (str | None): Password for encrypted documents.

        Raises:
            MalformedDocumentError: If the bytes are not a readable PDF.
            DecryptionFailureError: If the password is missing or wrong.

        Returns:
            DocumentSession: Open session; close it or use it as a context manager.
        """
        if not data:
            raise MalformedDocumentError(message="Uploaded file is empty")

        with _OPEN_LOCK:
            try:
                document = fitz.open(stream=data, filetype="pdf")
            except Exception as exc:
                raise MalformedDocumentError(message="Uploaded file is not a valid PDF") from exc

            if not document.is_pdf:
                document.close()
                raise MalformedDocumentError(message="Uploaded file is not a valid PDF")

            if document.needs_pass and not (password and document.authenticate(password)):
                document.close()
                reason = "Incorrect password" if password else "Document is encrypted and no password was supplied"
                raise DecryptionFailureError(message=reason)

        session = cls(document)
        logger.debug("PDF decoded", extra={"pages": session.page_count, "bytes": len(data)})
        return session

    @property
    def page_count(self) -> int:
        """Return the number of pages in the document."""
        return self._page_count

    @property
    def closed(self) -> bool:
        """Return whether the session has been closed."""
        return self._closed

    def render_page(self, index: int, scale: float) -> RawPixelBuffer:
        """Rasterize one page while holding the session lock.

        Args:
            index (int): 0-based page index, already bounds-checked by the selection.
            scale (float): Multiplier applied to the page's native dimensions.

        Raises:
            RenderFailureError: If the engine fails or the session is closed.

        Returns:
            RawPixelBuffer: RGB pixels of the page.
        """
        with self._lock:
            if self._closed:
                raise RenderFailureError(message="Document session is closed", page=index)
            try:
                page = self._document.load_page(index)
                pixmap = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
                return RawPixelBuffer(
                    width=pixmap.width,
                    height=pixmap.height,
                    channels=pixmap.n,
                    samples=bytes(pixmap.samples),
                )
            except Exception as exc:
                raise RenderFailureError(message="Failed to render page", page=index) from exc

    def close(self) -> None:
        """Release the decoded document; waits for an in-flight render."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._document.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def render_page(session: DocumentSession, index: int, scale: float) -> RawPixelBuffer:
    """Render one page of an open session.

    Args:
        session (DocumentSession): Open document session.
        index (int): 0-based page index.
        scale (float): Render scale, validated at the request boundary.

    Returns:
        RawPixelBuffer: Rendered pixels.
    """
    buffer = session.render_page(index, scale)
    logger.debug(
        "Page rendered",
        extra={"page": index, "width": buffer.width, "height": buffer.height, "scale": scale},
    )
    return buffer
