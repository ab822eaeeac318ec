"""Package exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


class PackageError(Exception):
    """Root exception for the package."""


@dataclass(frozen=True)
class SettingsError(PackageError):
    """Raised when settings cannot be loaded or validated."""

    message: str = "Failed to load settings"
    exc: BaseException | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.exc}" if self.exc else self.message


@dataclass(frozen=True)
class DependencyError(PackageError):
    """Raised when optional runtime dependencies are missing."""

    missing_package: list[str]
    message: str

    def __str__(self) -> str:
        """Return error message payload."""
        return f"Missing runtime dependencies for '{self.message}': {', '.join(self.missing_package)}"


@dataclass(frozen=True)
class ConversionError(PackageError):
    """Base class for errors surfaced to HTTP callers.

    Subclasses pin the error ``kind`` reported in the response body and the
    HTTP status code it maps to.
    """

    kind: ClassVar[str] = "InternalError"
    status_code: ClassVar[int] = 500

    message: str
    page: int | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        if self.page is None:
            return self.message
        return f"{self.message} (page {self.page})"


# Validation-class errors, raised before any document work starts.


@dataclass(frozen=True)
class InvalidPageRangeError(ConversionError):
    """Raised when a page-selection expression is malformed or out of bounds."""

    kind: ClassVar[str] = "InvalidPageRange"
    status_code: ClassVar[int] = 400


@dataclass(frozen=True)
class UnsupportedFormatError(ConversionError):
    """Raised when the requested output format is unknown."""

    kind: ClassVar[str] = "UnsupportedFormat"
    status_code: ClassVar[int] = 400


@dataclass(frozen=True)
class InvalidScaleError(ConversionError):
    """Raised when the scale is non-numeric or outside the accepted range."""

    kind: ClassVar[str] = "InvalidScale"
    status_code: ClassVar[int] = 400


@dataclass(frozen=True)
class MissingFileError(ConversionError):
    """Raised when the multipart body carries no ``file`` field."""

    kind: ClassVar[str] = "MissingFile"
    status_code: ClassVar[int] = 400


@dataclass(frozen=True)
class UnauthorizedError(ConversionError):
    """Raised when a token is required but missing or incorrect."""

    kind: ClassVar[str] = "Unauthorized"
    status_code: ClassVar[int] = 401


@dataclass(frozen=True)
class BodyTooLargeError(ConversionError):
    """Raised when the request body exceeds the configured limit."""

    kind: ClassVar[str] = "BodyTooLarge"
    status_code: ClassVar[int] = 413


# Pipeline-class errors, raised once decode/render/upload work has started.


@dataclass(frozen=True)
class MalformedDocumentError(ConversionError):
    """Raised when the uploaded bytes cannot be parsed as a PDF."""

    kind: ClassVar[str] = "MalformedDocument"
    status_code: ClassVar[int] = 422


@dataclass(frozen=True)
class DecryptionFailureError(ConversionError):
    """Raised when an encrypted PDF is opened without the right password."""

    kind: ClassVar[str] = "DecryptionFailure"
    status_code: ClassVar[int] = 422


@dataclass(frozen=True)
class RenderFailureError(ConversionError):
    """Raised when the engine fails to rasterize one page."""

    kind: ClassVar[str] = "RenderFailure"
    status_code: ClassVar[int] = 500


@dataclass(frozen=True)
class EncodeFailureError(ConversionError):
    """Raised when a rendered page cannot be encoded in the target format."""

    kind: ClassVar[str] = "EncodeFailure"
    status_code: ClassVar[int] = 500


@dataclass(frozen=True)
class UploadFailureError(ConversionError):
    """Raised when the object-store write of one page fails."""

    kind: ClassVar[str] = "UploadFailure"
    status_code: ClassVar[int] = 502
