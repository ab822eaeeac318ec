"""Project enums."""

from __future__ import annotations

from enum import StrEnum


class _EnumMixin(StrEnum):
    """Shared conversion helpers for user-facing enums."""

    @classmethod
    def from_str(cls, value: str) -> _EnumMixin:
        """Parse enum from string.

        Args:
            value: Raw string value.

        Raises:
            ValueError: If the value is not supported.

        Returns:
            _EnumMixin: Parsed enum value.
        """
        try:
            return cls(value.strip().lower())
        except ValueError as exc:
            supported = ", ".join(member.value for member in cls)
            message = f"Unsupported {cls.__name__} value '{value}'. Expected one of: {supported}"
            raise ValueError(message) from exc

    def to_str(self) -> str:
        """Return string representation.

        Returns:
            str: Enum string value.
        """
        return self.value


class OutputFormat(_EnumMixin):
    """Image formats a page can be rasterized to."""

    PNG = "png"
    JPEG = "jpeg"
    GIF = "gif"
    WEBP = "webp"
    PNM = "pnm"
    TIFF = "tiff"
    TGA = "tga"
    BMP = "bmp"
    ICO = "ico"
    HDR = "hdr"
    OPENEXR = "openexr"
    FARBFELD = "farbfeld"
    AVIF = "avif"
    QOI = "qoi"

    @property
    def extension(self) -> str:
        """Return the file extension used in object keys."""
        return _EXTENSIONS[self]

    @property
    def content_type(self) -> str:
        """Return the MIME type stored alongside uploaded objects."""
        return _CONTENT_TYPES[self]


_EXTENSIONS: dict[OutputFormat, str] = {
    OutputFormat.PNG: "png",
    OutputFormat.JPEG: "jpg",
    OutputFormat.GIF: "gif",
    OutputFormat.WEBP: "webp",
    OutputFormat.PNM: "pnm",
    OutputFormat.TIFF: "tiff",
    OutputFormat.TGA: "tga",
    OutputFormat.BMP: "bmp",
    OutputFormat.ICO: "ico",
    OutputFormat.HDR: "hdr",
    OutputFormat.OPENEXR: "exr",
    OutputFormat.FARBFELD: "ff",
    OutputFormat.AVIF: "avif",
    OutputFormat.QOI: "qoi",
}

_CONTENT_TYPES: dict[OutputFormat, str] = {
    OutputFormat.PNG: "image/png",
    OutputFormat.JPEG: "image/jpeg",
    OutputFormat.GIF: "image/gif",
    OutputFormat.WEBP: "image/webp",
    OutputFormat.PNM: "image/x-portable-anymap",
    OutputFormat.TIFF: "image/tiff",
    OutputFormat.TGA: "image/x-tga",
    OutputFormat.BMP: "image/bmp",
    OutputFormat.ICO: "image/vnd.microsoft.icon",
    OutputFormat.HDR: "image/vnd.radiance",
    OutputFormat.OPENEXR: "image/x-exr",
    OutputFormat.FARBFELD: "image/x-farbfeld",
    OutputFormat.AVIF: "image/avif",
    OutputFormat.QOI: "image/qoi",
}
