"""Typing-centric domain modules."""

from pdfraster.typing.enums import OutputFormat
from pdfraster.typing.models import (
    ConversionOptions,
    ConversionResponse,
    EncodedImage,
    ErrorResponse,
    HealthResponse,
    PageImage,
    RangeToken,
    RawPixelBuffer,
)
from pdfraster.typing.protocol import ObjectStore

__all__ = [
    "ConversionOptions",
    "ConversionResponse",
    "EncodedImage",
    "ErrorResponse",
    "HealthResponse",
    "ObjectStore",
    "OutputFormat",
    "PageImage",
    "RangeToken",
    "RawPixelBuffer",
]
