"""Core domain model exports."""

from pdfraster.typing.models.conversion import SCALE_MAX, SCALE_MIN, ConversionOptions, RangeToken
from pdfraster.typing.models.images import EncodedImage, PageImage, RawPixelBuffer
from pdfraster.typing.models.responses import ConversionResponse, ErrorResponse, HealthResponse

__all__ = [
    "SCALE_MAX",
    "SCALE_MIN",
    "ConversionOptions",
    "ConversionResponse",
    "EncodedImage",
    "ErrorResponse",
    "HealthResponse",
    "PageImage",
    "RangeToken",
    "RawPixelBuffer",
]
