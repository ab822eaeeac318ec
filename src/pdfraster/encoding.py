"""Encoding of raw page pixels into output image formats."""

from __future__ import annotations

import io
import os
import struct
from collections.abc import Callable
from types import MappingProxyType

# OpenCV only enables its EXR codec when this is set before import.
os.environ.setdefault("OPENCV_IO_ENABLE_OPENEXR", "1")

import cv2  # noqa: E402
import numpy as np  # noqa: E402
from PIL import Image  # noqa: E402

from pdfraster.exceptions import EncodeFailureError  # noqa: E402
from pdfraster.typing.enums import OutputFormat  # noqa: E402
from pdfraster.typing.models import EncodedImage, RawPixelBuffer  # noqa: E402

Encoder = Callable[[RawPixelBuffer, int], bytes]

_PIL_MODES = {1: "L", 3: "RGB", 4: "RGBA"}
_FARBFELD_MAGIC = b"farbfeld"
_ICO_MAX_SIDE = 256


def _to_pil(buffer: RawPixelBuffer) -> Image.Image:
    """Wrap raw samples in a Pillow image.

    Args:
        buffer (RawPixelBuffer): Rendered page pixels.

    Raises:
        ValueError: If the channel layout has no Pillow mode.

    Returns:
        Image.Image: Image sharing the buffer layout.
    """
    mode = _PIL_MODES.get(buffer.channels)
    if mode is None:
        message = f"Unsupported channel count: {buffer.channels}"
        raise ValueError(message)
    return Image.frombytes(mode, (buffer.width, buffer.height), buffer.samples)


def _to_rgba_array(buffer: RawPixelBuffer) -> np.ndarray:
    """Return the pixels as an ``(height, width, 4)`` uint8 array."""
    return np.asarray(_to_pil(buffer).convert("RGBA"), dtype=np.uint8)


def _pillow_encoder(pil_format: str, mode: str | None = None, **save_kwargs: object) -> Encoder:
    """Build an encoder that saves through a Pillow plugin.

    Args:
        pil_format (str): Pillow format name.
        mode (str | None): Mode to convert to before saving, when the plugin needs one.
        **save_kwargs: Extra keyword arguments for `Image.save`.

    Returns:
        Encoder: Encoder function.
    """

    def _encode(buffer: RawPixelBuffer, jpeg_quality: int) -> bytes:
        image = _to_pil(buffer)
        if mode and image.mode != mode:
            image = image.convert(mode)
        kwargs = dict(save_kwargs)
        if pil_format == "JPEG":
            kwargs["quality"] = jpeg_quality
        output = io.BytesIO()
        image.save(output, format=pil_format, **kwargs)
        return output.getvalue()

    return _encode


def _encode_ico(buffer: RawPixelBuffer, jpeg_quality: int) -> bytes:  # noqa: ARG001
    """Encode as a single-entry icon at the page's exact size.

    Raises:
        ValueError: If either side exceeds what an icon entry can hold.
    """
    if buffer.width > _ICO_MAX_SIDE or buffer.height > _ICO_MAX_SIDE:
        message = f"ICO entries are limited to {_ICO_MAX_SIDE}x{_ICO_MAX_SIDE}, got {buffer.width}x{buffer.height}"
        raise ValueError(message)
    output = io.BytesIO()
    _to_pil(buffer).convert("RGBA").save(output, format="ICO", sizes=[(buffer.width, buffer.height)])
    return output.getvalue()


def _opencv_float_encoder(extension: str) -> Encoder:
    """Build an encoder for OpenCV's floating-point formats (HDR, EXR)."""

    def _encode(buffer: RawPixelBuffer, jpeg_quality: int) -> bytes:  # noqa: ARG001
        rgb = np.asarray(_to_pil(buffer).convert("RGB"), dtype=np.float32) / 255.0
        bgr = np.ascontiguousarray(rgb[:, :, ::-1])
        ok, encoded = cv2.imencode(extension, bgr)
        if not ok:
            message = f"OpenCV could not encode {extension}"
            raise ValueError(message)
        return encoded.tobytes()

    return _encode


def _encode_farbfeld(buffer: RawPixelBuffer, jpeg_quality: int) -> bytes:  # noqa: ARG001
    """Encode as Farbfeld: magic, big-endian size, then 16-bit big-endian RGBA."""
    rgba = _to_rgba_array(buffer).astype(np.uint16) * 257
    header = _FARBFELD_MAGIC + struct.pack(">II", buffer.width, buffer.height)
    return header + rgba.astype(">u2").tobytes()


_ENCODERS: MappingProxyType[OutputFormat, Encoder] = MappingProxyType(
    {
        OutputFormat.PNG: _pillow_encoder("PNG"),
        OutputFormat.JPEG: _pillow_encoder("JPEG", mode="RGB"),
        OutputFormat.GIF: _pillow_encoder("GIF"),
        OutputFormat.WEBP: _pillow_encoder("WEBP"),
        OutputFormat.PNM: _pillow_encoder("PPM"),
        OutputFormat.TIFF: _pillow_encoder("TIFF"),
        OutputFormat.TGA: _pillow_encoder("TGA"),
        OutputFormat.BMP: _pillow_encoder("BMP"),
        OutputFormat.ICO: _encode_ico,
        OutputFormat.HDR: _opencv_float_encoder(".hdr"),
        OutputFormat.OPENEXR: _opencv_float_encoder(".exr"),
        OutputFormat.FARBFELD: _encode_farbfeld,
        OutputFormat.AVIF: _pillow_encoder("AVIF"),
        OutputFormat.QOI: _pillow_encoder("QOI", mode="RGBA"),
    },
)


def encode_image(
    buffer: RawPixelBuffer,
    fmt: OutputFormat,
    *,
    page: int | None = None,
    jpeg_quality: int = 90,
) -> EncodedImage:
    """Encode rendered pixels into the requested format.

    Args:
        buffer (RawPixelBuffer): Rendered page pixels.
        fmt (OutputFormat): Target format.
        page (int | None): Page index reported on failure.
        jpeg_quality (int): JPEG quality, ignored by other formats.

    Raises:
        EncodeFailureError: If the pixels cannot be encoded in the target format.

    Returns:
        EncodedImage: Encoded bytes with extension and MIME type.
    """
    encoder = _ENCODERS[fmt]
    try:
        data = encoder(buffer, jpeg_quality)
    except Exception as exc:
        raise EncodeFailureError(message=f"Failed to encode page as {fmt.value}", page=page) from exc
    return EncodedImage(data=data, extension=fmt.extension, content_type=fmt.content_type)
