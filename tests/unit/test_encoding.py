from __future__ import annotations

import io
import struct

import cv2
import numpy as np
import pytest
from PIL import Image

from pdfraster.encoding import encode_image
from pdfraster.exceptions import EncodeFailureError
from pdfraster.typing.enums import OutputFormat
from pdfraster.typing.models import RawPixelBuffer


def _buffer(width: int = 4, height: int = 3, channels: int = 3) -> RawPixelBuffer:
    samples = bytes((index * 7) % 256 for index in range(width * height * channels))
    return RawPixelBuffer(width=width, height=height, channels=channels, samples=samples)


def test_encode_png_is_lossless() -> None:
    buffer = _buffer()

    encoded = encode_image(buffer, OutputFormat.PNG)

    assert encoded.extension == "png"
    assert encoded.content_type == "image/png"
    with Image.open(io.BytesIO(encoded.data)) as image:
        assert image.size == (4, 3)
        assert image.convert("RGB").tobytes() == buffer.samples


@pytest.mark.parametrize(
    ("fmt", "pil_format"),
    [
        (OutputFormat.JPEG, "JPEG"),
        (OutputFormat.GIF, "GIF"),
        (OutputFormat.BMP, "BMP"),
        (OutputFormat.TIFF, "TIFF"),
        (OutputFormat.PNM, "PPM"),
        (OutputFormat.TGA, "TGA"),
        (OutputFormat.WEBP, "WEBP"),
    ],
)
def test_encode_pillow_formats(fmt: OutputFormat, pil_format: str) -> None:
    encoded = encode_image(_buffer(), fmt)

    assert encoded.extension == fmt.extension
    with Image.open(io.BytesIO(encoded.data)) as image:
        assert image.format == pil_format
        assert image.size == (4, 3)


def test_encode_jpeg_uses_jpg_extension() -> None:
    assert encode_image(_buffer(), OutputFormat.JPEG).extension == "jpg"


def test_encode_farbfeld_layout() -> None:
    buffer = _buffer(width=2, height=1)

    encoded = encode_image(buffer, OutputFormat.FARBFELD)

    assert encoded.extension == "ff"
    assert encoded.data[:8] == b"farbfeld"
    assert struct.unpack(">II", encoded.data[8:16]) == (2, 1)
    pixels = struct.unpack(">8H", encoded.data[16:])
    red, green, blue = buffer.samples[:3]
    assert pixels[:4] == (red * 257, green * 257, blue * 257, 65535)
    assert len(encoded.data) == 16 + 2 * 1 * 4 * 2


def test_encode_grayscale_buffer() -> None:
    encoded = encode_image(_buffer(channels=1), OutputFormat.PNG)

    with Image.open(io.BytesIO(encoded.data)) as image:
        assert image.mode == "L"


def test_encode_failure_is_page_scoped() -> None:
    buffer = _buffer(channels=2)

    with pytest.raises(EncodeFailureError) as exc_info:
        encode_image(buffer, OutputFormat.PNG, page=4)

    assert exc_info.value.page == 4
    assert "png" in exc_info.value.message


def test_encode_ico_keeps_page_size() -> None:
    encoded = encode_image(_buffer(), OutputFormat.ICO)

    assert encoded.content_type == "image/vnd.microsoft.icon"
    assert encoded.data[:4] == b"\x00\x00\x01\x00"
    with Image.open(io.BytesIO(encoded.data)) as image:
        assert image.format == "ICO"
        assert image.size == (4, 3)


def test_encode_ico_rejects_pages_larger_than_an_icon() -> None:
    with pytest.raises(EncodeFailureError) as exc_info:
        encode_image(_buffer(width=300, height=10), OutputFormat.ICO, page=1)

    assert exc_info.value.page == 1
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_encode_avif() -> None:
    encoded = encode_image(_buffer(), OutputFormat.AVIF)

    assert encoded.extension == "avif"
    assert encoded.data[4:8] == b"ftyp"
    assert b"avif" in encoded.data[8:32]


def test_encode_qoi() -> None:
    buffer = _buffer()

    encoded = encode_image(buffer, OutputFormat.QOI)

    assert encoded.data[:4] == b"qoif"
    assert struct.unpack(">II", encoded.data[4:12]) == (4, 3)
    with Image.open(io.BytesIO(encoded.data)) as image:
        assert image.convert("RGB").tobytes() == buffer.samples


def _decode_with_opencv(data: bytes) -> np.ndarray:
    decoded = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    assert decoded is not None
    return decoded


def test_encode_hdr() -> None:
    encoded = encode_image(_buffer(), OutputFormat.HDR)

    assert encoded.extension == "hdr"
    assert encoded.data.startswith(b"#?")
    assert b"FORMAT=32-bit_rle_rgbe" in encoded.data[:256]
    assert _decode_with_opencv(encoded.data).shape == (3, 4, 3)


def test_encode_openexr() -> None:
    buffer = _buffer()

    encoded = encode_image(buffer, OutputFormat.OPENEXR)

    assert encoded.extension == "exr"
    assert encoded.content_type == "image/x-exr"
    assert encoded.data[:4] == b"v/1\x01"
    decoded = _decode_with_opencv(encoded.data)
    assert decoded.shape == (3, 4, 3)
    red = buffer.samples[0] / 255.0
    assert decoded[0, 0, 2] == pytest.approx(red, abs=1e-2)
