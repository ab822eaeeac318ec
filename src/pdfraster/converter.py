"""Conversion orchestration: validate, decode, render, encode, upload."""

from __future__ import annotations

import asyncio
import math
import re
import time
from functools import partial
from typing import TYPE_CHECKING

from pdfraster.encoding import encode_image
from pdfraster.exceptions import InvalidScaleError, RenderFailureError, UnsupportedFormatError
from pdfraster.logging import get_logger
from pdfraster.pdf_render import DocumentSession, render_page
from pdfraster.processing.fingerprint import fingerprint_document
from pdfraster.processing.page_ranges import parse_range_tokens, resolve_page_selection
from pdfraster.typing.enums import OutputFormat
from pdfraster.typing.models import SCALE_MAX, SCALE_MIN, ConversionOptions, PageImage
from pdfraster.uploader import run_ordered, upload_page

if TYPE_CHECKING:
    from pdfraster.settings import Settings
    from pdfraster.typing.protocol import ObjectStore

logger = get_logger(__name__)

_SCALE_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)", re.ASCII)


def _parse_format(value: str | None) -> OutputFormat:
    """Parse the requested output format.

    Args:
        value (str | None): Raw format; None selects PNG.

    Raises:
        UnsupportedFormatError: If the format is unknown.

    Returns:
        OutputFormat: Parsed format.
    """
    if value is None or not value.strip():
        return OutputFormat.PNG
    try:
        return OutputFormat.from_str(value)
    except ValueError as exc:
        raise UnsupportedFormatError(message=str(exc)) from exc


def _parse_scale(value: str | float | None) -> float:
    """Parse and range-check the render scale.

    Args:
        value (str | float | None): Raw scale; None selects 1.0.

    Raises:
        InvalidScaleError: If the scale is non-numeric, non-finite or out of range.

    Returns:
        float: Validated scale.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return 1.0
    if isinstance(value, str) and _SCALE_PATTERN.fullmatch(value.strip()) is None:
        raise InvalidScaleError(message=f"Scale '{value}' is not a decimal number")
    try:
        scale = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidScaleError(message=f"Scale '{value}' is not a number") from exc
    if not math.isfinite(scale) or not SCALE_MIN <= scale <= SCALE_MAX:
        raise InvalidScaleError(message=f"Scale must be between {SCALE_MIN} and {SCALE_MAX}, got {value}")
    return scale


def build_conversion_options(
    *,
    format: str | None = None,  # noqa: A002
    scale: str | float | None = None,
    password: str | None = None,
    pages: str | None = None,
) -> ConversionOptions:
    """Validate raw request parameters before any document work starts.

    Args:
        format (str | None): Output format name.
        scale (str | float | None): Render scale.
        password (str | None): Document password.
        pages (str | None): Page-selection expression.

    Returns:
        ConversionOptions: Validated options.
    """
    fmt = _parse_format(format)
    parsed_scale = _parse_scale(scale)
    parse_range_tokens(pages)
    return ConversionOptions(
        format=fmt,
        scale=parsed_scale,
        password=password or None,
        pages=pages or None,
    )


def _render_and_encode(
    session: DocumentSession,
    *,
    position: int,
    page_index: int,
    options: ConversionOptions,
    jpeg_quality: int,
) -> PageImage:
    """Render one page and encode it; runs in a worker thread.

    Failures report the selection position, the same number used in the object key.
    """
    try:
        buffer = render_page(session, page_index, options.scale)
    except RenderFailureError as exc:
        raise RenderFailureError(
            message=f"{exc.message} (document page {page_index + 1})",
            page=position,
        ) from exc
    image = encode_image(buffer, options.format, page=position, jpeg_quality=jpeg_quality)
    return PageImage(position=position, page_index=page_index, image=image)


async def _convert_page(
    session: DocumentSession,
    store: ObjectStore,
    fingerprint: str,
    *,
    position: int,
    page_index: int,
    options: ConversionOptions,
    jpeg_quality: int,
) -> str:
    page = await asyncio.to_thread(
        _render_and_encode,
        session,
        position=position,
        page_index=page_index,
        options=options,
        jpeg_quality=jpeg_quality,
    )
    return await upload_page(store, page, fingerprint)


async def convert_document(
    data: bytes,
    options: ConversionOptions,
    store: ObjectStore,
    settings: Settings,
) -> list[str]:
    """Convert selected pages of a PDF and upload them.

    The document is decoded once; every selected page is then rendered,
    encoded and uploaded in its own task, with at most
    `settings.upload_concurrency` pages in flight.

    Args:
        data (bytes): Raw PDF bytes.
        options (ConversionOptions): Validated conversion options.
        store (ObjectStore): Target object store.
        settings (Settings): Runtime settings.

    Returns:
        list[str]: Object keys in selection order.
    """
    started = time.perf_counter()
    tokens = parse_range_tokens(options.pages)
    fingerprint = await asyncio.to_thread(
        fingerprint_document,
        data,
        scale=options.scale,
        password=options.password,
    )

    session = await asyncio.to_thread(DocumentSession.open, data, options.password)
    try:
        selection = resolve_page_selection(tokens, session.page_count)
        logger.info(
            "Conversion started",
            extra={
                "fingerprint": fingerprint,
                "format": options.format.value,
                "scale": options.scale,
                "pages": len(selection),
                "page_count": session.page_count,
            },
        )
        jobs = [
            partial(
                _convert_page,
                session,
                store,
                fingerprint,
                position=position,
                page_index=page_index,
                options=options,
                jpeg_quality=settings.jpeg_quality,
            )
            for position, page_index in enumerate(selection)
        ]
        keys = await run_ordered(jobs, concurrency=settings.upload_concurrency)
    finally:
        await asyncio.to_thread(session.close)

    logger.info(
        "Conversion completed",
        extra={
            "fingerprint": fingerprint,
            "images": len(keys),
            "elapsed_ms": round((time.perf_counter() - started) * 1000, 1),
        },
    )
    return keys
