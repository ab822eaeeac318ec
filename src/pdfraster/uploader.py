"""Bounded, order-preserving fan-out of page uploads."""

from __future__ import annotations

import asyncio
from functools import partial
from typing import TYPE_CHECKING, TypeVar, cast

from pdfraster.exceptions import ConversionError, UploadFailureError
from pdfraster.logging import get_logger
from pdfraster.processing.fingerprint import build_object_key

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from pdfraster.typing.models import PageImage
    from pdfraster.typing.protocol import ObjectStore

logger = get_logger(__name__)

T = TypeVar("T")


def _leaf_exceptions(group: BaseExceptionGroup) -> list[BaseException]:
    """Flatten a (possibly nested) exception group."""
    leaves: list[BaseException] = []
    for exc in group.exceptions:
        if isinstance(exc, BaseExceptionGroup):
            leaves.extend(_leaf_exceptions(exc))
        else:
            leaves.append(exc)
    return leaves


def _first_failure(group: BaseExceptionGroup) -> BaseException:
    """Pick the single failure reported for a failed fan-out.

    Conversion errors win over unexpected ones, and the lowest page wins among
    conversion errors.

    Args:
        group (BaseExceptionGroup): Group raised by the task group.

    Returns:
        BaseException: Failure to surface to the caller.
    """
    leaves = _leaf_exceptions(group)
    failures = [exc for exc in leaves if isinstance(exc, ConversionError)]
    if not failures:
        return leaves[0]
    return min(failures, key=lambda exc: exc.page if exc.page is not None else float("inf"))


async def run_ordered(jobs: Sequence[Callable[[], Awaitable[T]]], *, concurrency: int) -> list[T]:
    """Run jobs concurrently and return their results in job order.

    At most `concurrency` jobs run at once. Each job writes into its own slot
    of a fixed-size list, so completion order never affects result order. The
    first failure cancels the jobs still running and is re-raised alone.

    Args:
        jobs: Zero-argument coroutine factories.
        concurrency: Maximum number of jobs in flight.

    Raises:
        BaseException: The failure selected by `_first_failure`.

    Returns:
        list[T]: One result per job, in job order.
    """
    semaphore = asyncio.Semaphore(max(concurrency, 1))
    results: list[T | None] = [None] * len(jobs)

    async def _run(slot: int, job: Callable[[], Awaitable[T]]) -> None:
        async with semaphore:
            results[slot] = await job()

    try:
        async with asyncio.TaskGroup() as group:
            for slot, job in enumerate(jobs):
                group.create_task(_run(slot, job))
    except BaseExceptionGroup as exc_group:
        raise _first_failure(exc_group)  # noqa: B904

    return cast("list[T]", results)


async def upload_page(store: ObjectStore, page: PageImage, fingerprint: str) -> str:
    """Upload one encoded page under its content-addressed key.

    Args:
        store (ObjectStore): Target object store.
        page (PageImage): Encoded page tagged with its selection position.
        fingerprint (str): Conversion fingerprint.

    Raises:
        UploadFailureError: If the store write fails.

    Returns:
        str: Object key written.
    """
    key = build_object_key(fingerprint, page.position, page.image.extension)
    try:
        await store.put_object(key, page.image.data, content_type=page.image.content_type)
    except Exception as exc:
        logger.warning(
            "Page upload failed",
            extra={"key": key, "position": page.position, "page_index": page.page_index},
        )
        raise UploadFailureError(message=f"Failed to upload object '{key}'", page=page.position) from exc
    return key


async def upload_all(
    images: Sequence[PageImage],
    fingerprint: str,
    store: ObjectStore,
    *,
    concurrency: int,
) -> list[str]:
    """Upload already-encoded pages and return their keys in selection order.

    Args:
        images (Sequence[PageImage]): Encoded pages.
        fingerprint (str): Conversion fingerprint.
        store (ObjectStore): Target object store.
        concurrency (int): Maximum simultaneous uploads.

    Returns:
        list[str]: Object keys sorted by selection position.
    """
    ordered = sorted(images, key=lambda page: page.position)
    jobs = [partial(upload_page, store, page, fingerprint) for page in ordered]
    return await run_ordered(jobs, concurrency=concurrency)
