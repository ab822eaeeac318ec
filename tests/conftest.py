"""Pytest marker auto-assignment by folder and shared fixtures."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

import fitz
import pytest

from pdfraster import logger
from pdfraster.settings import Settings

if TYPE_CHECKING:
    from collections.abc import Callable


def _mark_tests_by_directory(
    config: pytest.Config,
    items: list[pytest.Item],
    marker: str,
) -> None:
    """Mark collected tests located under tests/<marker>/."""
    target_dir = Path(config.rootpath) / "tests" / marker
    target_dir = target_dir.resolve()

    for item in items:
        try:
            path = Path(str(item.fspath)).resolve()
        except Exception:
            logger.warning(
                f"Could not resolve path for test item {item.name!s}; skipping {marker!s} marker assignment",
            )
            continue

        if path == target_dir or target_dir in path.parents:
            item.add_marker(getattr(pytest.mark, marker))


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    """Apply directory-based markers to test items."""
    _mark_tests_by_directory(config, items, "unit")
    _mark_tests_by_directory(config, items, "integration")
    _mark_tests_by_directory(config, items, "end2end")


def build_pdf(page_count: int, *, password: str | None = None) -> bytes:
    """Build a small PDF whose pages each carry their page number."""
    doc = fitz.open()
    for number in range(1, page_count + 1):
        page = doc.new_page(width=120, height=160)
        page.insert_text((20, 80), f"Page {number}", fontsize=14)
    try:
        if password is None:
            return doc.tobytes()
        return doc.tobytes(
            encryption=fitz.PDF_ENCRYPT_AES_256,
            user_pw=password,
            owner_pw=f"owner-{password}",
        )
    finally:
        doc.close()


class InMemoryStore:
    """Object store double recording every write."""

    def __init__(self, fail_on: Callable[[str], bool] | None = None) -> None:
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.calls: list[str] = []
        self._fail_on = fail_on

    async def put_object(self, key: str, data: bytes, *, content_type: str) -> None:
        self.calls.append(key)
        await asyncio.sleep(0)
        if self._fail_on and self._fail_on(key):
            raise ConnectionError(f"simulated failure for {key}")
        self.objects[key] = data
        self.content_types[key] = content_type


@pytest.fixture
def three_page_pdf() -> bytes:
    return build_pdf(3)


@pytest.fixture
def encrypted_pdf() -> bytes:
    return build_pdf(2, password="secret")


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        log_json=False,
        upload_concurrency=2,
        body_limit=1,
        account_id=None,
        key_id=None,
        secret=None,
        bucket=None,
        token=None,
    )
