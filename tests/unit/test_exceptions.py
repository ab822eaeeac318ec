from __future__ import annotations

import pytest

from pdfraster.exceptions import (
    BodyTooLargeError,
    ConversionError,
    DecryptionFailureError,
    DependencyError,
    EncodeFailureError,
    InvalidPageRangeError,
    InvalidScaleError,
    MalformedDocumentError,
    MissingFileError,
    PackageError,
    RenderFailureError,
    SettingsError,
    UnauthorizedError,
    UnsupportedFormatError,
    UploadFailureError,
)


def test_root_exception_hierarchy() -> None:
    assert issubclass(SettingsError, PackageError)
    assert issubclass(DependencyError, PackageError)
    assert issubclass(ConversionError, PackageError)


@pytest.mark.parametrize(
    ("error_type", "kind", "status_code"),
    [
        (InvalidPageRangeError, "InvalidPageRange", 400),
        (UnsupportedFormatError, "UnsupportedFormat", 400),
        (InvalidScaleError, "InvalidScale", 400),
        (MissingFileError, "MissingFile", 400),
        (UnauthorizedError, "Unauthorized", 401),
        (BodyTooLargeError, "BodyTooLarge", 413),
        (MalformedDocumentError, "MalformedDocument", 422),
        (DecryptionFailureError, "DecryptionFailure", 422),
        (RenderFailureError, "RenderFailure", 500),
        (EncodeFailureError, "EncodeFailure", 500),
        (UploadFailureError, "UploadFailure", 502),
    ],
)
def test_conversion_error_kinds(error_type: type[ConversionError], kind: str, status_code: int) -> None:
    error = error_type(message="failed")

    assert isinstance(error, ConversionError)
    assert error.kind == kind
    assert error.status_code == status_code


def test_page_scoped_error_message_mentions_page() -> None:
    assert str(UploadFailureError(message="upload failed", page=3)) == "upload failed (page 3)"
    assert str(MalformedDocumentError(message="bad pdf")) == "bad pdf"
