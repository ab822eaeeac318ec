"""Page selection and content addressing helpers."""

from pdfraster.processing.fingerprint import build_object_key, fingerprint_document
from pdfraster.processing.page_ranges import parse_page_range, parse_range_tokens, resolve_page_selection

__all__ = [
    "build_object_key",
    "fingerprint_document",
    "parse_page_range",
    "parse_range_tokens",
    "resolve_page_selection",
]
