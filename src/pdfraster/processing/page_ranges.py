"""Page-selection expression parsing.

Expressions are comma-separated 1-based tokens, each either a page number
(``4``) or an inclusive range (``2-7``). Parsing happens in two steps: the
syntax is checked before the document is decoded, and the bounds once the page
count is known. The resulting selection is 0-based, deduplicated and sorted.
"""

from __future__ import annotations

import re

from pydantic import ValidationError

from pdfraster.exceptions import InvalidPageRangeError
from pdfraster.typing.models import RangeToken

_MAX_TOKEN_DIGITS = 9
_TOKEN_PATTERN = re.compile(
    rf"^(?P<start>\d{{1,{_MAX_TOKEN_DIGITS}}})(?:\s*-\s*(?P<end>\d{{1,{_MAX_TOKEN_DIGITS}}}))?$",
    re.ASCII,
)


def _parse_token(token: str) -> RangeToken:
    """Parse one range token.

    Args:
        token (str): Stripped token text.

    Raises:
        InvalidPageRangeError: If the token is malformed or references page 0.

    Returns:
        RangeToken: Parsed 1-based inclusive range.
    """
    match = _TOKEN_PATTERN.match(token)
    if match is None:
        raise InvalidPageRangeError(message=f"Malformed page token '{token}'")

    start = int(match.group("start"))
    end = int(match.group("end")) if match.group("end") else start
    try:
        return RangeToken(start=start, end=end)
    except ValidationError as exc:
        raise InvalidPageRangeError(message=f"Invalid page token '{token}'") from exc


def parse_range_tokens(expr: str | None) -> list[RangeToken]:
    """Parse the syntax of a page-selection expression.

    Args:
        expr (str | None): Raw expression, e.g. ``"1-3,5"``.

    Raises:
        InvalidPageRangeError: If any token is malformed.

    Returns:
        list[RangeToken]: Tokens in input order; empty when every page is selected.
    """
    if expr is None or not expr.strip():
        return []
    return [_parse_token(token.strip()) for token in expr.split(",")]


def resolve_page_selection(tokens: list[RangeToken], page_count: int) -> list[int]:
    """Resolve parsed tokens against the document page count.

    Args:
        tokens (list[RangeToken]): Tokens from `parse_range_tokens`.
        page_count (int): Number of pages in the decoded document.

    Raises:
        InvalidPageRangeError: If a token references a page past the end.

    Returns:
        list[int]: Sorted, unique 0-based page indices.
    """
    if not tokens:
        return list(range(page_count))

    selected: set[int] = set()
    for token in tokens:
        if token.end > page_count:
            raise InvalidPageRangeError(
                message=f"Page {token.end} is out of range for a {page_count}-page document",
            )
        selected.update(range(token.start - 1, token.end))
    return sorted(selected)


def parse_page_range(expr: str | None, page_count: int) -> list[int]:
    """Parse a page-selection expression into 0-based page indices.

    Args:
        expr (str | None): Raw expression; empty or None selects every page.
        page_count (int): Number of pages in the document.

    Returns:
        list[int]: Sorted, unique 0-based page indices.
    """
    return resolve_page_selection(parse_range_tokens(expr), page_count)
