"""Word-boundary expansion for backend-reported speaking ranges."""

from __future__ import annotations

import unicodedata

from ..models.datatypes import HighlightSpan


def is_word_separator(character: str) -> bool:
    """Return `True` for whitespace, punctuation (`P*`), and symbol (`S*`) characters."""

    if character.isspace():
        return True
    return unicodedata.category(character)[0] in {"P", "S"}


def expand_to_word_boundary(text: str, span: HighlightSpan | None) -> HighlightSpan | None:
    """Widen `span` to the enclosing separator-delimited token.

    Walks backward from `span.start` while the preceding character is not a
    separator and forward from `span.end` while the following character is
    not a separator. The result is clipped to `[0, len(text)]`.

    Args:
        text: Exact utterance text the offsets refer to.
        span: Raw half-open range reported by the backend, or `None`.

    Returns:
        Expanded span, or `None` when `span` is `None` or `text` is empty.
    """

    if span is None or not text:
        return None

    length = len(text)
    start = min(max(span.start, 0), length)
    end = min(max(span.end, start), length)

    while start > 0 and not is_word_separator(text[start - 1]):
        start -= 1
    while end < length and not is_word_separator(text[end]):
        end += 1

    return HighlightSpan(start=start, end=end)
