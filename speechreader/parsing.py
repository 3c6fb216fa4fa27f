"""Shared parsing helpers for configuration and language code normalization."""

from __future__ import annotations


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def normalize_language(code: str) -> str:
    """Normalize a locale or language tag into BCP-47 casing.

    `en_US`, `en-us` and `EN_us` all become `en-US`. Script subtags are
    title-cased (`zh_hant_tw` -> `zh-Hant-TW`) and remaining subtags are
    lower-cased.

    Args:
        code: Raw language tag as reported by a platform or typed by a user.

    Returns:
        Normalized tag, or an empty string for blank input.
    """

    raw = code.strip().replace("_", "-")
    if not raw:
        return ""
    subtags = [subtag for subtag in raw.split("-") if subtag]
    if not subtags:
        return ""
    normalized = [subtags[0].lower()]
    for subtag in subtags[1:]:
        if len(subtag) == 2 and subtag.isalpha():
            normalized.append(subtag.upper())
        elif len(subtag) == 4 and subtag.isalpha():
            normalized.append(subtag.title())
        else:
            normalized.append(subtag.lower())
    return "-".join(normalized)
