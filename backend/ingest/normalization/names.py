"""Localized name resolution for feed ``[{Locale, Description}]`` lists."""
from __future__ import annotations

from typing import Optional, Sequence

from shared.models.feed import LocalizedText

DEFAULT_LOCALE = "en-GB"
UNKNOWN_NAME = "Unknown"


def resolve_name(
    names: Optional[Sequence[LocalizedText]],
    preferred_locale: str = DEFAULT_LOCALE,
) -> str:
    """
    Pick the best display text from a localized name list.

    Fallback chain: exact preferred locale, any English variant, the first
    entry with visible text, the first entry as-is, then ``"Unknown"``.
    Never returns an empty string.
    """
    if not names:
        return UNKNOWN_NAME

    for entry in names:
        if entry.locale == preferred_locale and entry.text:
            return entry.text

    for entry in names:
        if entry.text and (entry.locale or "").lower().startswith("en"):
            return entry.text

    for entry in names:
        if entry.text and entry.text.strip():
            return entry.text

    return names[0].text or UNKNOWN_NAME


def resolve_optional_name(
    names: Optional[Sequence[LocalizedText]],
    preferred_locale: str = DEFAULT_LOCALE,
) -> Optional[str]:
    """Like :func:`resolve_name` but ``None`` when the list carries no text at all."""
    if not names or not any(entry.text for entry in names):
        return None
    return resolve_name(names, preferred_locale)
