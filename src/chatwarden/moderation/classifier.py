"""Word/link classifier for incoming message text."""

from __future__ import annotations

import re
from collections.abc import Iterable
from functools import lru_cache

from chatwarden.datatypes.moderation_datatypes import ViolationKind


@lru_cache(maxsize=16)
def compile_link_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a link-detection regex, case-insensitive."""
    return re.compile(pattern, re.IGNORECASE)


def contains_blocked_word(text: str, blocked_words: Iterable[str]) -> bool:
    """Return True if any non-blank blocked word occurs in ``text``, ignoring case."""
    lowered = text.casefold()
    return any(word.strip() and word.strip().casefold() in lowered for word in blocked_words)


def contains_link(text: str, link_pattern: str | re.Pattern[str]) -> bool:
    pattern = compile_link_pattern(link_pattern) if isinstance(link_pattern, str) else link_pattern
    return pattern.search(text) is not None


def classify(text: str, blocked_words: Iterable[str], link_pattern: str | re.Pattern[str]) -> ViolationKind:
    """Classify ``text`` as clean, offensive or carrying an unauthorized link.

    An offensive word takes precedence when the text also contains a link.
    """
    if not text:
        return ViolationKind.NONE
    if contains_blocked_word(text, blocked_words):
        return ViolationKind.OFFENSIVE_WORD
    if contains_link(text, link_pattern):
        return ViolationKind.UNAUTHORIZED_LINK
    return ViolationKind.NONE
