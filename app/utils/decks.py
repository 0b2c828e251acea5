"""Deck-related utility helpers.

The metadata gate decides whether a deck title/description pair is specific
enough to be sent to the AI card generator. Checks run in a fixed order and
the first failing check determines the message returned to the user.

    ✅ "Spanish Vocabulary" + "Learn common Spanish words and phrases for travel."
    ❌ "Fourth Deck" + "..."
    ❌ "Deck 3" + "test"
    ✅ "AWS" + "Key AWS services and what they do."
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

MIN_TITLE_LENGTH = 3
MIN_DESCRIPTION_LENGTH = 12

PLACEHOLDER_TITLES = frozenset(
    {
        "deck",
        "new deck",
        "untitled",
        "test",
        "example",
        "sample",
        "demo",
        "practice",
        "my deck",
        "asdf",
        "aaa",
    }
)

PLACEHOLDER_DESCRIPTIONS = frozenset(
    {
        "test",
        "lorem ipsum",
        "...",
        "tbd",
        "add description",
        "description",
        "none",
    }
)

_ORDINAL_WORDS = "first|second|third|fourth|fifth|sixth|seventh|eighth|ninth|tenth"
_CARDINAL_WORDS = "one|two|three|four|five|six|seven|eight|nine|ten"

# Matched against the normalized title.
TITLE_PATTERNS = (
    re.compile(r"^deck\s*#?\s*\d+$", re.ASCII),  # "deck 4", "deck #4", "deck4"
    re.compile(r"^\d+(st|nd|rd|th)\s+deck$", re.ASCII),  # "4th deck", "1st deck"
    re.compile(r"^deck\s+\d+$", re.ASCII),  # "deck 4"
    re.compile(r"^deck\s*-\s*\d+$", re.ASCII),  # "deck-4"
    re.compile(rf"^({_ORDINAL_WORDS})\s+deck$", re.ASCII),  # "fourth deck"
    re.compile(rf"^deck\s+({_CARDINAL_WORDS})$", re.ASCII),  # "deck four"
)

TITLE_TOO_SHORT = "Deck title must be at least 3 characters long."
TITLE_PLACEHOLDER = "Deck title cannot be a placeholder like 'Deck' or 'Test'."
TITLE_GENERIC_PATTERN = "Deck title cannot be a generic pattern like 'Deck 4' or 'Fourth Deck'."
DESCRIPTION_REQUIRED = "Deck description is required for AI generation."
DESCRIPTION_TOO_SHORT = "Deck description must be at least 12 characters long."
DESCRIPTION_PLACEHOLDER = "Deck description cannot be a placeholder like 'test' or '...'."
DESCRIPTION_SINGLE_WORD = "Deck description must be more than a single word."

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class MetadataVerdict:
    """Outcome of the metadata gate; ``reason`` is set only for rejections."""

    accepted: bool
    reason: Optional[str] = None

    @classmethod
    def accept(cls) -> "MetadataVerdict":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: str) -> "MetadataVerdict":
        return cls(accepted=False, reason=reason)


def normalize_text(value: str) -> str:
    """Trim, lowercase and collapse internal whitespace runs to one space."""
    return _WHITESPACE_RE.sub(" ", value.strip().lower())


def matches_title_pattern(title: str) -> bool:
    """Return True for auto-numbered names like 'Deck 4', '4th deck' or 'deck four'."""
    normalized = normalize_text(title)
    return any(pattern.match(normalized) for pattern in TITLE_PATTERNS)


def _is_single_token(value: str) -> bool:
    return len(value.strip().split()) == 1


def evaluate_deck_metadata(title: Any, description: Any) -> MetadataVerdict:
    """Classify a deck title/description pair as meaningful or placeholder-like."""
    if not isinstance(title, str):
        title = ""
    normalized_title = normalize_text(title)

    if len(normalized_title) < MIN_TITLE_LENGTH:
        return MetadataVerdict.reject(TITLE_TOO_SHORT)
    if normalized_title in PLACEHOLDER_TITLES:
        return MetadataVerdict.reject(TITLE_PLACEHOLDER)
    if matches_title_pattern(title):
        return MetadataVerdict.reject(TITLE_GENERIC_PATTERN)

    if not description or not isinstance(description, str):
        return MetadataVerdict.reject(DESCRIPTION_REQUIRED)

    normalized_description = normalize_text(description)
    if len(normalized_description) < MIN_DESCRIPTION_LENGTH:
        return MetadataVerdict.reject(DESCRIPTION_TOO_SHORT)
    if normalized_description in PLACEHOLDER_DESCRIPTIONS:
        return MetadataVerdict.reject(DESCRIPTION_PLACEHOLDER)
    # Only reachable for single tokens that already passed the length check above.
    if _is_single_token(description) and len(normalized_description) < MIN_DESCRIPTION_LENGTH:
        return MetadataVerdict.reject(DESCRIPTION_SINGLE_WORD)

    return MetadataVerdict.accept()


def get_deck_metadata_issue(title: Any, description: Any) -> Optional[str]:
    """Return the user-facing rejection message, or None when the metadata is usable."""
    return evaluate_deck_metadata(title, description).reason


def is_meaningful_deck_metadata(title: Any, description: Any) -> bool:
    return evaluate_deck_metadata(title, description).accepted
