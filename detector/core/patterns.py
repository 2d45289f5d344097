from __future__ import annotations

import re
from typing import List, Pattern


_ONE_OR_TWO_WORDS = r"([a-zA-Z]+(?:\s+[a-zA-Z]+)?)"
_WORDS = r"([a-zA-Z]+(?:\s+[a-zA-Z]+)*)"
_PART_ROLES = r"(manager|exile|firefighter|protector|critic)"


def _compile(sources: List[str]) -> List[Pattern[str]]:
    return [re.compile(source, re.IGNORECASE) for source in sources]


EMOTION_PATTERNS = _compile(
    [
        rf"\bi\s+feel\s+{_ONE_OR_TWO_WORDS}",
        rf"\bfeeling\s+{_ONE_OR_TWO_WORDS}",
        rf"\bi'm\s+{_ONE_OR_TWO_WORDS}",
        rf"\bmakes?\s+me\s+feel\s+{_ONE_OR_TWO_WORDS}",
        rf"\bfeel\s+{_ONE_OR_TWO_WORDS}",
    ]
)

PART_PATTERNS = _compile(
    [
        rf"\bpart of me\s+(?:that\s+)?{_WORDS}",
        rf"\bparts? of me\s+(?:that\s+)?{_WORDS}",
        rf"\bthe\s+part\s+(?:of me\s+)?(?:that\s+)?{_WORDS}",
        rf"\binner\s+{_ONE_OR_TWO_WORDS}",
        rf"\b{_PART_ROLES}\b",
        rf"\bthe\s+{_PART_ROLES}\b",
    ]
)

NEED_PATTERNS = _compile(
    [
        rf"\bi\s+need\s+(?:to\s+)?{_WORDS}",
        rf"\bneed\s+(?:to\s+)?{_WORDS}",
        rf"\bi\s+want\s+(?:to\s+)?{_WORDS}",
        rf"\bwant\s+(?:to\s+)?{_WORDS}",
        rf"\bi\s+wish\s+(?:to\s+)?{_WORDS}",
        rf"\blonging\s+for\s+{_WORDS}",
        rf"\bdesire\s+(?:for\s+)?{_WORDS}",
    ]
)

PATTERNS_BY_KIND = {
    "emotions": EMOTION_PATTERNS,
    "parts": PART_PATTERNS,
    "needs": NEED_PATTERNS,
}

# Compared after capitalisation, so only the first letter is upper case.
STOP_WORDS = frozenset({"That", "This", "The", "And", "But", "Or", "It", "Is", "Was"})

MAX_WORDS = 2
MIN_LENGTH = 3

_WHITESPACE = re.compile(r"\s+")


def clean_capture(text: str) -> str:
    """Normalize a captured phrase into a short display term.

    Returns an empty string when nothing meaningful is left.
    """
    if not text:
        return ""

    cleaned = _WHITESPACE.sub(" ", text.strip().lower())
    if cleaned[:1].isalnum() or cleaned[:1] == "_":
        cleaned = cleaned[:1].upper() + cleaned[1:]

    words = cleaned.split(" ")
    if len(words) > MAX_WORDS:
        cleaned = " ".join(words[:MAX_WORDS])

    if len(cleaned) < MIN_LENGTH or cleaned in STOP_WORDS:
        return ""
    return cleaned
