"""Text helpers shared by the scope extractors."""
import re
from typing import Optional

REPAIR_WINDOW = 60

REPAIR_RE = re.compile(r'\b(repair|replace|reconstruct|refinish|restore|re-?build)\b')
CONSTRUCTION_OVERRIDE_RE = re.compile(r'\b(new|construct|build)\b')

STOREY_DIGIT_RE = re.compile(r'\b(\d+)\s*-?\s*(storey|story|stories)\b', re.IGNORECASE)
STOREY_WORD_RE = re.compile(
    r'\b(one|two|three|four|five)\s*-?\s*(storey|story|stories)\b', re.IGNORECASE)
SINGLE_STOREY_RE = re.compile(r'\bsingle\s*-?\s*(storey|story)\b', re.IGNORECASE)

CARDINALS = {'one': 1, 'two': 2, 'three': 3, 'four': 4, 'five': 5}


def has_repair_signal_near(text: str, keyword: str) -> bool:
    """
    True if a repair verb appears within REPAIR_WINDOW characters of the first
    occurrence of keyword, and no construction verb appears in the same window.

    "repair existing deck boards" -> True (alter)
    "replace old deck with new deck" -> False ("new" wins)
    """
    lower = (text or '').lower()
    idx = lower.find(keyword.lower())
    if idx == -1:
        return False
    window = lower[max(0, idx - REPAIR_WINDOW):idx + len(keyword) + REPAIR_WINDOW]
    return bool(REPAIR_RE.search(window)) and not CONSTRUCTION_OVERRIDE_RE.search(window)


def extract_storey_count(text: str) -> int:
    """Storeys mentioned in text: "2 storey", then "two storey", then "single storey". 0 if none."""
    if not text:
        return 0
    match = STOREY_DIGIT_RE.search(text)
    if match:
        return int(match.group(1))
    match = STOREY_WORD_RE.search(text)
    if match:
        return CARDINALS[match.group(1).lower()]
    if SINGLE_STOREY_RE.search(text):
        return 1
    return 0


def contains_ci(value: Optional[str], pattern: Optional[str]) -> bool:
    """Case-insensitive substring test. Empty value or pattern never matches."""
    if not value or not pattern:
        return False
    needle = pattern.strip().lower()
    return bool(needle) and needle in value.lower()
