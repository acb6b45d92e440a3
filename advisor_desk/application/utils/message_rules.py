from __future__ import annotations

import re

from advisor_desk.application.utils.booking_code import validate_booking_code

AFFIRMATIVE_WORDS = frozenset(
    {
        "yes",
        "yeah",
        "yep",
        "yup",
        "sure",
        "ok",
        "okay",
        "correct",
        "right",
        "confirm",
        "confirmed",
        "absolutely",
        "definitely",
        "fine",
        "proceed",
    }
)

AFFIRMATIVE_PHRASES = (
    "go ahead",
    "sounds good",
    "that works",
    "please do",
)

NEGATIVE_WORDS = frozenset(
    {
        "no",
        "nope",
        "nah",
        "wrong",
        "incorrect",
        "not",
        "dont",
        "never",
    }
)

NEGATIVE_PHRASES = (
    "not correct",
    "not right",
    "that s wrong",
    "do not",
    "don t",
    "changed my mind",
)

FORGOTTEN_CODE_PHRASES = (
    "forgot",
    "forget",
    "don t remember",
    "dont remember",
    "do not remember",
    "don t have",
    "dont have",
    "do not have",
    "lost",
    "can t find",
    "cant find",
    "cannot find",
    "no code",
)

HYPHENATED_CODE_PATTERN = re.compile(r"\b[A-Za-z]{2}-[A-Za-z0-9]{3,4}\b")
BOOKING_CODE_PATTERN = re.compile(r"\b([A-Za-z]{2})[\s-]?([A-Za-z0-9]{3,4})\b")

ORDINAL_WORDS = {
    "first": 0,
    "one": 0,
    "1st": 0,
    "second": 1,
    "two": 1,
    "2nd": 1,
    "third": 2,
    "three": 2,
    "3rd": 2,
}


def normalize_text(text: str) -> str:
    normalized = text.lower().replace("+", " ")
    normalized = re.sub(r"[^a-z0-9\s]", " ", normalized)
    normalized = re.sub(r"\s+", " ", normalized).strip()
    return normalized


def _tokens(normalized: str) -> set[str]:
    return set(normalized.split())


def _has_phrase(normalized: str, phrases: tuple[str, ...]) -> bool:
    padded = f" {normalized} "
    return any(f" {phrase} " in padded for phrase in phrases)


def is_negative(text: str, extra_words: tuple[str, ...] = ()) -> bool:
    normalized = normalize_text(text)
    if not normalized:
        return False
    if _has_phrase(normalized, NEGATIVE_PHRASES + extra_words):
        return True
    return bool(_tokens(normalized) & NEGATIVE_WORDS)


def is_affirmative(text: str, extra_words: tuple[str, ...] = ()) -> bool:
    """
    Yes-style reply. A reply that also reads as negative ("not right",
    "no, that's wrong") is never affirmative.
    """
    normalized = normalize_text(text)
    if not normalized or is_negative(text):
        return False
    if _has_phrase(normalized, AFFIRMATIVE_PHRASES + extra_words):
        return True
    return bool(_tokens(normalized) & AFFIRMATIVE_WORDS)


def mentions_forgotten_code(text: str) -> bool:
    normalized = normalize_text(text)
    if "code" not in normalized and "booking" not in normalized:
        return False
    return _has_phrase(normalized, FORGOTTEN_CODE_PHRASES)


def extract_booking_code(text: str) -> str | None:
    """Pull something shaped like a booking code ("NL-A742", "nl a742") out of free text."""
    hyphenated = HYPHENATED_CODE_PATTERN.search(text)
    if hyphenated and validate_booking_code(hyphenated.group(0).upper()):
        return hyphenated.group(0).upper()
    for match in BOOKING_CODE_PATTERN.finditer(text):
        prefix, suffix = match.group(1), match.group(2)
        if not any(ch.isdigit() for ch in suffix):
            # "my code", "is the" etc. are two plain words, not a code
            continue
        candidate = f"{prefix}-{suffix}".upper()
        if validate_booking_code(candidate):
            return candidate
    return None


def is_booking_request(text: str) -> bool:
    normalized = normalize_text(text)
    booking_patterns = (
        "book",
        "schedule",
        "reserve",
        "take slot",
        "take the",
        "i ll take",
    )
    return any(pattern in normalized for pattern in booking_patterns)


def parse_ordinal_choice(text: str) -> int | None:
    """Zero-based index for "1", "slot 2", "the first one"; None when no ordinal is present."""
    normalized = normalize_text(text)
    # "3 pm", "4 30" are times, not choices
    if re.search(r"\b\d{1,2}\s*(?:am|pm)\b|\b\d{1,2}\s+\d{2}\b|\bo clock\b", normalized):
        return None
    digit_match = re.search(r"\b(?:slot|option|number)?\s*(\d{1,2})\b", normalized)
    if digit_match:
        value = int(digit_match.group(1))
        if value >= 1:
            return value - 1
    # earliest ordinal wins so "the second one" is 1, not 0
    best: tuple[int, int] | None = None
    for word, index in ORDINAL_WORDS.items():
        match = re.search(rf"\b{word}\b", normalized)
        if match and (best is None or match.start() < best[0]):
            best = (match.start(), index)
    return best[1] if best else None
