from __future__ import annotations

import re
from dataclasses import dataclass

PHONE_PATTERN = re.compile(r"\b(?:\+91[\s-]?)?[6-9]\d{9}\b|\b\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b")
EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
ACCOUNT_NUMBER_PATTERN = re.compile(r"\b\d{10,}\b")

PII_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("phone", PHONE_PATTERN),
    ("email", EMAIL_PATTERN),
    ("account_number", ACCOUNT_NUMBER_PATTERN),
)

INVESTMENT_ADVICE_KEYWORDS = (
    "should i buy",
    "should i sell",
    "should i invest",
    "which fund",
    "best fund",
    "recommend",
    "investment advice",
    "what to invest",
    "good investment",
)

REDACTED = "[REDACTED]"


@dataclass(frozen=True)
class PIIDetection:
    detected: bool
    kind: str | None = None


def detect_pii(text: str | None) -> PIIDetection:
    if not text:
        return PIIDetection(detected=False)
    for kind, pattern in PII_PATTERNS:
        if pattern.search(text):
            return PIIDetection(detected=True, kind=kind)
    return PIIDetection(detected=False)


def detect_investment_advice(text: str | None) -> bool:
    if not text:
        return False
    normalized = text.lower()
    return any(keyword in normalized for keyword in INVESTMENT_ADVICE_KEYWORDS)


def sanitize_pii(text: str | None) -> str | None:
    if not text:
        return text
    sanitized = text
    for _, pattern in PII_PATTERNS:
        sanitized = pattern.sub(REDACTED, sanitized)
    return sanitized
