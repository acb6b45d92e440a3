from __future__ import annotations

import re

from advisor_desk.domain.entities.intent import Intent

PRIMARY_WEIGHT = 3
SECONDARY_WEIGHT = 1
MIN_CONFIDENT_SCORE = 2

_FLAGS = re.IGNORECASE

KEYWORD_PATTERNS: dict[Intent, dict[str, tuple[re.Pattern[str], ...]]] = {
    Intent.BOOK_NEW: {
        "primary": (
            re.compile(r"\b(book|schedule)\s+(a|an|the)?\s*(new\s+)?(appointment|consultation|call|meeting|slot)", _FLAGS),
            re.compile(
                r"\b(i\s+want|i\s+need|i\s+would\s+like|i\s*'d\s+like|can\s+i)\s+(to\s+)?(book|schedule)\s+(a|an)?\s*(appointment|call|meeting|slot)",
                _FLAGS,
            ),
            re.compile(r"\b(set\s+up|arrange|organize)\s+(a|an|the)?\s*(new\s+)?(appointment|call|meeting|consultation)", _FLAGS),
            re.compile(r"\b(new\s+)?(appointment|booking)\s+(please|for|with)", _FLAGS),
        ),
        "secondary": (
            re.compile(r"\b(talk|speak|discuss|meet)\s+(with|to)\s+(an?\s+)?(advisor|consultant|expert)\s+(?!when|available|free)", _FLAGS),
            re.compile(r"\b(need|want|looking\s+for)\s+(an?\s+)?(appointment|booking|slot|call)", _FLAGS),
            re.compile(r"\b(book|schedule|appointment|slot)\b", _FLAGS),
        ),
    },
    Intent.RESCHEDULE: {
        "primary": (
            re.compile(r"\b(reschedule|re-schedule|re\s+schedule)\b", _FLAGS),
            re.compile(r"\b(change|modify|move|shift|adjust)\s+(my|the)?\s*(appointment|booking|slot|call|meeting|time)", _FLAGS),
            re.compile(r"\b(change|modify|move|shift|adjust)\s+(appointment|booking|slot|call|meeting)\s+(time|date|schedule)", _FLAGS),
        ),
        "secondary": (
            re.compile(r"\b(different|another|other)\s+(time|date|day|slot)", _FLAGS),
            re.compile(r"\b(can\s+i|i\s+want\s+to|i\s+need\s+to)\s+(change|move|reschedule)", _FLAGS),
        ),
    },
    Intent.CANCEL: {
        "primary": (
            re.compile(r"\b(cancel|cancellation|cancelling|cancelled)\b", _FLAGS),
            re.compile(r"\b(remove|delete|drop)\s+(my|the)?\s*(appointment|booking|slot|call|meeting)", _FLAGS),
            re.compile(r"\b(can't|cannot|won't|will\s+not)\s+(make\s+it|attend|come)", _FLAGS),
        ),
        "secondary": (
            re.compile(r"\b(not\s+able|unable|can't)\s+(to\s+)?(make|attend|come|be\s+there)", _FLAGS),
            re.compile(r"\b(please\s+)?(remove|delete|cancel)\s+(it|this|that|my\s+slot)", _FLAGS),
        ),
    },
    Intent.WHAT_TO_PREPARE: {
        "primary": (
            re.compile(r"\b(what|which)\s+(should\s+i|do\s+i\s+need|to)\s+(prepare|bring|have|need|get)", _FLAGS),
            re.compile(r"\b(prepare|preparation|preparing)\s+(for|what)", _FLAGS),
            re.compile(r"\b(what|which)\s+(documents|papers|items|things)\s+(do\s+i\s+)?(need|require|should\s+bring)", _FLAGS),
            re.compile(r"\b(preparation|prepare)\s+(checklist|list)", _FLAGS),
        ),
        "secondary": (
            re.compile(r"\b(checklist|list)\s+(of|for)\s+(what|documents|items)", _FLAGS),
            re.compile(r"\b(what\s+to|what\s+do\s+i)\s+(bring|prepare|have\s+ready)", _FLAGS),
            re.compile(r"\b(required|needed)\s+(documents|papers|items)", _FLAGS),
            re.compile(r"\b(prepare|preparation)\b", _FLAGS),
        ),
    },
    Intent.CHECK_AVAILABILITY: {
        "primary": (
            re.compile(r"\b(when|what\s+times|what\s+time)\s+(are\s+you|is|are|can\s+i)\s+(available|free|open)", _FLAGS),
            re.compile(r"\b(available|availability|free|open)\s+(slots|times|appointments|dates)", _FLAGS),
            re.compile(r"\b(show|tell|give)\s+me\s+(available|free|open)\s+(slots|times|appointments)", _FLAGS),
            re.compile(r"\b(when|what\s+times)\s+(can\s+i)?\s*(book|schedule|appointment)", _FLAGS),
            re.compile(r"\bwhen\s+(can\s+i|are\s+you)\s+(speak|talk|available|free)", _FLAGS),
        ),
        "secondary": (
            re.compile(r"\b(what|which)\s+(slots|times|dates)\s+(are\s+)?(available|free|open)", _FLAGS),
            re.compile(r"\b(check|see|view)\s+(available|free|open)\s+(slots|times|appointments)", _FLAGS),
            re.compile(r"\b(when|available|slots|times)\b", _FLAGS),
        ),
    },
}

# most specific first; on equal scores the earlier intent wins
INTENT_ORDER = (
    Intent.CANCEL,
    Intent.RESCHEDULE,
    Intent.WHAT_TO_PREPARE,
    Intent.CHECK_AVAILABILITY,
    Intent.BOOK_NEW,
)

RATE_LIMIT_MARKERS = (
    "rate limit",
    "rate_limit",
    "too many requests",
    "429",
    "quota",
    "limit exceeded",
    "throttle",
)

NETWORK_ERROR_MARKERS = (
    "network",
    "timeout",
    "timed out",
    "connection",
    "econnrefused",
    "enotfound",
)


def score_intents(text: str) -> dict[Intent, int]:
    normalized = text.lower().strip()
    scores: dict[Intent, int] = {}
    for intent in INTENT_ORDER:
        patterns = KEYWORD_PATTERNS[intent]
        score = sum(PRIMARY_WEIGHT for p in patterns["primary"] if p.search(normalized))
        score += sum(SECONDARY_WEIGHT for p in patterns["secondary"] if p.search(normalized))
        scores[intent] = score
    return scores


def classify_intent_with_keywords(text: str | None) -> Intent:
    if not text or not isinstance(text, str):
        return Intent.BOOK_NEW

    scores = score_intents(text)
    best_intent = Intent.BOOK_NEW
    best_score = 0
    for intent in INTENT_ORDER:
        if scores[intent] > best_score:
            best_score = scores[intent]
            best_intent = intent

    if best_score < MIN_CONFIDENT_SCORE:
        return Intent.BOOK_NEW
    return best_intent


def _status_code(error: BaseException) -> int | None:
    status = getattr(error, "status_code", None) or getattr(error, "status", None)
    if status is None:
        response = getattr(error, "response", None)
        status = getattr(response, "status_code", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


def is_rate_limit_error(error: BaseException | None) -> bool:
    if error is None:
        return False
    if _status_code(error) == 429:
        return True
    message = str(error).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


def should_use_keyword_fallback(error: BaseException | None) -> bool:
    """Rate limits, 4xx/5xx responses, network errors and timeouts all fall back to keywords."""
    if error is None:
        return False
    if is_rate_limit_error(error):
        return True
    status = _status_code(error)
    if status is not None and 400 <= status < 600:
        return True
    message = str(error).lower()
    return any(marker in message for marker in NETWORK_ERROR_MARKERS)
