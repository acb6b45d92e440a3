from __future__ import annotations

from advisor_desk.application.utils.message_rules import normalize_text
from advisor_desk.domain.entities.topic import TOPIC_LIST, Topic

TOPIC_KEYWORDS: dict[Topic, tuple[str, ...]] = {
    Topic.KYC_ONBOARDING: (
        "kyc",
        "know your customer",
        "onboarding",
        "verification",
        "identity",
        "document",
        "aadhaar",
        "pan",
        "passport",
        "address proof",
        "new account",
    ),
    Topic.SIP_MANDATES: (
        "sip",
        "systematic investment plan",
        "mandate",
        "auto debit",
        "recurring",
        "monthly",
        "installment",
        "emi",
        "automatic",
        "standing instruction",
    ),
    Topic.STATEMENTS_TAX: (
        "statement",
        "tax",
        "document",
        "form 16",
        "itr",
        "income tax",
        "transaction",
        "history",
        "report",
        "consolidated",
        "account statement",
    ),
    Topic.WITHDRAWALS_TIMELINES: (
        "withdrawal",
        "withdraw",
        "redeem",
        "redemption",
        "timeline",
        "time",
        "when",
        "how long",
        "duration",
        "process",
        "fund transfer",
        "money",
    ),
    Topic.ACCOUNT_CHANGES: (
        "nominee",
        "nomination",
        "change",
        "update",
        "modify",
        "edit",
        "account change",
        "address change",
        "contact",
        "details",
        "update account",
    ),
}


def _contains_keyword(padded_text: str, keyword: str) -> bool:
    return f" {keyword}" in padded_text


def score_topics(text: str) -> dict[Topic, int]:
    # keywords must start on a word boundary so "pan" does not hit "company"
    padded = f" {normalize_text(text)} "
    return {
        topic: sum(1 for keyword in keywords if _contains_keyword(padded, keyword))
        for topic, keywords in TOPIC_KEYWORDS.items()
    }


def map_to_topic(text: str | None) -> Topic | None:
    """Topic with the strictly highest non-zero keyword score; None on a tie or no match."""
    if not text:
        return None
    scores = score_topics(text)
    best = max(scores.values())
    if best == 0:
        return None
    winners = [topic for topic, score in scores.items() if score == best]
    if len(winners) != 1:
        return None
    return winners[0]


def is_valid_topic(topic: str | Topic | None) -> bool:
    if topic is None:
        return False
    value = topic.value if isinstance(topic, Topic) else topic
    return value in TOPIC_LIST


def coerce_topic(value: str | Topic | None) -> Topic | None:
    """Map an exact topic label (e.g. from slot extraction) to a Topic, else None."""
    if isinstance(value, Topic):
        return value
    if not is_valid_topic(value):
        return None
    return Topic(value)
