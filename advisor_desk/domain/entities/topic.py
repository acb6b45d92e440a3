from __future__ import annotations

from enum import Enum


class Topic(str, Enum):
    KYC_ONBOARDING = "KYC/Onboarding"
    SIP_MANDATES = "SIP/Mandates"
    STATEMENTS_TAX = "Statements/Tax Docs"
    WITHDRAWALS_TIMELINES = "Withdrawals & Timelines"
    ACCOUNT_CHANGES = "Account Changes/Nominee"


TOPIC_LIST = [topic.value for topic in Topic]

TOPIC_MENU = (
    "KYC/Onboarding, SIP/Mandates, Statements and Tax Documents, "
    "Withdrawals and Timelines, or Account Changes and Nominee"
)

PREPARATION_GUIDES: dict[Topic, tuple[str, ...]] = {
    Topic.KYC_ONBOARDING: (
        "Valid government-issued ID proof (Aadhaar, PAN, Passport)",
        "Address proof (utility bill, bank statement)",
        "PAN card copy",
        "Bank account details for verification",
    ),
    Topic.SIP_MANDATES: (
        "Bank account details",
        "Cancelled cheque or bank statement",
        "Existing SIP details (if modifying)",
        "Amount and frequency preferences",
    ),
    Topic.STATEMENTS_TAX: (
        "Account number or folio number",
        "Date range for statements",
        "Tax year (if applicable)",
        "Email address for document delivery",
    ),
    Topic.WITHDRAWALS_TIMELINES: (
        "Account details",
        "Withdrawal amount",
        "Purpose of withdrawal",
        "Bank account details for transfer",
    ),
    Topic.ACCOUNT_CHANGES: (
        "Current account details",
        "Nominee details (name, relationship, date of birth)",
        "Updated address proof (if changing address)",
        "Signed nomination form",
    ),
}
