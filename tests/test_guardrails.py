from advisor_desk.application.utils.guardrails import (
    REDACTED,
    detect_investment_advice,
    detect_pii,
    sanitize_pii,
)


def test_indian_mobile_number_is_pii():
    detection = detect_pii("My number is 9876543210, call me")
    assert detection.detected is True
    assert detection.kind == "phone"


def test_mobile_with_country_code_is_pii():
    assert detect_pii("reach me on +91 9876543210").kind == "phone"


def test_email_is_pii():
    assert detect_pii("mail me at caller@example.com").kind == "email"


def test_long_account_number_is_pii():
    assert detect_pii("my folio is 12345678901234").kind == "account_number"


def test_booking_code_and_time_are_not_pii():
    assert detect_pii("my code is NL-A742, tomorrow at 3 pm").detected is False
    assert detect_pii("").detected is False
    assert detect_pii(None).detected is False


def test_investment_advice_requests_are_detected():
    assert detect_investment_advice("Which fund should I put money in?") is True
    assert detect_investment_advice("Should I buy this stock?") is True
    assert detect_investment_advice("I want to book a KYC appointment") is False


def test_sanitize_replaces_every_pii_match():
    text = "call 9876543210 or write to caller@example.com"
    sanitized = sanitize_pii(text)
    assert "9876543210" not in sanitized
    assert "caller@example.com" not in sanitized
    assert sanitized.count(REDACTED) == 2
    assert sanitize_pii(None) is None
