from datetime import date

from advisor_desk.domain.entities.topic import TOPIC_LIST

INTENT_NAMES = ("book_new", "reschedule", "cancel", "what_to_prepare", "check_availability")


def build_classify_prompt(text: str) -> str:
    return (
        "You are an intent classifier for an advisor appointment scheduling desk.\n"
        "Return ONLY valid JSON. No markdown. No extra text.\n"
        "Output schema:\n"
        "  {\"intent\": \"<one of the intents below>\"}\n"
        "Intents:\n"
        "  - book_new: wants a new appointment (\"Schedule a call\", \"I need to talk to an advisor\")\n"
        "  - reschedule: wants to move an existing appointment (\"Change my appointment time\")\n"
        "  - cancel: wants to cancel (\"I can't make it\", \"Remove my booking\")\n"
        "  - what_to_prepare: asks what to bring or prepare (\"What documents do I need\")\n"
        "  - check_availability: asks which times are free (\"When are you available\")\n"
        "Rules:\n"
        "  - Use the exact intent name, no synonyms.\n"
        "  - If the input is ambiguous, choose the most likely intent.\n"
        "\n"
        f"User input: {text!r}\n"
    )


def build_extract_slots_prompt(text: str, intent: str) -> str:
    return (
        "You are a slot extractor for an advisor appointment scheduling desk.\n"
        "Return ONLY a valid JSON object. Use null for missing values.\n"
        f"Intent: {intent}\n"
        "Keys by intent:\n"
        f"  - book_new: topic (one of {TOPIC_LIST}), preferred_day, preferred_time_window\n"
        "  - reschedule: booking_code (format XX-XXX or XX-XXXX), preferred_day, preferred_time_window\n"
        "  - cancel: booking_code\n"
        f"  - what_to_prepare: topic (one of {TOPIC_LIST})\n"
        "  - check_availability: day_range (\"today\", \"tomorrow\" or \"this week\")\n"
        "preferred_time_window must be one of morning, afternoon, evening, any.\n"
        "\n"
        f"User input: {text!r}\n"
    )


def build_interpret_datetime_prompt(text: str, reference_date: date) -> str:
    return (
        "You interpret appointment date/time preferences.\n"
        "Return ONLY valid JSON. No markdown. No extra text.\n"
        "Output schema:\n"
        "  {\"date\": \"YYYY-MM-DD\" or null, \"time_window\": \"morning|afternoon|evening|any\" or null,\n"
        "   \"confidence\": 0.0-1.0, \"needs_clarification\": true|false,\n"
        "   \"interpretation\": \"short description\", \"requested_weekend\": true|false}\n"
        "Rules:\n"
        "  - Windows: morning 10-12, afternoon 12-16, evening 16-18, any 10-18 (local time).\n"
        "  - Resolve relative references against the reference date.\n"
        "  - requested_weekend is true only if the user named a Saturday or Sunday.\n"
        "  - If you are guessing, lower confidence and set needs_clarification.\n"
        "\n"
        f"Reference date: {reference_date.isoformat()} ({reference_date.strftime('%A')})\n"
        f"User input: {text!r}\n"
    )
