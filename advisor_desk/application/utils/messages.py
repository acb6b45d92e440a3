from __future__ import annotations

from datetime import date

from advisor_desk.application.utils.booking_code import format_booking_code_for_voice
from advisor_desk.application.utils.formatting import format_slot, format_time
from advisor_desk.domain.entities.intent import INTENT_DESCRIPTIONS, Intent
from advisor_desk.domain.entities.slot import Slot
from advisor_desk.domain.entities.topic import PREPARATION_GUIDES, TOPIC_MENU, Topic

DISCLAIMER = (
    "This call is for general information only and not investment advice. "
    "For personalized recommendations, please speak to a registered advisor."
)
PII_WARNING = "Please do not share your phone number, email address, or account numbers on this call."
PII_DETECTED = (
    "For your safety, please do not share phone numbers, email addresses, or account numbers on this call. "
    "Use the secure link with your booking code instead."
)
INVESTMENT_ADVICE_REFUSAL = (
    "I'm not allowed to provide investment advice or recommendations. For that, please speak to a "
    "registered investment advisor. Would you like to book an advisor slot instead?"
)
TENTATIVE_HOLD = (
    "You have a tentative hold only. A member of the advisor team will confirm your appointment "
    "after reviewing your details. Thanks for calling."
)
BOOKING_CODE_NOT_FOUND = (
    "I could not find a booking with that code. The booking may have already been cancelled or is no "
    "longer available. Please check your email for the booking confirmation or contact our administrator "
    "for assistance."
)
BOOKING_CODE_FORGOTTEN = (
    "If you have forgotten your booking code, please check your email for the booking confirmation "
    "message. If you cannot find it, please contact our administrator for assistance. Is there anything "
    "else I can help you with?"
)
ANYTHING_ELSE = (
    "Is there anything else I can help you with? You can reschedule, cancel, check what to prepare, "
    "or ask about availability."
)
HOW_CAN_I_HELP = (
    "How can I help you today? You can book, reschedule or cancel an advisor appointment, "
    "ask what to prepare, or check availability."
)
TOPIC_PROMPT = f"How can the advisor help you? You can choose from: {TOPIC_MENU}."
TOPIC_NOT_RECOGNISED = f"Sorry, I didn't catch the topic. You can choose from: {TOPIC_MENU}."
TIME_PROMPT = (
    "Which day and time works best? You can say things like 'tomorrow afternoon' "
    "or 'Monday after 4 PM'."
)
TIME_CLARIFICATION = (
    "Sorry, I couldn't work out the day or time. Could you say it another way, for example "
    "'Tuesday morning' or 'tomorrow at 3 PM'?"
)
SLOT_CHOICE_REPROMPT = (
    "Sorry, I didn't catch which slot you'd like. You can say \"1\" or \"2\", \"first\" or \"second\", "
    "or describe the time like \"3 PM\"."
)
YES_NO_REPROMPT = "Sorry, I didn't catch that. Please say yes or no."
SLOT_TAKEN = "Sorry, that slot was just taken by another caller. Let me find you another time."
CODE_GENERATION_FAILED = "Sorry, I couldn't complete the booking just now. Please try again."
RESCHEDULE_CODE_PROMPT = (
    "To reschedule, I'll use your booking code. Please share your booking code only. "
    "Do not share phone, email, or account numbers."
)
CANCEL_CODE_PROMPT = (
    "To cancel, I'll need your booking code. Please share your booking code only. "
    "Do not share phone, email, or account numbers."
)
INVALID_CODE_FORMAT = (
    "That doesn't look like a booking code. Booking codes look like two letters, a dash, and "
    "three or four letters or numbers, for example NL-A74."
)
CANCEL_KEPT = "No problem, your appointment is kept as it is. " + ANYTHING_ELSE
WAITLIST_DECLINED = "No problem. Would you like to try a different day or time?"
RESCHEDULE_NO_SLOTS = "I don't have any open slots around that time. Could you suggest another day or time?"
AVAILABILITY_RANGE_PROMPT = "Are you looking for slots today, tomorrow, or this week?"
AVAILABILITY_NONE = (
    "I don't have any open advisor slots for that period. Would you like to try another day, "
    "or shall I add you to a waitlist when you book?"
)
PREPARE_TOPIC_PROMPT = f"Is this for {TOPIC_MENU}?"
GOODBYE = "Thank you for calling. Have a good day."
ERROR_APOLOGY = (
    "I'm sorry, something went wrong on our side and I can't continue this conversation. "
    "Please call again or contact our administrator for assistance."
)


def greeting(brand: str) -> str:
    return f"Welcome to {brand} Advisor Desk. This is an automated assistant."


def opening(brand: str) -> str:
    return f"{greeting(brand)} {DISCLAIMER} {PII_WARNING} {HOW_CAN_I_HELP}"


def booking_code_read(code: str) -> str:
    return f"Your booking code is {code}. I'll repeat that: {format_booking_code_for_voice(code)}."


def secure_url(url: str) -> str:
    return (
        f"To share your contact details safely, please visit: {url} and enter your booking code. "
        "Do not share your phone or email on this call."
    )


def intent_confirmation(intent: Intent) -> str:
    return f"I understand you want to {INTENT_DESCRIPTIONS[intent]}. Is that correct?"


def intent_reconfirmation(intent: Intent) -> str:
    return f"Just to confirm, you want to {INTENT_DESCRIPTIONS[intent]}. Is that correct? (Please say yes or no)"


def intent_rejected() -> str:
    return f"I apologize for the confusion. {HOW_CAN_I_HELP}"


def topic_confirmation(topic: Topic) -> str:
    return f"You chose {topic.value}. Is that correct?"


def _day_span(working_days: frozenset[int]) -> str:
    names = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
    ordered = sorted(working_days)
    if not ordered:
        return "on no days"
    if ordered == list(range(ordered[0], ordered[-1] + 1)) and len(ordered) > 2:
        return f"{names[ordered[0] - 1]} through {names[ordered[-1] - 1]}"
    return ", ".join(names[day - 1] for day in ordered)


def non_working_day_decline(working_days: frozenset[int], start_hour: int, end_hour: int, reschedule: bool = False) -> str:
    action = "reschedule to" if reschedule else "schedule for"
    return (
        f"I understand you'd like to {action} that day, but our advisor slots are only available "
        f"{_day_span(working_days)} ({_hour_label(start_hour)} to {_hour_label(end_hour)} IST). "
        "Could you please give me another day? For example, you could say \"Monday afternoon\" "
        "or \"Tuesday morning\"."
    )


def _hour_label(hour: int) -> str:
    suffix = "AM" if hour < 12 else "PM"
    display = hour % 12 or 12
    return f"{display} {suffix}"


def _day_label(day: date) -> str:
    return f"{day.day} {day.strftime('%B')}"


def slot_offer(slots: list[Slot], prefix: str | None = None) -> str:
    day = _day_label(slots[0].start.date())
    label = slots[0].start.tzname() or ""
    lines = "\n".join(
        f"{index}. {format_time(slot.start)} to {format_time(slot.end)} {label}".rstrip()
        for index, slot in enumerate(slots, start=1)
    )
    plural = "s" if len(slots) > 1 else ""
    text = f"I have {len(slots)} option{plural} on {day}:\n{lines}\n"
    if len(slots) > 1:
        text += "Which do you prefer, 1 or 2? You can also say \"first\" or \"second\", or a time like \"3 PM\"."
    else:
        text += "Would you like this one? You can say \"1\" or \"first\"."
    if prefix:
        return f"{prefix} {text}"
    return text


def specific_time_taken(requested: Slot) -> str:
    return f"{format_time(requested.start)} on {_day_label(requested.start.date())} is already booked."


def waitlist_offer_taken(requested: Slot) -> str:
    return (
        f"I see that {_day_label(requested.start.date())} at {format_time(requested.start)} IST is already "
        "booked. I can add you to a waitlist for that time slot, and the team will contact you if it "
        "becomes available. Would you like to be added to the waitlist?"
    )


def waitlist_offer_empty(day: date) -> str:
    return (
        f"I don't have any available slots in that time window on {_day_label(day)}. I can add you to a "
        "waitlist, and the team will contact you with available options. Would you like to be added to "
        "the waitlist?"
    )


def waitlist_confirmed(code: str, url: str) -> str:
    return (
        f"I've added you to the waitlist for that time slot. {booking_code_read(code)} {secure_url(url)}\n\n"
        f"The advisor team will contact you if the slot becomes available. {ANYTHING_ELSE}"
    )


def slot_confirmation(topic: Topic, slot: Slot) -> str:
    return (
        f"Great. Confirming your tentative advisor slot for {topic.value} on {format_slot(slot)}. "
        "Is that correct?"
    )


def booking_confirmed(code: str, url: str) -> str:
    return f"{booking_code_read(code)} {secure_url(url)} {TENTATIVE_HOLD}\n\n{ANYTHING_ELSE}"


def reschedule_found(topic: str, slot: Slot) -> str:
    return (
        f"I found your booking for {topic} on {format_slot(slot)}. "
        "Which new day and time would you prefer?"
    )


def reschedule_confirmation(slot: Slot) -> str:
    return f"Great. I'll move your appointment to {format_slot(slot)}. Is that correct?"


def rescheduled(code: str, slot: Slot) -> str:
    return (
        f"Your appointment has been rescheduled to {format_slot(slot)}. Your booking code {code} stays the "
        f"same. {TENTATIVE_HOLD}\n\n{ANYTHING_ELSE}"
    )


def cancel_confirmation(topic: str, slot: Slot) -> str:
    return (
        f"I found your booking for {topic} on {format_slot(slot)}. "
        "Are you sure you want to cancel this appointment?"
    )


def cancelled(code: str) -> str:
    return f"Your tentative advisor appointment with code {code} is now cancelled. {ANYTHING_ELSE}"


def preparation_checklist(topic: Topic) -> str:
    items = "\n".join(f"{index}. {item}" for index, item in enumerate(PREPARATION_GUIDES[topic], start=1))
    return (
        f"For {topic.value}, please prepare:\n{items}\n\n"
        f"Would you like to book an appointment for {topic.value}? {ANYTHING_ELSE}"
    )


def availability_listing(label: str, slots: list[Slot]) -> str:
    lines = "\n".join(f"{index}. {format_slot(slot)}" for index, slot in enumerate(slots, start=1))
    return (
        f"{label} I have:\n{lines}\n\n"
        "Would you like to book one of these? You can say \"book slot 1\" or \"book the first one\"."
    )
