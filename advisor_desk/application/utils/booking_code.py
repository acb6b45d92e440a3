from __future__ import annotations

import random
import re
import string
from typing import Container

from advisor_desk.application.exceptions import GenerationExhausted

BOOKING_CODE_RE = re.compile(r"^[A-Z]{2}-[A-Z0-9]{3,4}$")
PREFIX_ALPHABET = string.ascii_uppercase
SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
MAX_GENERATION_ATTEMPTS = 100

_system_random = random.SystemRandom()


def _candidate(rng: random.Random) -> str:
    prefix = "".join(rng.choice(PREFIX_ALPHABET) for _ in range(2))
    suffix = "".join(rng.choice(SUFFIX_ALPHABET) for _ in range(3))
    return f"{prefix}-{suffix}"


def generate_booking_code(
    existing_codes: Container[str] = (),
    rng: random.Random | None = None,
    max_attempts: int = MAX_GENERATION_ATTEMPTS,
) -> str:
    """
    Return a fresh code of the form "NL-A74", unique against `existing_codes`.

    Raises GenerationExhausted when every attempt collides.
    """
    rng = rng or _system_random
    for _ in range(max_attempts):
        code = _candidate(rng)
        if code not in existing_codes:
            return code
    raise GenerationExhausted(f"no unused booking code after {max_attempts} attempts")


def validate_booking_code(code: str | None) -> bool:
    if not code:
        return False
    return BOOKING_CODE_RE.match(code.strip().upper()) is not None


def format_booking_code_for_voice(code: str) -> str:
    # "NL-A74" -> "N L dash A 7 4"
    parts = ["dash" if ch == "-" else ch for ch in code.upper()]
    return " ".join(parts)
