#!/usr/bin/env python3
"""
Interactive local call harness (no HTTP).

Usage:
  python3 scripts/chat_local.py

What it does:
- Keeps a stable session_id for the call
- Sends your typed utterances through the same ConversationOrchestrator the API uses
- Prints the state, intent, tool calls and tool results after each reply
"""

from __future__ import annotations

import os
import sys
import time
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

load_dotenv()

from advisor_desk.wiring.dependencies import get_booking_ledger, get_orchestrator  # noqa: E402


def _print_header(session_id: str) -> None:
    print("\nLocal Advisor Desk Harness")
    print("-" * 60)
    print(f"session_id: {session_id}")
    print("Type what the caller says and press Enter.")
    print("Commands: /new (new call), /bookings, /quit, /help")
    print("-" * 60)


def main() -> None:
    session_id = os.getenv("CHAT_SESSION_ID", "local_call_1")
    orchestrator = get_orchestrator()
    ledger = get_booking_ledger()
    _print_header(session_id)

    while True:
        try:
            user_text = input("\n> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return

        if not user_text:
            continue

        cmd = user_text.lower()
        if cmd in ("/quit", "/exit"):
            print("Bye!")
            return
        if cmd == "/help":
            print("Commands:")
            print("  /new      -> start a new call (fresh session)")
            print("  /bookings -> list every booking in the ledger")
            print("  /quit     -> exit")
            continue
        if cmd == "/new":
            session_id = f"local_call_{int(time.time())}"
            print(f"New session_id: {session_id}")
            continue
        if cmd == "/bookings":
            for booking in ledger.all_bookings():
                print(
                    f"{booking.code}  {booking.topic:<26} {booking.slot_start.isoformat()}  "
                    f"{booking.status.value}{' (waitlist)' if booking.is_waitlist else ''}"
                )
            continue

        result = orchestrator.handle_turn(session_id, user_text)

        print("\n--- Decision ---")
        print(f"state: {result.state}")
        print(f"intent: {result.intent}")
        for call, outcome in zip(result.tool_calls, result.tool_results):
            status = "ok" if outcome.success else f"failed ({outcome.error_kind})"
            print(f"tool: {call.name} -> {status}")

        print("\n--- Reply ---")
        print(result.response)


if __name__ == "__main__":
    main()
