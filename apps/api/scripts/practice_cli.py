"""
Offline practice journal on the command line.

Keeps the curriculum state (vow, streak, sessions, missed-day reflections,
readiness gates) in a local JSON file instead of the API database.

Usage:
  python scripts/practice_cli.py vow "I will sit every morning"
  python scripts/practice_cli.py session metta-self-theravada-1 "Warmth in the chest"
  python scripts/practice_cli.py missed "Travel, no quiet place"
  python scripts/practice_cli.py gate "Ready to widen the circle"
  python scripts/practice_cli.py status
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import List, Optional


# Ensure /app is on sys.path when run as a script inside the container.
_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _ROOT not in sys.path:
    sys.path.insert(0, _ROOT)

DEFAULT_STATE_PATH = Path.home() / ".hridaya" / "state.json"


def _print_status(store) -> None:
    from services import curriculum

    state = store.state
    print(f"Vow:        {state.vow or '(none yet)'}")
    print(f"Node:       {curriculum.format_node(state.current_node)}")
    print(f"Streak:     {state.streak}")
    print(f"Last sit:   {state.last_practice_date or '-'}")
    print(f"Days here:  {store.days_at_current_node()}")
    print(f"Completed:  {', '.join(state.completed_nodes) or '-'}")
    if store.needs_missed_day_inquiry():
        print("A day was missed. Reflect on it with `missed` before the next session.")
    elif store.can_advance():
        print("Ready for the readiness gate.")


def main(argv: Optional[List[str]] = None) -> int:
    import argparse

    parser = argparse.ArgumentParser(description="Hridaya offline practice journal")
    parser.add_argument(
        "--state",
        type=Path,
        default=Path(os.getenv("HRIDAYA_STATE_PATH", DEFAULT_STATE_PATH)),
        help="Path of the local state file.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    vow = sub.add_parser("vow", help="Set or replace the vow")
    vow.add_argument("text")

    session = sub.add_parser("session", help="Record today's session")
    session.add_argument("practice_id")
    session.add_argument("reflection")

    missed = sub.add_parser("missed", help="Reflect on a missed day (resets the streak)")
    missed.add_argument("response")

    gate = sub.add_parser("gate", help="Pass the readiness gate for the current node and advance")
    gate.add_argument("response")

    sub.add_parser("status", help="Show the current state")

    args = parser.parse_args(argv)

    from services import curriculum
    from services.practice_store import PracticeStore

    store = PracticeStore.load(args.state)

    if args.command == "vow":
        store.set_vow(args.text)
    elif args.command == "session":
        if curriculum.get_practice(args.practice_id) is None:
            print(f"ERROR: unknown practice {args.practice_id!r}")
            return 2
        if store.needs_missed_day_inquiry():
            print("ERROR: a missed day needs reflection first (use `missed`)")
            return 2
        streak = store.record_session(args.practice_id, args.reflection)
        print(f"Session recorded. Streak: {streak}")
    elif args.command == "missed":
        store.record_missed_day(args.response)
        print("Reflection recorded. Streak reset to 0.")
    elif args.command == "gate":
        if not store.can_advance():
            print(f"ERROR: a streak of {curriculum.MIN_STREAK_TO_ADVANCE} days is needed to advance")
            return 2
        store.pass_readiness_gate(store.state.current_node, args.response)
        following = store.advance_to_next_node()
        if following is None:
            print("The path is complete.")
        else:
            print(f"Advanced to {curriculum.format_node(following)}")
    else:
        _print_status(store)
        return 0

    store.save(args.state)
    return 0


if __name__ == "__main__":
    sys.exit(main())
