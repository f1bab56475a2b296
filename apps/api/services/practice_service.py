"""
Curriculum practice: vow, sessions, missed days, readiness gates.

Streak rules live in services.streaks; this module applies them to the
profile and writes the journal. Every state change is paired with exactly one
append-only journal entry.
"""

from datetime import date
from typing import Dict, List, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from models import JournalEntry, Profile
from services import curriculum
from services.dates import days_between
from services.streaks import needs_inquiry, next_streak_on_session, reset_streak_on_missed_day

logger = logging.getLogger(__name__)


class PracticeNotFound(LookupError):
    pass


class InquiryPending(Exception):
    """A missed day has to be reflected on before the next session."""


class GateNotReady(Exception):
    pass


def _add_journal_entry(db: Session, user_id: UUID, entry_type: str, day: date, data: Dict) -> JournalEntry:
    entry = JournalEntry(user_id=user_id, entry_type=entry_type, entry_date=day, data=data)
    db.add(entry)
    db.flush()
    return entry


def list_journal(
    db: Session,
    user_id: UUID,
    entry_type: Optional[str] = None,
    limit: int = 50,
) -> List[JournalEntry]:
    query = db.query(JournalEntry).filter(JournalEntry.user_id == user_id)
    if entry_type:
        query = query.filter(JournalEntry.entry_type == entry_type)
    return query.order_by(JournalEntry.entry_date.desc(), JournalEntry.created_at.desc()).limit(limit).all()


def has_missed_day_reflection(db: Session, user_id: UUID, day: date) -> bool:
    return (
        db.query(JournalEntry.id)
        .filter(
            JournalEntry.user_id == user_id,
            JournalEntry.entry_type == "missed_day",
            JournalEntry.entry_date == day,
        )
        .first()
        is not None
    )


def completed_nodes(db: Session, user_id: UUID) -> List[str]:
    """Nodes whose readiness gate has been passed, oldest first."""
    gates = (
        db.query(JournalEntry)
        .filter(JournalEntry.user_id == user_id, JournalEntry.entry_type == "readiness_gate")
        .order_by(JournalEntry.created_at.asc())
        .all()
    )
    return [g.data.get("node") for g in gates if g.data.get("node")]


def track_progress(profile: Profile) -> Dict[str, str]:
    return {b: profile.track_object(b) for b in curriculum.BRAHMAVIHARAS_ORDER}


def inquiry_pending(db: Session, profile: Profile, today: date) -> bool:
    return needs_inquiry(
        profile.last_practice_date,
        today,
        has_missed_day_reflection(db, profile.id, today),
    )


def practice_status(db: Session, profile: Profile, today: date) -> Dict:
    progress = track_progress(profile)
    return {
        "vow": profile.vow,
        "is_first_time": profile.vow is None,
        "streak": profile.streak or 0,
        "last_practice_date": profile.last_practice_date,
        "needs_inquiry": inquiry_pending(db, profile, today),
        "track_progress": progress,
        "current_nodes": [curriculum.node_id(b, o) for b, o in progress.items()],
        "completed_nodes": completed_nodes(db, profile.id),
    }


def set_vow(db: Session, profile: Profile, vow: str) -> Profile:
    profile.vow = vow
    db.add(profile)
    db.flush()
    return profile


def record_session(
    db: Session,
    profile: Profile,
    practice_id: str,
    reflection: str,
    today: date,
) -> Tuple[int, JournalEntry]:
    """Record a completed session; returns the new streak and the journal entry."""
    practice = curriculum.get_practice(practice_id)
    if practice is None:
        raise PracticeNotFound(practice_id)
    if inquiry_pending(db, profile, today):
        raise InquiryPending("Reflect on the missed day before practicing")

    new_streak = next_streak_on_session(profile.last_practice_date, profile.streak or 0, today)
    profile.streak = new_streak
    # A backdated session never moves the last practice day backwards
    if profile.last_practice_date is None or days_between(profile.last_practice_date, today) > 0:
        profile.last_practice_date = today
    db.add(profile)

    entry = _add_journal_entry(
        db,
        profile.id,
        "session",
        today,
        {"practice_id": practice.id, "node": practice.node, "reflection": reflection.strip()},
    )
    logger.info(f"Session {practice.id} recorded for user {profile.id}, streak {new_streak}")
    return new_streak, entry


def record_missed_day(db: Session, profile: Profile, response: str, today: date) -> JournalEntry:
    previous = profile.streak or 0
    profile.streak = reset_streak_on_missed_day()
    db.add(profile)
    entry = _add_journal_entry(db, profile.id, "missed_day", today, {"response": response.strip()})
    logger.info(f"Missed day recorded for user {profile.id}, streak {previous} -> 0")
    return entry


def can_advance(streak: int, node: str, passed_nodes: List[str]) -> bool:
    return streak >= curriculum.MIN_STREAK_TO_ADVANCE and node not in passed_nodes


def pass_readiness_gate(
    db: Session,
    profile: Profile,
    brahmavihara: str,
    response: str,
    today: date,
) -> JournalEntry:
    """Pass the gate on one track and move it to the next object."""
    from_object = profile.track_object(brahmavihara)
    node = curriculum.node_id(brahmavihara, from_object)

    if not can_advance(profile.streak or 0, node, completed_nodes(db, profile.id)):
        raise GateNotReady(
            f"{curriculum.format_node(node)} needs a streak of "
            f"{curriculum.MIN_STREAK_TO_ADVANCE} days and must not already be passed"
        )

    # The last object stays put; the track is then complete
    to_object = curriculum.next_object(from_object) or from_object
    profile.set_track_object(brahmavihara, to_object)
    db.add(profile)

    entry = _add_journal_entry(
        db,
        profile.id,
        "readiness_gate",
        today,
        {
            "brahmavihara": brahmavihara,
            "node": node,
            "from_object": from_object,
            "to_object": to_object,
            "response": response.strip(),
        },
    )
    logger.info(f"Readiness gate {node} passed for user {profile.id}, now at {to_object}")
    return entry
