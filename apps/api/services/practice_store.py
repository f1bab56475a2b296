"""
Local practice state for offline use.

`PracticeStore` is an explicit state container: build one, pass it to
whatever needs it, and persist it at the edges with `PracticeStore.load(path)`
and `store.save(path)`. Nothing is read or written in between.

On disk the state is a single JSON blob under one storage key:

    {"hridaya-storage": {"state": {...}, "version": 0}}
"""

from __future__ import annotations

import json
import uuid
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from services import curriculum
from services.dates import days_between, today_local
from services.streaks import needs_inquiry, next_streak_on_session, reset_streak_on_missed_day

STORAGE_KEY = "hridaya-storage"
STORAGE_VERSION = 0


class SessionRecord(BaseModel):
    id: str
    date: date
    practice_id: str
    node: str
    reflection: str


class MissedDayReflection(BaseModel):
    date: date
    response: str


class ReadinessGateResponse(BaseModel):
    node: str
    response: str
    date: date


def _initial_track_progress() -> Dict[str, str]:
    return {b: curriculum.OBJECTS_ORDER[0] for b in curriculum.BRAHMAVIHARAS_ORDER}


class PracticeState(BaseModel):
    vow: Optional[str] = None
    current_node: str = "metta-self"
    completed_nodes: List[str] = Field(default_factory=list)
    streak: int = Field(default=0, ge=0)
    last_practice_date: Optional[date] = None
    sessions: List[SessionRecord] = Field(default_factory=list)
    missed_day_reflections: List[MissedDayReflection] = Field(default_factory=list)
    readiness_gate_responses: List[ReadinessGateResponse] = Field(default_factory=list)
    track_progress: Dict[str, str] = Field(default_factory=_initial_track_progress)


class PracticeStore:
    def __init__(self, state: Optional[PracticeState] = None):
        self.state = state or PracticeState()

    # --- persistence boundary ---

    @classmethod
    def load(cls, path: Path) -> "PracticeStore":
        """Read the stored blob; a missing file gives a fresh store."""
        path = Path(path)
        if not path.exists():
            return cls()
        blob = json.loads(path.read_text(encoding="utf-8"))
        stored = blob.get(STORAGE_KEY) or {}
        return cls(PracticeState.model_validate(stored.get("state") or {}))

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        blob = {
            STORAGE_KEY: {
                "state": self.state.model_dump(mode="json"),
                "version": STORAGE_VERSION,
            }
        }
        path.write_text(json.dumps(blob, indent=2), encoding="utf-8")

    # --- actions ---

    def set_vow(self, vow: str) -> None:
        self.state.vow = vow.strip()

    def record_session(self, practice_id: str, reflection: str, today: Optional[date] = None) -> int:
        """Append a session and return the new streak."""
        today = today or today_local()
        state = self.state

        state.streak = next_streak_on_session(state.last_practice_date, state.streak, today)
        if state.last_practice_date is None or days_between(state.last_practice_date, today) > 0:
            state.last_practice_date = today

        state.sessions.append(
            SessionRecord(
                id=uuid.uuid4().hex,
                date=today,
                practice_id=practice_id,
                node=state.current_node,
                reflection=reflection.strip(),
            )
        )
        return state.streak

    def record_missed_day(self, response: str, today: Optional[date] = None) -> None:
        today = today or today_local()
        self.state.missed_day_reflections.append(MissedDayReflection(date=today, response=response.strip()))
        self.state.streak = reset_streak_on_missed_day()

    def pass_readiness_gate(self, node: str, response: str, today: Optional[date] = None) -> None:
        today = today or today_local()
        self.state.readiness_gate_responses.append(
            ReadinessGateResponse(node=node, response=response.strip(), date=today)
        )
        if node not in self.state.completed_nodes:
            self.state.completed_nodes.append(node)

    def advance_to_next_node(self) -> Optional[str]:
        """Move to the next node on the path; stays put (and returns None) at the end."""
        following = curriculum.get_next_node(self.state.current_node)
        if following is not None:
            self.state.current_node = following
            brahmavihara, practice_object = curriculum.split_node(following)
            self.state.track_progress[brahmavihara] = practice_object
        return following

    # --- derived ---

    def has_vow(self) -> bool:
        return self.state.vow is not None

    def is_first_time(self) -> bool:
        return self.state.vow is None

    def needs_missed_day_inquiry(self, today: Optional[date] = None) -> bool:
        today = today or today_local()
        reflections = self.state.missed_day_reflections
        reflected_today = bool(reflections) and reflections[-1].date == today
        return needs_inquiry(self.state.last_practice_date, today, reflected_today)

    def can_advance(self) -> bool:
        return (
            self.state.streak >= curriculum.MIN_STREAK_TO_ADVANCE
            and self.state.current_node not in self.state.completed_nodes
        )

    def days_at_current_node(self) -> int:
        """Distinct days with a session at the current node."""
        return len({s.date for s in self.state.sessions if s.node == self.state.current_node})
