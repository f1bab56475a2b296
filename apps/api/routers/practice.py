"""
Practice (curriculum) API Router

Vow, daily sessions with streaks, missed-day reflections and readiness gates
along the brahmavihara path.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from core.database import get_db
from core.auth import get_current_user
from core.exceptions import ConflictError, NotFoundError, ValidationError
from models import Profile
from schemas import (
    Brahmavihara,
    JournalEntryResponse,
    JournalEntryType,
    MissedDayCreate,
    PracticeResponse,
    PracticeSessionCreate,
    PracticeStatusResponse,
    ReadinessGateCreate,
    SessionOpeningResponse,
    SessionRecordedResponse,
    VowRequest,
)
from services import curriculum, practice_service
from services.dates import today_local

router = APIRouter(prefix="/v1/practice", tags=["Practice"])


def _practice_response(practice: curriculum.Practice) -> PracticeResponse:
    return PracticeResponse.model_validate(practice)


@router.get("/status", response_model=PracticeStatusResponse)
async def get_practice_status(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Vow, streak, where each track stands, and whether a missed day needs reflection."""
    return practice_service.practice_status(db, current_user, today_local())


@router.post("/vow", response_model=PracticeStatusResponse)
async def set_vow(
    body: VowRequest,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    practice_service.set_vow(db, current_user, body.vow)
    db.commit()
    return practice_service.practice_status(db, current_user, today_local())


@router.post("/sessions", response_model=SessionRecordedResponse, status_code=status.HTTP_201_CREATED)
async def record_session(
    body: PracticeSessionCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """
    Record a completed session and its reflection.

    Refused while a missed day is waiting for reflection.
    """
    try:
        streak, entry = practice_service.record_session(
            db, current_user, body.practice_id, body.reflection, today_local()
        )
    except practice_service.PracticeNotFound:
        raise NotFoundError("Practice", body.practice_id)
    except practice_service.InquiryPending as e:
        raise ConflictError(str(e))
    db.commit()
    return SessionRecordedResponse(
        streak=streak,
        last_practice_date=current_user.last_practice_date,
        journal_entry_id=entry.id,
    )


@router.post("/missed-day", response_model=JournalEntryResponse, status_code=status.HTTP_201_CREATED)
async def record_missed_day(
    body: MissedDayCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Reflect on a missed day. Ends the current streak."""
    entry = practice_service.record_missed_day(db, current_user, body.response, today_local())
    db.commit()
    return entry


@router.post("/readiness-gate", response_model=JournalEntryResponse, status_code=status.HTTP_201_CREATED)
async def pass_readiness_gate(
    body: ReadinessGateCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Move one track on to its next object of practice."""
    try:
        entry = practice_service.pass_readiness_gate(
            db, current_user, body.brahmavihara, body.response, today_local()
        )
    except practice_service.GateNotReady as e:
        raise ConflictError(str(e))
    db.commit()
    return entry


@router.get("/journal", response_model=List[JournalEntryResponse])
async def list_journal(
    entry_type: Optional[JournalEntryType] = None,
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    return practice_service.list_journal(db, current_user.id, entry_type=entry_type, limit=limit)


@router.get("/practices", response_model=List[PracticeResponse])
async def list_practices(node: Optional[str] = None):
    """All practices, or those for one node ("metta-self")."""
    if node is None:
        return [_practice_response(p) for p in curriculum.PRACTICES]
    try:
        practices = curriculum.get_practices_for_node(node)
    except ValueError as e:
        raise ValidationError(str(e), field="node")
    return [_practice_response(p) for p in practices]


@router.get("/practices/{practice_id}", response_model=PracticeResponse)
async def get_practice(practice_id: str):
    practice = curriculum.get_practice(practice_id)
    if practice is None:
        raise NotFoundError("Practice", practice_id)
    return _practice_response(practice)


@router.get("/session-opening", response_model=SessionOpeningResponse)
async def get_session_opening(
    brahmavihara: Brahmavihara = "metta",
    current_user: Profile = Depends(get_current_user)
):
    """
    What to show when a session starts on a track: a practice for the
    track's current node with one of its reflection prompts, an opening
    aspiration and a dedication. `practice` is null when the node has none yet.
    """
    node = curriculum.node_id(brahmavihara, current_user.track_object(brahmavihara))
    practice = curriculum.get_random_practice(node)
    prompt = curriculum.random_reflection_prompt(practice) if practice else None
    return SessionOpeningResponse(
        node=node,
        node_label=curriculum.format_node(node),
        practice=_practice_response(practice) if practice else None,
        aspiration=curriculum.random_aspiration(),
        dedication=curriculum.random_dedication(),
        reflection_prompt=prompt,
    )
