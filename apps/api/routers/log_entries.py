"""
Log Entries API Router

Before-sit, after-sit and end-of-day ratings against the active experiment.
Entries are append-only: there is no update or delete.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List

from core.database import get_db
from core.auth import get_current_user
from core.exceptions import ConflictError, NotFoundError, ValidationError
from models import Profile
from schemas import LogEntryCreate, LogEntryResponse, NextEntryTypeResponse
from services import experiment_service
from services.dates import today_local

router = APIRouter(prefix="/v1/logs", tags=["Log Entries"])


@router.post("", response_model=LogEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_log_entry(
    entry: LogEntryCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """
    Log ratings for today (or entry_date) against the active experiment.

    Ratings are keyed by metric id and must sit inside each metric's scale.
    """
    try:
        created = experiment_service.create_log_entry(db, current_user.id, entry)
    except experiment_service.ExperimentNotFound as e:
        raise NotFoundError("Experiment", str(e))
    except experiment_service.ExperimentStateError as e:
        raise ConflictError(str(e))
    except experiment_service.InvalidRatings as e:
        raise ValidationError(str(e), field="ratings")
    db.commit()
    return created


@router.get("/recent", response_model=List[LogEntryResponse])
async def list_recent_logs(
    limit: int = Query(default=experiment_service.RECENT_LOGS_LIMIT, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Most recent entries across all experiments."""
    return experiment_service.list_recent_logs(db, current_user.id, limit=limit)


@router.get("/today", response_model=List[LogEntryResponse])
async def list_today_logs(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Today's entries for the active experiment; empty without one."""
    active = experiment_service.get_active_experiment(db, current_user.id)
    if active is None:
        return []
    return experiment_service.list_logs_for_day(db, current_user.id, active.id, today_local())


@router.get("/next-type", response_model=NextEntryTypeResponse)
async def get_next_entry_type(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Which entry the user most likely wants to log next today."""
    active = experiment_service.get_active_experiment(db, current_user.id)
    logged = []
    if active is not None:
        todays = experiment_service.list_logs_for_day(db, current_user.id, active.id, today_local())
        logged = sorted({log.entry_type for log in todays})
    return NextEntryTypeResponse(
        entry_type=experiment_service.suggest_next_entry_type(logged),
        logged_today=logged,
    )
