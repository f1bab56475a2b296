"""
Experiments and log entries.

Plain CRUD against the database, scoped to one owner. Experiments are
created active, then either completed (with a conclusion) or abandoned; both
are terminal. Log entries are append-only and can only be written against the
owner's active experiment.
"""

from datetime import date, datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import Experiment, LogEntry, Profile, LOG_ENTRY_TYPES
from schemas import DEFAULT_SCALE, ExperimentCreate, LogEntryCreate
from services.dates import today_local

logger = logging.getLogger(__name__)

RECENT_LOGS_LIMIT = 20


class ExperimentNotFound(LookupError):
    pass


class ExperimentStateError(Exception):
    """The requested change does not fit the experiment's current status."""


class InvalidRatings(ValueError):
    pass


# =============================================================================
# Profile
# =============================================================================

def mark_onboarded(db: Session, profile: Profile) -> Profile:
    if profile.onboarded_at is None:
        profile.onboarded_at = datetime.now(timezone.utc)
        db.add(profile)
        db.flush()
    return profile


# =============================================================================
# Experiments
# =============================================================================

def list_experiments(db: Session, user_id: UUID) -> List[Experiment]:
    """All of the user's experiments, newest first."""
    return (
        db.query(Experiment)
        .filter(Experiment.user_id == user_id)
        .order_by(Experiment.created_at.desc())
        .all()
    )


def get_active_experiment(db: Session, user_id: UUID) -> Optional[Experiment]:
    return (
        db.query(Experiment)
        .filter(Experiment.user_id == user_id, Experiment.status == "active")
        .order_by(Experiment.created_at.desc())
        .first()
    )


def get_experiment(db: Session, user_id: UUID, experiment_id: UUID) -> Experiment:
    """The experiment if it exists and belongs to user_id."""
    experiment = (
        db.query(Experiment)
        .filter(Experiment.id == experiment_id, Experiment.user_id == user_id)
        .first()
    )
    if experiment is None:
        raise ExperimentNotFound(str(experiment_id))
    return experiment


ONE_ACTIVE_MESSAGE = "Complete or abandon the active experiment before starting another"


def create_experiment(db: Session, user_id: UUID, data: ExperimentCreate) -> Experiment:
    """
    Start an experiment. The check below gives the friendly error; the
    partial unique index on (user_id) WHERE status = 'active' settles races
    between two concurrent creates.
    """
    if get_active_experiment(db, user_id) is not None:
        raise ExperimentStateError(ONE_ACTIVE_MESSAGE)

    experiment = Experiment(
        user_id=user_id,
        title=data.title,
        hypothesis=data.hypothesis,
        protocol=data.protocol,
        metrics=[m.model_dump() for m in data.metrics],
        duration_days=data.duration_days,
        start_date=data.start_date or today_local(),
        status="active",
    )
    db.add(experiment)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        logger.info(f"Concurrent create rejected for user {user_id}: already has an active experiment")
        raise ExperimentStateError(ONE_ACTIVE_MESSAGE)
    logger.info(f"Experiment {experiment.id} created for user {user_id} ({experiment.duration_days} days)")
    return experiment


def _close_experiment(db: Session, experiment: Experiment, status: str, conclusion: Optional[str]) -> Experiment:
    if not experiment.is_active:
        raise ExperimentStateError(f"Experiment is already {experiment.status}")
    experiment.status = status
    experiment.conclusion = conclusion
    db.add(experiment)
    db.flush()
    logger.info(f"Experiment {experiment.id} {status}")
    return experiment


def complete_experiment(db: Session, user_id: UUID, experiment_id: UUID, conclusion: str) -> Experiment:
    experiment = get_experiment(db, user_id, experiment_id)
    return _close_experiment(db, experiment, "completed", conclusion.strip())


def abandon_experiment(db: Session, user_id: UUID, experiment_id: UUID) -> Experiment:
    experiment = get_experiment(db, user_id, experiment_id)
    return _close_experiment(db, experiment, "abandoned", None)


# =============================================================================
# Log entries
# =============================================================================

def validate_ratings(experiment: Experiment, ratings: Dict[str, float]) -> None:
    """Every key must be one of the experiment's metrics and every value inside its scale."""
    scales = {m["id"]: tuple(m.get("scale") or DEFAULT_SCALE) for m in experiment.metrics or []}
    for metric_id, value in ratings.items():
        if metric_id not in scales:
            raise InvalidRatings(f"Unknown metric '{metric_id}' for this experiment")
        low, high = scales[metric_id]
        if not (low <= value <= high):
            raise InvalidRatings(f"Rating for '{metric_id}' must be between {low} and {high}, got {value}")


def create_log_entry(db: Session, user_id: UUID, data: LogEntryCreate) -> LogEntry:
    if data.experiment_id is not None:
        experiment = get_experiment(db, user_id, data.experiment_id)
    else:
        experiment = get_active_experiment(db, user_id)
        if experiment is None:
            raise ExperimentNotFound("active")

    if not experiment.is_active:
        raise ExperimentStateError(f"Cannot log against a {experiment.status} experiment")

    validate_ratings(experiment, data.ratings)

    entry = LogEntry(
        user_id=user_id,
        experiment_id=experiment.id,
        entry_type=data.entry_type,
        entry_date=data.entry_date or today_local(),
        ratings=dict(data.ratings),
        notes=data.notes,
        sit_duration_minutes=data.sit_duration_minutes,
        technique_notes=data.technique_notes,
    )
    db.add(entry)
    db.flush()
    return entry


def list_log_entries(
    db: Session,
    user_id: UUID,
    experiment_id: UUID,
    since: Optional[date] = None,
    limit: Optional[int] = None,
) -> List[LogEntry]:
    """An experiment's entries, most recent first."""
    get_experiment(db, user_id, experiment_id)
    query = (
        db.query(LogEntry)
        .filter(LogEntry.experiment_id == experiment_id, LogEntry.user_id == user_id)
        .order_by(LogEntry.entry_date.desc(), LogEntry.created_at.desc())
    )
    if since is not None:
        query = query.filter(LogEntry.entry_date >= since)
    if limit:
        query = query.limit(limit)
    return query.all()


def list_recent_logs(db: Session, user_id: UUID, limit: int = RECENT_LOGS_LIMIT) -> List[LogEntry]:
    """The user's entries across all experiments, most recent first."""
    return (
        db.query(LogEntry)
        .filter(LogEntry.user_id == user_id)
        .order_by(LogEntry.entry_date.desc(), LogEntry.created_at.desc())
        .limit(limit)
        .all()
    )


def list_logs_for_day(db: Session, user_id: UUID, experiment_id: UUID, day: date) -> List[LogEntry]:
    """Entries on one day, in the order they were written."""
    return (
        db.query(LogEntry)
        .filter(
            LogEntry.user_id == user_id,
            LogEntry.experiment_id == experiment_id,
            LogEntry.entry_date == day,
        )
        .order_by(LogEntry.created_at.asc())
        .all()
    )


def suggest_next_entry_type(logged_types) -> str:
    """First of before_sit, after_sit, eod not logged yet today; after_sit once all are in."""
    logged = set(logged_types)
    for entry_type in LOG_ENTRY_TYPES:
        if entry_type not in logged:
            return entry_type
    return "after_sit"
