"""
Experiments API Router

Create, read and close self-experiments, plus the derived views: progress
through the experiment window and chart data over its log entries.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from uuid import UUID

from core.database import get_db
from core.auth import get_current_user
from core.exceptions import ConflictError, NotFoundError
from models import Profile
from schemas import (
    ExperimentComplete,
    ExperimentCreate,
    ExperimentResponse,
    LogEntryResponse,
    LogEntryType,
    ProgressResponse,
)
from services import experiment_service
from services.chart_data import build_chart, get_metric_series
from services.dates import today_local
from services.experiment_progress import experiment_progress

router = APIRouter(prefix="/v1/experiments", tags=["Experiments"])


def _get_or_404(db: Session, user: Profile, experiment_id: UUID):
    try:
        return experiment_service.get_experiment(db, user.id, experiment_id)
    except experiment_service.ExperimentNotFound:
        raise NotFoundError("Experiment", str(experiment_id))


def progress_response(experiment, today: Optional[date] = None) -> ProgressResponse:
    progress = experiment_progress(experiment, today or today_local())
    return ProgressResponse(experiment_id=experiment.id, **progress.to_dict())


@router.get("", response_model=List[ExperimentResponse])
async def list_experiments(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """All experiments, newest first."""
    return experiment_service.list_experiments(db, current_user.id)


@router.get("/active", response_model=Optional[ExperimentResponse])
async def get_active_experiment(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """The active experiment, or null when there is none."""
    return experiment_service.get_active_experiment(db, current_user.id)


@router.post("", response_model=ExperimentResponse, status_code=status.HTTP_201_CREATED)
async def create_experiment(
    experiment: ExperimentCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """
    Start a new experiment.

    Only one experiment can be active at a time; close the current one first.
    """
    try:
        created = experiment_service.create_experiment(db, current_user.id, experiment)
    except experiment_service.ExperimentStateError as e:
        raise ConflictError(str(e))
    db.commit()
    return created


@router.get("/{experiment_id}", response_model=ExperimentResponse)
async def get_experiment(
    experiment_id: UUID,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    return _get_or_404(db, current_user, experiment_id)


@router.post("/{experiment_id}/complete", response_model=ExperimentResponse)
async def complete_experiment(
    experiment_id: UUID,
    body: ExperimentComplete,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Close the experiment with a conclusion."""
    _get_or_404(db, current_user, experiment_id)
    try:
        experiment = experiment_service.complete_experiment(db, current_user.id, experiment_id, body.conclusion)
    except experiment_service.ExperimentStateError as e:
        raise ConflictError(str(e))
    db.commit()
    return experiment


@router.post("/{experiment_id}/abandon", response_model=ExperimentResponse)
async def abandon_experiment(
    experiment_id: UUID,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    _get_or_404(db, current_user, experiment_id)
    try:
        experiment = experiment_service.abandon_experiment(db, current_user.id, experiment_id)
    except experiment_service.ExperimentStateError as e:
        raise ConflictError(str(e))
    db.commit()
    return experiment


@router.get("/{experiment_id}/progress", response_model=ProgressResponse)
async def get_experiment_progress(
    experiment_id: UUID,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Current day, days completed/remaining and fractional progress as of today."""
    experiment = _get_or_404(db, current_user, experiment_id)
    return progress_response(experiment)


@router.get("/{experiment_id}/logs", response_model=List[LogEntryResponse])
async def list_experiment_logs(
    experiment_id: UUID,
    since: Optional[date] = None,
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Log entries for one experiment, most recent first."""
    _get_or_404(db, current_user, experiment_id)
    return experiment_service.list_log_entries(db, current_user.id, experiment_id, since=since, limit=limit)


@router.get("/{experiment_id}/chart")
async def get_experiment_chart(
    experiment_id: UUID,
    types: Optional[List[LogEntryType]] = Query(default=None),
    aggregate: bool = True,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """
    Chart points for every metric of the experiment.

    - types: only include these entry types (repeat the parameter for several)
    - aggregate: one averaged point per date (default) or one point per entry
    """
    experiment = _get_or_404(db, current_user, experiment_id)
    logs = experiment_service.list_log_entries(db, current_user.id, experiment_id)
    points = build_chart(logs, experiment.metrics or [], types=types, aggregate=aggregate)
    return {
        "experiment_id": str(experiment.id),
        "metrics": experiment.metrics or [],
        "points": points,
        "count": len(points),
    }


@router.get("/{experiment_id}/series/{metric_id}")
async def get_experiment_metric_series(
    experiment_id: UUID,
    metric_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """One metric's values over time, one point per entry that rated it."""
    experiment = _get_or_404(db, current_user, experiment_id)
    if metric_id not in {m["id"] for m in experiment.metrics or []}:
        raise NotFoundError("Metric", metric_id)
    logs = experiment_service.list_log_entries(db, current_user.id, experiment_id)
    series = get_metric_series(logs, metric_id)
    return {"metric_id": metric_id, "series": series, "count": len(series)}
