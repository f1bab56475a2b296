"""
Profile and onboarding API Router

The dashboard endpoint returns everything the home screen shows in one
response, so the client refreshes it as a unit: either the whole snapshot
loads or the request fails and the client keeps what it had.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db
from core.auth import get_current_user
from models import Profile
from schemas import DashboardResponse, ExperimentResponse, LogEntryResponse, ProfileResponse
from services import experiment_service
from services.dates import today_local
from routers.experiments import progress_response

router = APIRouter(prefix="/v1", tags=["Profile"])

DASHBOARD_RECENT_LOGS = 50


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(current_user: Profile = Depends(get_current_user)):
    return current_user


@router.post("/profile/onboarded", response_model=ProfileResponse)
async def mark_onboarded(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Finish onboarding. Calling it again keeps the original timestamp."""
    profile = experiment_service.mark_onboarded(db, current_user)
    db.commit()
    return profile


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    today = today_local()
    active = experiment_service.get_active_experiment(db, current_user.id)
    experiments = experiment_service.list_experiments(db, current_user.id)
    recent = experiment_service.list_recent_logs(db, current_user.id, limit=DASHBOARD_RECENT_LOGS)
    todays = experiment_service.list_logs_for_day(db, current_user.id, active.id, today) if active else []

    return DashboardResponse(
        profile=ProfileResponse.model_validate(current_user),
        active_experiment=ExperimentResponse.model_validate(active) if active else None,
        experiment_progress=progress_response(active, today) if active else None,
        experiments=[ExperimentResponse.model_validate(e) for e in experiments],
        recent_logs=[LogEntryResponse.model_validate(log) for log in recent],
        today_logs=[LogEntryResponse.model_validate(log) for log in todays],
    )
