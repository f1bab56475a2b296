"""
Experiment progress.

Where is the user inside an experiment's window: which day they are on, how
many days are behind them, how many remain. Dates before the start clamp to
day 1, dates after the end clamp to the last day; nothing is rejected except a
non-positive duration.
"""

from dataclasses import dataclass, asdict
from datetime import date, timedelta
from typing import Optional

from services.dates import DateLike, days_between, parse_date_only, today_local


@dataclass
class ExperimentProgress:
    current_day: int  # 1-indexed, "Day 3 of 14"
    days_completed: int
    days_remaining: int
    progress: float  # 0.0 .. 1.0

    def to_dict(self) -> dict:
        return asdict(self)


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def compute_progress(
    start_date: DateLike,
    duration_days: int,
    today: Optional[DateLike] = None,
) -> ExperimentProgress:
    if duration_days < 1:
        raise ValueError(f"duration_days must be at least 1, got {duration_days}")

    today = today if today is not None else today_local()
    days_since_start = days_between(start_date, today)

    current_day = _clamp(days_since_start + 1, 1, duration_days)
    days_completed = _clamp(days_since_start, 0, duration_days)
    days_remaining = duration_days - days_completed

    return ExperimentProgress(
        current_day=current_day,
        days_completed=days_completed,
        days_remaining=days_remaining,
        progress=days_completed / duration_days,
    )


def end_date(start_date: DateLike, duration_days: int) -> date:
    return parse_date_only(start_date) + timedelta(days=duration_days)


def experiment_progress(experiment, today: Optional[DateLike] = None) -> ExperimentProgress:
    """Progress for a stored Experiment."""
    return compute_progress(experiment.start_date, experiment.duration_days, today)
