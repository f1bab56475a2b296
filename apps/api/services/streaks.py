"""
Daily practice streaks.

Pure rules only; the practice service persists the results.

- A session on the same day as the last one leaves the streak alone.
- A session the day after the last one extends it by one.
- A longer gap starts over at 1.
- Recording a missed-day reflection resets it to 0.
"""

from typing import Optional

from services.dates import DateLike, days_between


def next_streak_on_session(
    last_practice_date: Optional[DateLike],
    current_streak: int,
    today: DateLike,
) -> int:
    """Streak value after a session recorded on `today`."""
    current_streak = max(current_streak or 0, 0)
    if last_practice_date is None:
        return 1

    diff = days_between(last_practice_date, today)
    if diff == 0:
        return current_streak
    if diff == 1:
        return current_streak + 1
    if diff < 0:
        # today is before the last recorded practice day (clock skew, backdated session)
        return current_streak
    return 1


def reset_streak_on_missed_day() -> int:
    return 0


def needs_inquiry(
    last_practice_date: Optional[DateLike],
    today: DateLike,
    has_todays_reflection: bool,
) -> bool:
    """
    Whether the user must reflect on a missed day before practicing again.

    Nothing to miss without a previous practice; a gap of one day or less is
    not a miss; and once today's reflection exists we do not ask again.
    """
    if last_practice_date is None:
        return False
    if days_between(last_practice_date, today) <= 1:
        return False
    if has_todays_reflection:
        return False
    return True
