"""Consecutive study day counting."""
import logging
from datetime import date, timedelta

from petwords.models.progress_models import AccountSnapshot, StreakSnapshot

logger = logging.getLogger(__name__)


def on_study_activity(snapshot: AccountSnapshot, today: date) -> StreakSnapshot:
    """Count ``today`` as a study day, at most once per calendar day."""
    if snapshot.last_study_str != today:
        if snapshot.last_study_str == today - timedelta(days=1):
            snapshot.current_streak += 1
        else:
            snapshot.current_streak = 1

        snapshot.longest_streak = max(snapshot.longest_streak, snapshot.current_streak)
        snapshot.total_days_studied += 1
        snapshot.last_study_str = today
        logger.debug(
            f"Account {snapshot.account_id} streak: {snapshot.current_streak} "
            f"(longest {snapshot.longest_streak})"
        )

    return current_streak(snapshot)


def current_streak(snapshot: AccountSnapshot) -> StreakSnapshot:
    """Read the streak counters without counting a new day."""
    return StreakSnapshot(
        current_streak=snapshot.current_streak,
        longest_streak=snapshot.longest_streak,
        total_days_studied=snapshot.total_days_studied,
    )
