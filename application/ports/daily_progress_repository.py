"""
Daily Progress Repository Interface (Port).

One row per user per local calendar date, unique on (user_id, date).
Rows are append-only once created; only the quest flags and award
markers mutate within a date.
"""
from typing import Protocol, Optional, Dict, Any

from domain.models import DailyProgress


class DailyProgressRepository(Protocol):
    """Abstract interface for daily quest progress data access."""

    def get_daily_progress(self, user_id: str, date: str) -> Optional[DailyProgress]:
        """
        Get the row for one user and date.

        Args:
            user_id: User ID
            date: Local date (YYYY-MM-DD)

        Returns:
            DailyProgress, or None if no row exists for that date
        """
        ...

    def get_latest_daily_progress(self, user_id: str) -> Optional[DailyProgress]:
        """
        Get the user's most recent row by date.

        Returns:
            DailyProgress, or None if the user has no rows at all
        """
        ...

    def insert_daily_progress(self, row: DailyProgress) -> DailyProgress:
        """
        Insert a new row in a single write.

        Raises:
            DuplicateDailyProgressError: A row already exists for
                (row.user_id, row.date)
        """
        ...

    def update_daily_progress(
        self,
        user_id: str,
        date: str,
        fields: Dict[str, Any],
        *,
        expected: Optional[Dict[str, Any]] = None,
    ) -> Optional[DailyProgress]:
        """
        Update flags or award markers on an existing row.

        Args:
            user_id: User ID
            date: Local date (YYYY-MM-DD)
            fields: Column values to write
            expected: Column values that must still match (compare-and-set)

        Returns:
            The updated row, or None if the row is missing or `expected`
            did not match
        """
        ...
