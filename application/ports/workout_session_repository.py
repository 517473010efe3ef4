"""
Workout Session Repository Interface (Port).

Completed workout summaries. The daily reset reads them to decide whether
yesterday's streak requirement was met.
"""
from typing import Protocol, List

from domain.models import WorkoutSession


class WorkoutSessionRepository(Protocol):
    """Abstract interface for workout session persistence."""

    def get_workout_sessions_by_user_and_date(
        self,
        user_id: str,
        date: str,
    ) -> List[WorkoutSession]:
        """
        Get all sessions a user completed on a local date.

        Args:
            user_id: User ID
            date: Local date (YYYY-MM-DD)

        Returns:
            List of sessions, possibly empty
        """
        ...

    def create_workout_session(self, session: WorkoutSession) -> WorkoutSession:
        """
        Persist a completed session.

        Returns:
            The stored session including its generated id
        """
        ...
