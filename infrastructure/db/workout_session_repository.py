"""
Supabase Workout Session Repository Implementation.

This module implements the WorkoutSessionRepository protocol using Supabase
against the `workout_sessions` table.
"""
from typing import List, Dict, Any
import logging

from supabase import Client

from application.exceptions import PersistenceError
from domain.models import WorkoutSession

logger = logging.getLogger(__name__)


def _to_model(row: Dict[str, Any]) -> WorkoutSession:
    data = {k: v for k, v in row.items() if k in WorkoutSession.model_fields and v is not None}
    data["user_id"] = str(row["user_id"])
    if "id" in data:
        data["id"] = str(data["id"])
    return WorkoutSession(**data)


class SupabaseWorkoutSessionRepository:
    """Supabase implementation of WorkoutSessionRepository."""

    def __init__(self, client: Client):
        """
        Initialize with Supabase client.

        Args:
            client: Supabase client instance (injected)
        """
        self._client = client

    def get_workout_sessions_by_user_and_date(
        self,
        user_id: str,
        date: str,
    ) -> List[WorkoutSession]:
        try:
            result = self._client.table("workout_sessions") \
                .select("*") \
                .eq("user_id", user_id) \
                .eq("date", date) \
                .execute()
        except Exception as e:
            logger.exception(f"Error fetching workout sessions for {user_id} on {date}")
            raise PersistenceError("Failed to fetch workout sessions") from e

        return [_to_model(row) for row in result.data or []]

    def create_workout_session(self, session: WorkoutSession) -> WorkoutSession:
        try:
            result = self._client.table("workout_sessions") \
                .insert(session.model_dump(exclude={"id"})) \
                .execute()
        except Exception as e:
            logger.exception(f"Error creating workout session for {session.user_id}")
            raise PersistenceError("Failed to create workout session") from e

        if not result.data:
            raise PersistenceError("Workout session insert returned no row")
        return _to_model(result.data[0])
