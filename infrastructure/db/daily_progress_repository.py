"""
Supabase Daily Progress Repository Implementation.

This module implements the DailyProgressRepository protocol using Supabase.
The `daily_progress` table has a unique constraint on (user_id, date);
an insert that violates it surfaces as DuplicateDailyProgressError.
"""
from typing import Optional, Dict, Any
import logging

from postgrest.exceptions import APIError
from supabase import Client

from application.exceptions import DuplicateDailyProgressError, PersistenceError
from domain.models import DailyProgress
from infrastructure.db.user_progress_repository import apply_expected

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"

DAILY_PROGRESS_COLUMNS = (
    "user_id, date, hydration, steps, protein, sleep, xp_awarded, streak_freeze_awarded"
)


def _to_model(row: Dict[str, Any]) -> DailyProgress:
    data = {k: v for k, v in row.items() if k in DailyProgress.model_fields and v is not None}
    data["user_id"] = str(row["user_id"])
    return DailyProgress(**data)


class SupabaseDailyProgressRepository:
    """Supabase implementation of DailyProgressRepository."""

    def __init__(self, client: Client):
        """
        Initialize with Supabase client.

        Args:
            client: Supabase client instance (injected)
        """
        self._client = client

    def get_daily_progress(self, user_id: str, date: str) -> Optional[DailyProgress]:
        try:
            result = self._client.table("daily_progress") \
                .select(DAILY_PROGRESS_COLUMNS) \
                .eq("user_id", user_id) \
                .eq("date", date) \
                .limit(1) \
                .execute()
        except Exception as e:
            logger.exception(f"Error fetching daily progress for {user_id} on {date}")
            raise PersistenceError("Failed to fetch daily progress") from e

        return _to_model(result.data[0]) if result.data else None

    def get_latest_daily_progress(self, user_id: str) -> Optional[DailyProgress]:
        try:
            result = self._client.table("daily_progress") \
                .select(DAILY_PROGRESS_COLUMNS) \
                .eq("user_id", user_id) \
                .order("date", desc=True) \
                .limit(1) \
                .execute()
        except Exception as e:
            logger.exception(f"Error fetching latest daily progress for {user_id}")
            raise PersistenceError("Failed to fetch daily progress") from e

        return _to_model(result.data[0]) if result.data else None

    def insert_daily_progress(self, row: DailyProgress) -> DailyProgress:
        try:
            result = self._client.table("daily_progress") \
                .insert(row.model_dump()) \
                .execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise DuplicateDailyProgressError(row.user_id, row.date) from e
            logger.exception(f"Error inserting daily progress for {row.user_id}")
            raise PersistenceError("Failed to insert daily progress") from e
        except Exception as e:
            logger.exception(f"Error inserting daily progress for {row.user_id}")
            raise PersistenceError("Failed to insert daily progress") from e

        return _to_model(result.data[0]) if result.data else row

    def update_daily_progress(
        self,
        user_id: str,
        date: str,
        fields: Dict[str, Any],
        *,
        expected: Optional[Dict[str, Any]] = None,
    ) -> Optional[DailyProgress]:
        try:
            query = self._client.table("daily_progress") \
                .update(fields) \
                .eq("user_id", user_id) \
                .eq("date", date)
            result = apply_expected(query, expected).execute()
        except Exception as e:
            logger.exception(f"Error updating daily progress for {user_id} on {date}")
            raise PersistenceError("Failed to update daily progress") from e

        return _to_model(result.data[0]) if result.data else None
