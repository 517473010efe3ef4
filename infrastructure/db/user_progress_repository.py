"""
Supabase User Progress Repository Implementation.

This module implements the UserProgressRepository protocol using Supabase.
Reads and writes the progression columns of the `users` table.
"""
from typing import Optional, List, Dict, Any
import logging

from supabase import Client

from application.exceptions import PersistenceError
from domain.models import UserProgress

logger = logging.getLogger(__name__)

USER_COLUMNS = (
    "id, level, experience, strength, stamina, agility, "
    "strength_xp, stamina_xp, agility_xp, current_streak, last_activity_date, "
    "last_streak_date, streak_freeze_count, atrophy_immunity_until, timezone, "
    "body_weight_lbs"
)


def apply_expected(query, expected: Optional[Dict[str, Any]]):
    """Add equality guards for a compare-and-set update. None matches NULL."""
    for column, value in (expected or {}).items():
        if value is None:
            query = query.is_(column, "null")
        else:
            query = query.eq(column, value)
    return query


class SupabaseUserProgressRepository:
    """
    Supabase implementation of UserProgressRepository.

    Compare-and-set updates are a single UPDATE filtered on the id plus every
    expected column, so the guard and the write happen in one statement.
    """

    def __init__(self, client: Client):
        """
        Initialize with Supabase client.

        Args:
            client: Supabase client instance (injected)
        """
        self._client = client

    def get_user(self, user_id: str) -> Optional[UserProgress]:
        try:
            result = self._client.table("users") \
                .select(USER_COLUMNS) \
                .eq("id", user_id) \
                .limit(1) \
                .execute()
        except Exception as e:
            logger.exception(f"Error fetching user {user_id}")
            raise PersistenceError(f"Failed to fetch user {user_id}") from e

        if not result.data:
            return None
        return UserProgress.from_row(result.data[0])

    def update_user(
        self,
        user_id: str,
        fields: Dict[str, Any],
        *,
        expected: Optional[Dict[str, Any]] = None,
    ) -> Optional[UserProgress]:
        try:
            query = self._client.table("users").update(fields).eq("id", user_id)
            result = apply_expected(query, expected).execute()
        except Exception as e:
            logger.exception(f"Error updating user {user_id}")
            raise PersistenceError(f"Failed to update user {user_id}") from e

        if not result.data:
            if expected:
                logger.info(f"Compare-and-set on user {user_id} did not match")
            return None
        return UserProgress.from_row(result.data[0])

    def list_inactive_users(self, before_date: str, today: str) -> List[UserProgress]:
        try:
            result = self._client.table("users") \
                .select(USER_COLUMNS) \
                .lt("last_activity_date", before_date) \
                .or_(f"atrophy_immunity_until.is.null,atrophy_immunity_until.lt.{today}") \
                .execute()
        except Exception as e:
            logger.exception("Error listing inactive users")
            raise PersistenceError("Failed to list inactive users") from e

        return [UserProgress.from_row(row) for row in result.data or []]
