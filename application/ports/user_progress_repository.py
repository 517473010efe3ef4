"""
User Progress Repository Interface (Port).

This module defines the abstract interface for reading and atomically
updating the progression fields of a user row (level, experience, stats,
streak and streak freezes).
"""
from typing import Protocol, Optional, List, Dict, Any

from domain.models import UserProgress


class UserProgressRepository(Protocol):
    """
    Abstract interface for user progression data access.

    All mutations are scoped to a single user row. The compare-and-set form
    of `update_user` is the only atomicity primitive the engine relies on;
    no cross-user locking is ever required.
    """

    def get_user(self, user_id: str) -> Optional[UserProgress]:
        """
        Get the progression fields of a user.

        Args:
            user_id: User ID

        Returns:
            UserProgress, or None if the user does not exist
        """
        ...

    def update_user(
        self,
        user_id: str,
        fields: Dict[str, Any],
        *,
        expected: Optional[Dict[str, Any]] = None,
    ) -> Optional[UserProgress]:
        """
        Atomically apply a partial update to one user row.

        When `expected` is given the update is applied only if every column
        in it still holds the expected value (compare-and-set). This is how
        streak freezes are decremented without double-spending under
        concurrent requests.

        Args:
            user_id: User ID
            fields: Column values to write
            expected: Column values that must match for the write to apply

        Returns:
            The updated UserProgress, or None if the user does not exist or
            the `expected` guard did not match
        """
        ...

    def list_inactive_users(self, before_date: str, today: str) -> List[UserProgress]:
        """
        List users eligible for atrophy.

        Args:
            before_date: Users whose last_activity_date is strictly before
                this date (YYYY-MM-DD) are inactive
            today: Users whose atrophy_immunity_until is on or after this date
                are excluded

        Returns:
            Inactive, non-immune users
        """
        ...
