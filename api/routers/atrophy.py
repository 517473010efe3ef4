"""
Atrophy router.

Reports whether the caller's stats are at risk of decaying from inactivity.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.deps import get_atrophy_service, get_current_user
from api.errors import to_http_exception
from application.exceptions import ProgressionError
from backend.core.atrophy import AtrophyService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/atrophy",
    tags=["Atrophy"],
)


class AtrophyStatusResponse(BaseModel):
    is_at_risk: bool
    days_inactive: int
    has_immunity: bool
    immunity_ends_on: Optional[str] = None


@router.get("/status", response_model=AtrophyStatusResponse)
def get_atrophy_status(
    user_id: str = Depends(get_current_user),
    atrophy: AtrophyService = Depends(get_atrophy_service),
) -> AtrophyStatusResponse:
    """Get the caller's inactivity and immunity status."""
    try:
        status = atrophy.get_user_atrophy_status(user_id)
    except ProgressionError as e:
        raise to_http_exception(e) from e

    return AtrophyStatusResponse(
        is_at_risk=status.is_at_risk,
        days_inactive=status.days_inactive,
        has_immunity=status.has_immunity,
        immunity_ends_on=status.immunity_ends_on,
    )
