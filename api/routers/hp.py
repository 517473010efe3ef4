"""
HP regeneration router.

Exposes the authenticated user's passive HP regeneration state:
- Reading the current HP (after a catch-up tick)
- Overwriting HP from gameplay, e.g. after battle damage
- Reporting route changes so dungeon pages stop regeneration
"""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, model_validator

from api.deps import get_hp_regen_service
from application.ports import HpRegenState
from backend.core.hp_regen import HpRegenService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/hp",
    tags=["HP"],
)


class HpStateResponse(BaseModel):
    hp: float
    max_hp: float
    last_regen_ms: int
    route: str
    regenerating: bool


class SetHpRequest(BaseModel):
    hp: float = Field(..., ge=0)
    max_hp: float = Field(..., ge=0)

    @model_validator(mode="after")
    def hp_within_max(self) -> "SetHpRequest":
        if self.hp > self.max_hp:
            raise ValueError("hp must not exceed max_hp")
        return self


class NavigationRequest(BaseModel):
    route: str = Field(..., min_length=1)


def _response(service: HpRegenService, state: HpRegenState) -> HpStateResponse:
    return HpStateResponse(
        hp=state.hp,
        max_hp=state.max_hp,
        last_regen_ms=state.last_regen_ms,
        route=service.current_route,
        regenerating=not service.is_exempt_route() and state.hp < state.max_hp,
    )


@router.get("", response_model=HpStateResponse)
def get_hp(
    service: HpRegenService = Depends(get_hp_regen_service),
) -> HpStateResponse:
    """Tick once and return the current HP."""
    return _response(service, service.tick())


@router.put("", response_model=HpStateResponse)
def set_hp(
    request: SetHpRequest,
    service: HpRegenService = Depends(get_hp_regen_service),
) -> HpStateResponse:
    """Overwrite HP and restart the regen clock at now."""
    return _response(service, service.set_player_state(request.hp, request.max_hp))


@router.post("/navigation", response_model=HpStateResponse)
def navigate(
    request: NavigationRequest,
    service: HpRegenService = Depends(get_hp_regen_service),
) -> HpStateResponse:
    """Record the host's current route and tick."""
    return _response(service, service.on_navigation(request.route))
