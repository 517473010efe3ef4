"""
Router package for the Guild Progression API.

This package contains all API routers organized by domain:
- health: Health check endpoints
- progress: Level and stat breakdown, workout completion
- daily_quests: Daily quests, daily reset and streak freezes
- atrophy: Inactivity decay status
- hp: Passive HP regeneration state
"""

from api.routers.health import router as health_router
from api.routers.progress import router as progress_router
from api.routers.daily_quests import router as daily_quests_router
from api.routers.atrophy import router as atrophy_router
from api.routers.hp import router as hp_router

__all__ = [
    "health_router",
    "progress_router",
    "daily_quests_router",
    "atrophy_router",
    "hp_router",
]
