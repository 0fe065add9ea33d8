from waterlog.routers.auth import router as auth_router
from waterlog.routers.users import router as users_router
from waterlog.routers.rooms import router as rooms_router, overview_router
from waterlog.routers.archetypes import router as archetypes_router
from waterlog.routers.plants import router as plants_router
from waterlog.routers.events import router as events_router
from waterlog.routers.uploads import router as uploads_router

__all__ = [
    "auth_router", "users_router", "rooms_router", "overview_router",
    "archetypes_router", "plants_router", "events_router", "uploads_router",
]
