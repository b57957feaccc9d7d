"""
Routers Package
"""

from signage.routers.content_slots import router as content_slots_router
from signage.routers.display_auth import router as display_auth_router
from signage.routers.displays import router as displays_router
from signage.routers.live import router as live_router
from signage.routers.views import router as views_router

__all__ = [
    "content_slots_router",
    "display_auth_router",
    "displays_router",
    "live_router",
    "views_router",
]
