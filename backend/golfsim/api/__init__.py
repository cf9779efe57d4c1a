from .auth import router as auth_router
from .sessions import router as sessions_router
from .bays import router as bays_router

__all__ = ["auth_router", "sessions_router", "bays_router"]
