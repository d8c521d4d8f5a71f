"""Route modules."""

from .account import router as account_router
from .internal import router as internal_router
from .jobs import router as jobs_router
from .notifications import router as notifications_router

__all__ = ["account_router", "internal_router", "jobs_router", "notifications_router"]
