"""
Pathway API Routes

All API route modules.
"""

from pathway.api.routes.patients import router as patients_router
from pathway.api.routes.marketing_routes import router as routes_router
from pathway.api.routes.analytics import router as analytics_router
from pathway.api.routes.sync import router as sync_router

__all__ = [
    "patients_router",
    "routes_router",
    "analytics_router",
    "sync_router",
]
