"""
app/api/routers package marker.
"""

from app.api.routers.commanders import router as commanders_router
from app.api.routers.scraper_executions import router as scraper_executions_router

__all__ = [
    "commanders_router",
    "scraper_executions_router",
]
