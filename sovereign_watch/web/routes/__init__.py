"""
Serving API routes.
"""

from sovereign_watch.web.metrics import router as metrics_router
from sovereign_watch.web.routes.cron_routes import router as cron_router
from sovereign_watch.web.routes.data_routes import router as data_router
from sovereign_watch.web.routes.health_routes import router as health_router

__all__ = ["cron_router", "data_router", "health_router", "metrics_router"]
