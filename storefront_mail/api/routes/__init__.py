"""
API routes module.
"""

from storefront_mail.api.routes.health import router as health_router
from storefront_mail.api.routes.status import router as status_router

__all__ = ["health_router", "status_router"]
