"""
API routers, mounted under /api by servicedesk.main.
"""

from .complaints import router as complaints_router
from .dashboard import router as dashboard_router
from .invoices import router as invoices_router
from .maintenance import router as maintenance_router
from .projects import router as projects_router
from .users import router as users_router

routers = [
    users_router,
    projects_router,
    complaints_router,
    invoices_router,
    dashboard_router,
    maintenance_router,
]

__all__ = ["routers"]
