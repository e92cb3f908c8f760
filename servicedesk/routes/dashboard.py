"""
Dashboard endpoints (/api/dashboard)
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from servicedesk.dependencies import current_user_id, get_services, require_head
from servicedesk.services.container import ServiceContainer

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", dependencies=[Depends(require_head)])
def company_dashboard(services: ServiceContainer = Depends(get_services)):
    return services.dashboard.overview()


@router.get("/user")
def user_dashboard(
    user_id: UUID = Depends(current_user_id),
    services: ServiceContainer = Depends(get_services),
):
    return services.dashboard.for_user(user_id)
