"""
Maintenance endpoints (/api/maintenances)
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends

from servicedesk.dependencies import (
    current_identity,
    current_user_id,
    get_services,
    require_admin,
    require_head,
)
from servicedesk.models.api import AssignUsersRequest, MaintenanceCreate, MaintenanceUpdate
from servicedesk.models.domain import LifecycleStatus, User
from servicedesk.services.container import ServiceContainer

router = APIRouter(prefix="/maintenances", tags=["maintenances"])


@router.get("/user")
def list_my_maintenances(
    user_id: UUID = Depends(current_user_id),
    services: ServiceContainer = Depends(get_services),
):
    return services.populator.many(services.maintenance.list_for_user(user_id))


@router.get("/upcoming", dependencies=[Depends(current_identity)])
def list_upcoming_maintenances(services: ServiceContainer = Depends(get_services)):
    return services.populator.many(services.maintenance.list_upcoming())


@router.get("/status/{status}", dependencies=[Depends(current_identity)])
def list_maintenances_by_status(status: LifecycleStatus, services: ServiceContainer = Depends(get_services)):
    return services.populator.many(services.maintenance.list_by_status(status))


@router.get("", dependencies=[Depends(require_head)])
def list_maintenances(services: ServiceContainer = Depends(get_services)):
    return services.populator.many(services.maintenance.list())


@router.post("", status_code=201)
def create_maintenance(
    payload: MaintenanceCreate,
    user: User = Depends(require_head),
    services: ServiceContainer = Depends(get_services),
):
    maintenance = services.maintenance.create(payload, user.id)
    return {
        "message": "Maintenance created successfully",
        "maintenance": services.populator.one(maintenance),
    }


@router.get("/{maintenance_id}", dependencies=[Depends(current_identity)])
def get_maintenance(maintenance_id: UUID, services: ServiceContainer = Depends(get_services)):
    return services.populator.one(services.maintenance.get(maintenance_id))


@router.put("/{maintenance_id}", dependencies=[Depends(current_identity)])
def update_maintenance(
    maintenance_id: UUID,
    payload: MaintenanceUpdate,
    services: ServiceContainer = Depends(get_services),
):
    maintenance = services.maintenance.update(maintenance_id, payload)
    return {
        "message": "Maintenance updated successfully",
        "maintenance": services.populator.one(maintenance),
    }


@router.delete("/{maintenance_id}", dependencies=[Depends(require_admin)])
def delete_maintenance(maintenance_id: UUID, services: ServiceContainer = Depends(get_services)):
    services.maintenance.delete(maintenance_id)
    return {"message": "Maintenance deleted successfully"}


@router.post("/{maintenance_id}/assign-users", dependencies=[Depends(require_head)])
def assign_maintenance_users(
    maintenance_id: UUID,
    payload: Optional[AssignUsersRequest] = Body(default=None),
    services: ServiceContainer = Depends(get_services),
):
    maintenance = services.maintenance.assign_users(maintenance_id, payload.user_ids if payload else None)
    return {
        "message": "Users assigned successfully",
        "maintenance": services.populator.one(maintenance),
    }
