"""
Complaint endpoints (/api/complaints)
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
from servicedesk.models.api import AssignUsersRequest, ComplaintCreate, ComplaintUpdate
from servicedesk.models.domain import LifecycleStatus, Priority, User
from servicedesk.services.container import ServiceContainer

router = APIRouter(prefix="/complaints", tags=["complaints"])


@router.get("", dependencies=[Depends(current_identity)])
def list_complaints(services: ServiceContainer = Depends(get_services)):
    return services.populator.many(services.complaints.list())


@router.get("/user")
def list_my_complaints(
    user_id: UUID = Depends(current_user_id),
    services: ServiceContainer = Depends(get_services),
):
    return services.populator.many(services.complaints.list_for_user(user_id))


@router.get("/status/{status}", dependencies=[Depends(current_identity)])
def list_complaints_by_status(status: LifecycleStatus, services: ServiceContainer = Depends(get_services)):
    return services.populator.many(services.complaints.list_by_status(status))


@router.get("/priority/{priority}", dependencies=[Depends(current_identity)])
def list_complaints_by_priority(priority: Priority, services: ServiceContainer = Depends(get_services)):
    return services.populator.many(services.complaints.list_by_priority(priority))


@router.get("/{complaint_id}", dependencies=[Depends(current_identity)])
def get_complaint(complaint_id: UUID, services: ServiceContainer = Depends(get_services)):
    return services.populator.one(services.complaints.get(complaint_id))


@router.post("", status_code=201)
def create_complaint(
    payload: ComplaintCreate,
    user: User = Depends(require_head),
    services: ServiceContainer = Depends(get_services),
):
    complaint = services.complaints.create(payload, user.id)
    return {
        "message": "Complaint created successfully",
        "complaint": services.populator.one(complaint),
    }


@router.post("/{complaint_id}/assign-users", dependencies=[Depends(require_admin)])
def assign_complaint_users(
    complaint_id: UUID,
    payload: Optional[AssignUsersRequest] = Body(default=None),
    services: ServiceContainer = Depends(get_services),
):
    complaint = services.complaints.assign_users(complaint_id, payload.user_ids if payload else None)
    return {
        "message": "Users assigned to complaint successfully",
        "complaint": services.populator.one(complaint),
    }


@router.put("/{complaint_id}", dependencies=[Depends(current_identity)])
def update_complaint(
    complaint_id: UUID,
    payload: ComplaintUpdate,
    services: ServiceContainer = Depends(get_services),
):
    complaint = services.complaints.update(complaint_id, payload)
    return {
        "message": "Complaint updated successfully",
        "complaint": services.populator.one(complaint),
    }


@router.delete("/{complaint_id}", dependencies=[Depends(require_admin)])
def delete_complaint(complaint_id: UUID, services: ServiceContainer = Depends(get_services)):
    services.complaints.delete(complaint_id)
    return {"message": "Complaint deleted successfully"}
