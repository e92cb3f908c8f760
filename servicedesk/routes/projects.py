"""
Project endpoints (/api/projects)
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
from servicedesk.models.api import AssignUsersRequest, ProjectCreate, ProjectUpdate
from servicedesk.models.domain import LifecycleStatus, User
from servicedesk.services.container import ServiceContainer
from servicedesk.services.projects import ProjectChange

router = APIRouter(prefix="/projects", tags=["projects"])


def _change_body(services: ServiceContainer, message: str, change: ProjectChange) -> dict:
    body = {"message": message, "project": services.populator.one(change.project)}
    if change.invoice is not None:
        body["invoice"] = services.populator.one(change.invoice)
    return body


@router.get("", dependencies=[Depends(current_identity)])
def list_projects(services: ServiceContainer = Depends(get_services)):
    return services.populator.many(services.projects.list())


@router.get("/user")
def list_my_projects(
    user_id: UUID = Depends(current_user_id),
    services: ServiceContainer = Depends(get_services),
):
    return services.populator.many(services.projects.list_for_user(user_id))


@router.get("/status/{status}", dependencies=[Depends(current_identity)])
def list_projects_by_status(status: LifecycleStatus, services: ServiceContainer = Depends(get_services)):
    return services.populator.many(services.projects.list_by_status(status))


@router.get("/{project_id}", dependencies=[Depends(current_identity)])
def get_project(project_id: UUID, services: ServiceContainer = Depends(get_services)):
    return services.populator.one(services.projects.get(project_id))


@router.post("", status_code=201)
def create_project(
    payload: ProjectCreate,
    user: User = Depends(require_head),
    services: ServiceContainer = Depends(get_services),
):
    change = services.projects.create(payload, user.id)
    return _change_body(services, "Project created successfully", change)


@router.post("/{project_id}/assign-users", dependencies=[Depends(require_head)])
def assign_project_users(
    project_id: UUID,
    payload: Optional[AssignUsersRequest] = Body(default=None),
    services: ServiceContainer = Depends(get_services),
):
    user_ids = payload.user_ids if payload else None
    project = services.projects.assign_users(project_id, user_ids)
    return {
        "message": "Users assigned to project successfully",
        "project": services.populator.one(project),
    }


@router.put("/{project_id}")
def update_project(
    project_id: UUID,
    payload: ProjectUpdate,
    user_id: UUID = Depends(current_user_id),
    services: ServiceContainer = Depends(get_services),
):
    change = services.projects.update(project_id, payload, user_id)
    return _change_body(services, "Project updated successfully", change)


@router.delete("/{project_id}", dependencies=[Depends(require_admin)])
def delete_project(project_id: UUID, services: ServiceContainer = Depends(get_services)):
    services.projects.delete(project_id)
    return {"message": "Project deleted successfully"}
