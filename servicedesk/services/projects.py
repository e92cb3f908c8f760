"""
Project Service

Creates and updates projects, keeps their status derived from JC/DC
references and assignments, and announces when a project first receives
a reference so an invoice can be provisioned for it.
"""

import logging
from typing import Any, List, NamedTuple, Optional
from uuid import UUID

from servicedesk.exceptions import ValidationError
from servicedesk.models.api import ProjectCreate, ProjectUpdate
from servicedesk.models.domain import Invoice, Project, utcnow
from servicedesk.services import email_templates
from servicedesk.services.events import ReferencesPopulated, references_populated
from servicedesk.services.status_rules import derive_reference_status, has_references
from servicedesk.services.work_items import (
    WorkItemService,
    to_editable_field,
    to_editable_list,
    unique_ids,
)

logger = logging.getLogger(__name__)


class ProjectChange(NamedTuple):
    """A stored project plus the invoice provisioned alongside it, if any"""

    project: Project
    invoice: Optional[Invoice] = None


class ProjectService(WorkItemService[Project]):
    """Project lifecycle: create, update, assign, soft delete"""

    noun = "Project"

    def create(self, payload: ProjectCreate, actor_id: UUID) -> ProjectChange:
        """
        Create a project with a derived status.

        When the project starts with JC/DC references an invoice is
        provisioned synchronously; failure to do so is logged and the
        project is still returned.
        """
        if not (payload.client_name or "").strip():
            raise ValidationError("Client name is required")

        project = Project(
            client_name=payload.client_name.strip(),
            description=payload.description or "",
            po=to_editable_field(payload.po),
            quotation=to_editable_field(payload.quotation),
            remarks=to_editable_field(payload.remarks),
            survey_date=utcnow() if payload.survey_photos else None,
            survey_photos=payload.survey_photos or [],
            jc_references=to_editable_list(payload.jc_references),
            dc_references=to_editable_list(payload.dc_references),
            users=unique_ids(payload.users or []),
            due_date=payload.due_date,
            created_by=actor_id,
        )
        project.status = derive_reference_status(project.jc_references, project.dc_references, project.users)
        project = self.repository.insert(project)
        logger.info(f"Created project {project.id} for '{project.client_name}' with status {project.status.value}")

        invoice = None
        if has_references(project):
            invoice = self._publish_references_populated(project, actor_id)

        self._notify_created(project, actor_id)
        return ProjectChange(project, invoice)

    def update(self, project_id: UUID, payload: ProjectUpdate, actor_id: UUID) -> ProjectChange:
        """
        Partially update a project and re-derive its status from the merged
        values. An update that gives a reference-less project its first
        JC/DC reference provisions an invoice.
        """
        project = self.get(project_id)
        had_references = has_references(project)

        self._merge(project, payload)
        saved = self._save(project)

        invoice = None
        if not had_references and has_references(saved):
            invoice = self._publish_references_populated(saved, actor_id)

        return ProjectChange(saved, invoice)

    def _publish_references_populated(self, project: Project, actor_id: UUID) -> Optional[Invoice]:
        event = ReferencesPopulated(project_id=project.id, actor_id=actor_id)
        try:
            responses = references_populated.send(self, event=event)
        except Exception as e:
            logger.error(f"Failed to create invoice for project {project.id}: {e}")
            return None

        for _receiver, result in responses:
            if isinstance(result, Invoice):
                return result
        return None

    def _notify_created(self, project: Project, actor_id: UUID) -> None:
        try:
            creator = self._creator(actor_id)
            brand = self.settings.MAIL_BRAND
            self.notifications.notify_roles(
                subject=f"New Project Created - {brand}",
                html=email_templates.project_created(brand, project, creator),
                push_title="📋 New Project Created",
                push_body=f"{creator.name if creator else 'Someone'} created a new project for {project.client_name}.",
                push_data={
                    "type": "project_created",
                    "projectId": str(project.id),
                    "clientName": project.client_name,
                },
            )
        except Exception as e:
            logger.error(f"Failed to send project creation notification: {e}")

    def _notify_assigned(self, project: Project, user_ids: List[UUID]) -> None:
        self.notifications.notify_users(
            user_ids,
            "📋 New Project Assignment",
            f"You've been assigned to project: {project.client_name}",
            {
                "type": "project_assigned",
                "projectId": str(project.id),
                "clientName": project.client_name,
            },
        )
