"""
Complaint Service

Complaints follow the project status rule (references, then assignees)
but never provision invoices.
"""

import logging
from typing import List
from uuid import UUID

from servicedesk.exceptions import ValidationError
from servicedesk.models.api import ComplaintCreate, ComplaintUpdate
from servicedesk.models.domain import Complaint, Priority
from servicedesk.services import email_templates
from servicedesk.services.status_rules import derive_reference_status
from servicedesk.services.work_items import (
    WorkItemService,
    to_editable_field,
    to_editable_list,
    unique_ids,
)

logger = logging.getLogger(__name__)


class ComplaintService(WorkItemService[Complaint]):
    noun = "Complaint"

    def list_by_priority(self, priority: Priority) -> List[Complaint]:
        return self.repository.find(fields={"priority": priority}, exclude_cancelled=True)

    def create(self, payload: ComplaintCreate, actor_id: UUID) -> Complaint:
        if not (payload.client_name or "").strip():
            raise ValidationError("Client name is required")

        complaint = Complaint(
            complaint_reference=(payload.complaint_reference or "").strip(),
            client_name=payload.client_name.strip(),
            description=payload.description or "",
            po=to_editable_field(payload.po),
            quotation=to_editable_field(payload.quotation),
            remarks=to_editable_field(payload.remarks),
            visit_dates=payload.visit_dates or [],
            photos=payload.photos or [],
            priority=payload.priority or Priority.MEDIUM,
            jc_references=to_editable_list(payload.jc_references),
            dc_references=to_editable_list(payload.dc_references),
            users=unique_ids(payload.users or []),
            due_date=payload.due_date,
            created_by=actor_id,
        )
        complaint.status = derive_reference_status(
            complaint.jc_references, complaint.dc_references, complaint.users
        )
        complaint = self.repository.insert(complaint)
        logger.info(f"Created complaint {complaint.id} for '{complaint.client_name}'")

        self._notify_created(complaint, actor_id)
        return complaint

    def update(self, complaint_id: UUID, payload: ComplaintUpdate) -> Complaint:
        complaint = self.get(complaint_id)
        self._merge(complaint, payload)
        return self._save(complaint)

    def _notify_created(self, complaint: Complaint, actor_id: UUID) -> None:
        try:
            creator = self._creator(actor_id)
            brand = self.settings.MAIL_BRAND
            self.notifications.notify_roles(
                subject=f"New Complaint Created - {brand}",
                html=email_templates.complaint_created(brand, complaint, creator),
                push_title="⚠️ New Complaint Submitted",
                push_body=(
                    f"{creator.name if creator else 'Someone'} submitted a "
                    f"{complaint.priority.value.lower()} priority complaint for {complaint.client_name}."
                ),
                push_data={
                    "type": "complaint_created",
                    "complaintId": str(complaint.id),
                    "clientName": complaint.client_name,
                    "priority": complaint.priority.value,
                },
            )
        except Exception as e:
            logger.error(f"Failed to send complaint creation notification: {e}")

    def _notify_assigned(self, complaint: Complaint, user_ids: List[UUID]) -> None:
        self.notifications.notify_users(
            user_ids,
            "⚠️ New Complaint Assignment",
            f"You've been assigned to complaint: {complaint.client_name}",
            {
                "type": "complaint_assigned",
                "complaintId": str(complaint.id),
                "clientName": complaint.client_name,
                "priority": complaint.priority.value,
            },
        )
