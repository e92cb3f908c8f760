"""
Invoice Service

Manual invoice management plus the provisioning handler that raises a
zero-amount invoice when a project first receives a JC/DC reference.
"""

import logging
from typing import Any, Callable, List, Optional
from uuid import UUID

from servicedesk.exceptions import NotFoundError, ValidationError
from servicedesk.models.api import InvoiceCreate, InvoiceUpdate
from servicedesk.models.domain import (
    Invoice,
    LifecycleStatus,
    PaymentTerms,
    Project,
    utcnow,
)
from servicedesk.services import email_templates
from servicedesk.services.events import ReferencesPopulated, references_populated
from servicedesk.services.notifications import NotificationGateway
from servicedesk.services.repositories import InvoiceRepository, ProjectRepository, UserRepository
from servicedesk.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


class InvoiceService:
    """Create, read, update and soft-delete invoices"""

    def __init__(
        self,
        repository: InvoiceRepository,
        projects: ProjectRepository,
        users: UserRepository,
        notifications: NotificationGateway,
        settings: Optional[Settings] = None,
        clock: Callable = utcnow,
    ):
        self.repository = repository
        self.projects = projects
        self.users = users
        self.notifications = notifications
        self.settings = settings or get_settings()
        self.clock = clock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list(self) -> List[Invoice]:
        return self.repository.find(exclude_cancelled=True)

    def list_by_status(self, status: LifecycleStatus) -> List[Invoice]:
        return self.repository.find(status=status, exclude_cancelled=True)

    def list_by_payment_terms(self, terms: PaymentTerms) -> List[Invoice]:
        return self.repository.find(fields={"payment_terms": terms}, exclude_cancelled=True)

    def list_for_project(self, project_id: UUID) -> List[Invoice]:
        return self.repository.find(fields={"project": project_id}, exclude_cancelled=True)

    def list_overdue(self) -> List[Invoice]:
        return self.repository.find_overdue(self.clock())

    def get(self, invoice_id: UUID) -> Invoice:
        invoice = self.repository.get(invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice not found")
        return invoice

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, payload: InvoiceCreate, actor_id: UUID) -> Invoice:
        if payload.project is None:
            raise ValidationError("Project is required")
        project = self.projects.get(payload.project)
        if project is None:
            raise NotFoundError("Project not found")

        reference = (payload.invoice_reference or "").strip()
        invoice = Invoice(
            invoice_reference=reference,
            invoice_date=self.clock() if reference else None,
            amount=(payload.amount or "0").strip() or "0",
            payment_terms=payload.payment_terms or PaymentTerms.CASH,
            credit_days=(payload.credit_days or "").strip(),
            due_date=payload.due_date,
            project=project.id,
            status=payload.status or LifecycleStatus.PENDING,
            created_by=actor_id,
        )
        invoice = self.repository.insert(invoice)
        logger.info(f"Created invoice {invoice.id} for project {project.id}")

        self._notify_created(invoice, actor_id, project)
        return invoice

    def create_for_project(self, project_id: UUID, actor_id: UUID) -> Invoice:
        """
        Provision the default invoice for a project: amount "0", Cash terms.

        Raises whatever the store raises; the caller decides how to isolate it.
        """
        invoice = Invoice(
            amount="0",
            payment_terms=PaymentTerms.CASH,
            project=project_id,
            created_by=actor_id,
        )
        invoice = self.repository.insert(invoice)
        logger.info(f"Auto-created invoice {invoice.id} for project {project_id}")

        try:
            project = self.projects.get(project_id)
            client = project.client_name if project else "Unknown Client"
            brand = self.settings.MAIL_BRAND
            self.notifications.notify_roles(
                subject=f"Invoice Auto-Created - {brand}",
                html=email_templates.invoice_auto_created(brand, invoice, project),
                push_title="💰 Invoice Auto-Created",
                push_body=f"An invoice was automatically created for project: {client}",
                push_data={
                    "type": "invoice_created",
                    "invoiceId": str(invoice.id),
                    "projectId": str(project_id),
                    "clientName": client,
                },
            )
        except Exception as e:
            logger.error(f"Failed to send invoice creation notification: {e}")

        return invoice

    def update(self, invoice_id: UUID, payload: InvoiceUpdate) -> Invoice:
        """
        Partially update an invoice.

        Sending ``invoiceReference`` also stamps ``invoiceDate`` (now for a
        non-empty reference, cleared for an empty one).
        """
        invoice = self.get(invoice_id)
        fields = payload.model_fields_set

        if "invoice_reference" in fields:
            reference = (payload.invoice_reference or "").strip()
            invoice.invoice_reference = reference
            invoice.invoice_date = self.clock() if reference else None
        if "amount" in fields and payload.amount is not None:
            invoice.amount = payload.amount.strip() or "0"
        if "payment_terms" in fields and payload.payment_terms is not None:
            invoice.payment_terms = payload.payment_terms
        if "credit_days" in fields:
            invoice.credit_days = (payload.credit_days or "").strip()
        if "due_date" in fields:
            invoice.due_date = payload.due_date
        if "status" in fields and payload.status is not None:
            invoice.status = payload.status
        if "project" in fields and payload.project is not None:
            if self.projects.get(payload.project) is None:
                raise NotFoundError("Project not found")
            invoice.project = payload.project

        saved = self.repository.save(invoice)
        if saved is None:
            raise NotFoundError("Invoice not found")
        return saved

    def delete(self, invoice_id: UUID) -> Invoice:
        invoice = self.get(invoice_id)
        invoice.status = LifecycleStatus.CANCELLED
        return self.repository.save(invoice)

    def _notify_created(self, invoice: Invoice, actor_id: UUID, project: Optional[Project]) -> None:
        try:
            creator = self.users.get(actor_id)
            brand = self.settings.MAIL_BRAND
            suffix = f" ({project.client_name})" if project else ""
            self.notifications.notify_roles(
                subject=f"New Invoice Created - {brand}",
                html=email_templates.invoice_created(brand, invoice, creator, project),
                push_title="💰 New Invoice Created",
                push_body=f"{creator.name if creator else 'Someone'} created an invoice for {invoice.amount}{suffix}.",
                push_data={
                    "type": "invoice_created",
                    "invoiceId": str(invoice.id),
                    "amount": invoice.amount,
                    "clientName": project.client_name if project else "Unknown",
                },
            )
        except Exception as e:
            logger.error(f"Failed to send invoice creation notification: {e}")


class InvoiceProvisioner:
    """
    Handles ReferencesPopulated by creating the project's first invoice.

    The existence check and the insert are separate statements, so two
    concurrent updates of the same project can still both create one.
    """

    def __init__(self, invoices: InvoiceService):
        self.invoices = invoices

    def subscribe(self, sender: Any) -> None:
        """Listen for ReferencesPopulated sent by ``sender`` only"""
        references_populated.connect(self.handle, sender=sender, weak=False)

    def unsubscribe(self, sender: Any) -> None:
        references_populated.disconnect(self.handle, sender=sender)

    def handle(self, sender: Any, event: ReferencesPopulated) -> Optional[Invoice]:
        existing = self.invoices.repository.find_one(project=event.project_id)
        if existing is not None:
            logger.info(f"Project {event.project_id} already has invoice {existing.id}; not creating another")
            return None
        return self.invoices.create_for_project(event.project_id, event.actor_id)
