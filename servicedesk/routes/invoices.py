"""
Invoice endpoints (/api/invoices)
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from servicedesk.dependencies import current_identity, get_services, require_admin, require_head
from servicedesk.models.api import InvoiceCreate, InvoiceUpdate
from servicedesk.models.domain import LifecycleStatus, PaymentTerms, User
from servicedesk.services.container import ServiceContainer

router = APIRouter(prefix="/invoices", tags=["invoices"], dependencies=[Depends(current_identity)])


@router.get("")
def list_invoices(services: ServiceContainer = Depends(get_services)):
    return services.populator.many(services.invoices.list())


@router.get("/overdue")
def list_overdue_invoices(services: ServiceContainer = Depends(get_services)):
    return services.populator.many(services.invoices.list_overdue())


@router.get("/status/{status}")
def list_invoices_by_status(status: LifecycleStatus, services: ServiceContainer = Depends(get_services)):
    return services.populator.many(services.invoices.list_by_status(status))


@router.get("/payment-terms/{payment_terms}")
def list_invoices_by_payment_terms(
    payment_terms: PaymentTerms,
    services: ServiceContainer = Depends(get_services),
):
    return services.populator.many(services.invoices.list_by_payment_terms(payment_terms))


@router.get("/project/{project_id}")
def list_project_invoices(project_id: UUID, services: ServiceContainer = Depends(get_services)):
    return services.populator.many(services.invoices.list_for_project(project_id))


@router.get("/{invoice_id}")
def get_invoice(invoice_id: UUID, services: ServiceContainer = Depends(get_services)):
    return services.populator.one(services.invoices.get(invoice_id))


@router.post("", status_code=201)
def create_invoice(
    payload: InvoiceCreate,
    user: User = Depends(require_head),
    services: ServiceContainer = Depends(get_services),
):
    invoice = services.invoices.create(payload, user.id)
    return {
        "message": "Invoice created successfully",
        "invoice": services.populator.one(invoice),
    }


@router.put("/{invoice_id}", dependencies=[Depends(require_head)])
def update_invoice(
    invoice_id: UUID,
    payload: InvoiceUpdate,
    services: ServiceContainer = Depends(get_services),
):
    invoice = services.invoices.update(invoice_id, payload)
    return {
        "message": "Invoice updated successfully",
        "invoice": services.populator.one(invoice),
    }


@router.delete("/{invoice_id}", dependencies=[Depends(require_admin)])
def delete_invoice(invoice_id: UUID, services: ServiceContainer = Depends(get_services)):
    services.invoices.delete(invoice_id)
    return {"message": "Invoice deleted successfully"}
