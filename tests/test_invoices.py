"""
Invoice service tests
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from servicedesk.exceptions import NotFoundError, ValidationError
from servicedesk.models.api import InvoiceCreate, InvoiceUpdate, ProjectCreate
from servicedesk.models.domain import LifecycleStatus, PaymentTerms
from servicedesk.services.events import ReferencesPopulated, references_populated


@pytest.fixture
def project(container, head):
    return container.projects.create(ProjectCreate.model_validate({"clientName": "Acme"}), head.id).project


def invoice_payload(project, **fields) -> InvoiceCreate:
    body = {"project": str(project.id)}
    body.update(fields)
    return InvoiceCreate.model_validate(body)


class TestCreateInvoice:

    def test_project_required(self, container, head):
        with pytest.raises(ValidationError, match="Project is required"):
            container.invoices.create(InvoiceCreate(), head.id)

    def test_unknown_project(self, container, head):
        with pytest.raises(NotFoundError):
            container.invoices.create(InvoiceCreate(project=uuid4()), head.id)

    def test_defaults(self, container, head, project):
        invoice = container.invoices.create(invoice_payload(project), head.id)
        assert invoice.amount == "0"
        assert invoice.payment_terms == PaymentTerms.CASH
        assert invoice.invoice_date is None
        assert invoice.status == LifecycleStatus.PENDING

    def test_reference_sets_invoice_date(self, container, head, project, clock):
        invoice = container.invoices.create(
            invoice_payload(project, invoiceReference="INV-1", amount="1500"), head.id
        )
        assert invoice.invoice_date == clock.now
        assert invoice.amount == "1500"

    def test_admins_notified(self, container, head, admin, project, push_client):
        push_client.reset_mock()
        container.invoices.create(invoice_payload(project, amount="250"), head.id)
        _tokens, title, _body, data = push_client.send.call_args[0]
        assert title == "💰 New Invoice Created"
        assert data["type"] == "invoice_created"
        assert data["clientName"] == "Acme"


class TestUpdateInvoice:

    def test_reference_update_stamps_date(self, container, head, project, clock):
        invoice = container.invoices.create(invoice_payload(project), head.id)
        clock.advance(days=2)

        updated = container.invoices.update(invoice.id, InvoiceUpdate.model_validate({"invoiceReference": "INV-9"}))
        assert updated.invoice_date == clock.now

        updated = container.invoices.update(invoice.id, InvoiceUpdate.model_validate({"amount": "900"}))
        assert updated.invoice_date == clock.now
        assert updated.invoice_reference == "INV-9"

        updated = container.invoices.update(invoice.id, InvoiceUpdate.model_validate({"invoiceReference": ""}))
        assert updated.invoice_date is None

    def test_status_can_be_set(self, container, head, project):
        invoice = container.invoices.create(invoice_payload(project), head.id)
        updated = container.invoices.update(invoice.id, InvoiceUpdate.model_validate({"status": "Completed"}))
        assert updated.status == LifecycleStatus.COMPLETED


class TestInvoiceReads:

    def test_overdue_excludes_completed_and_cancelled(self, container, head, project, clock):
        past = (clock.now - timedelta(days=3)).isoformat()
        future = (clock.now + timedelta(days=3)).isoformat()
        overdue = container.invoices.create(invoice_payload(project, dueDate=past), head.id)
        paid = container.invoices.create(invoice_payload(project, dueDate=past, status="Completed"), head.id)
        cancelled = container.invoices.create(invoice_payload(project, dueDate=past), head.id)
        container.invoices.create(invoice_payload(project, dueDate=future), head.id)
        container.invoices.delete(cancelled.id)

        found = container.invoices.list_overdue()

        assert [i.id for i in found] == [overdue.id]
        assert paid.id not in [i.id for i in found]

    def test_filters_exclude_cancelled(self, container, head, project):
        kept = container.invoices.create(invoice_payload(project, paymentTerms="Credit"), head.id)
        dropped = container.invoices.create(invoice_payload(project, paymentTerms="Credit"), head.id)
        container.invoices.delete(dropped.id)

        assert [i.id for i in container.invoices.list_by_payment_terms(PaymentTerms.CREDIT)] == [kept.id]
        assert [i.id for i in container.invoices.list_for_project(project.id)] == [kept.id]
        assert [i.id for i in container.invoices.list()] == [kept.id]
        assert container.invoices.list_by_status(LifecycleStatus.CANCELLED) == []


class TestInvoiceProvisioner:

    def test_ignores_events_from_other_senders(self, container, repos, head, project):
        references_populated.send(object(), event=ReferencesPopulated(project.id, head.id))

        assert repos.invoices.find() == []

    def test_auto_created_notification(self, container, head, admin, project, push_client):
        push_client.reset_mock()
        container.invoices.create_for_project(project.id, head.id)
        _tokens, title, body, data = push_client.send.call_args[0]
        assert title == "💰 Invoice Auto-Created"
        assert "Acme" in body
        assert data["projectId"] == str(project.id)
