"""
Project service tests: status derivation on every mutation, invoice
provisioning through the ReferencesPopulated signal, assignment
notifications and soft delete.
"""

from unittest.mock import patch
from uuid import uuid4

import pytest

from servicedesk.exceptions import NotFoundError, ValidationError
from servicedesk.models.api import ProjectCreate, ProjectUpdate
from servicedesk.models.domain import ApprovalStatus, LifecycleStatus, PaymentTerms, Project, UserRole
from servicedesk.services.work_items import WorkItemService


def project_payload(**fields) -> ProjectCreate:
    body = {"clientName": "Acme Cooling"}
    body.update(fields)
    return ProjectCreate.model_validate(body)


def invoices_for(repos, project_id):
    return repos.invoices.find(fields={"project": project_id})


class TestCreateProject:

    def test_status_pending_without_refs_or_users(self, container, head):
        change = container.projects.create(project_payload(), head.id)
        assert change.project.status == LifecycleStatus.PENDING
        assert change.invoice is None

    def test_status_in_progress_with_users(self, container, head, make_user):
        worker = make_user()
        change = container.projects.create(project_payload(users=[str(worker.id)]), head.id)
        assert change.project.status == LifecycleStatus.IN_PROGRESS

    def test_client_name_required(self, container, head):
        with pytest.raises(ValidationError, match="Client name is required"):
            container.projects.create(ProjectCreate.model_validate({"clientName": "  "}), head.id)

    def test_jc_reference_creates_exactly_one_invoice(self, container, repos, head):
        change = container.projects.create(
            project_payload(jcReferences=[{"value": "JC-100", "isEdited": False}]), head.id
        )

        assert change.project.status == LifecycleStatus.COMPLETED
        assert change.invoice is not None
        assert change.invoice.amount == "0"
        assert change.invoice.payment_terms == PaymentTerms.CASH
        assert change.invoice.project == change.project.id
        assert change.invoice.created_by == head.id
        assert len(invoices_for(repos, change.project.id)) == 1

    def test_survey_date_set_when_photos_supplied(self, container, head):
        change = container.projects.create(project_payload(surveyPhotos=["a.jpg"]), head.id)
        assert change.project.survey_date is not None

        change = container.projects.create(project_payload(), head.id)
        assert change.project.survey_date is None

    def test_is_edited_flag_is_taken_from_request(self, container, head):
        change = container.projects.create(
            project_payload(po={"value": "PO-1", "isEdited": True}, quotation={"value": "Q-1"}),
            head.id,
        )
        assert change.project.po.is_edited is True
        assert change.project.quotation.is_edited is False

    def test_admins_notified(self, container, head, admin, push_client, mailer):
        container.projects.create(project_payload(), head.id)

        tokens, title, body, data = push_client.send.call_args[0]
        assert tokens == [admin.push_token]
        assert title == "📋 New Project Created"
        assert data["type"] == "project_created"
        assert mailer.send.call_args[0][0] == admin.email

    def test_notification_failure_does_not_fail_create(self, container, repos, head, admin, push_client, mailer):
        push_client.send.side_effect = RuntimeError("relay down")
        mailer.send.side_effect = RuntimeError("smtp down")

        change = container.projects.create(project_payload(), head.id)

        assert repos.projects.get(change.project.id) is not None
        assert change.project.client_name == "Acme Cooling"

    def test_invoice_failure_is_isolated(self, container, repos, head):
        with patch.object(container.invoices, "create_for_project", side_effect=RuntimeError("db down")):
            change = container.projects.create(
                project_payload(dcReferences=[{"value": "DC-1"}]), head.id
            )

        assert change.invoice is None
        assert repos.projects.get(change.project.id).status == LifecycleStatus.COMPLETED
        assert invoices_for(repos, change.project.id) == []


class TestUpdateProject:

    def test_first_reference_creates_one_invoice_and_repeat_creates_none(self, container, repos, head):
        project = container.projects.create(project_payload(), head.id).project
        update = ProjectUpdate.model_validate({"dcReferences": [{"value": "DC-1"}]})

        first = container.projects.update(project.id, update, head.id)
        second = container.projects.update(project.id, update, head.id)

        assert first.invoice is not None
        assert second.invoice is None
        assert len(invoices_for(repos, project.id)) == 1
        assert first.project.status == LifecycleStatus.COMPLETED

    def test_existing_invoice_prevents_provisioning(self, container, repos, head):
        project = container.projects.create(project_payload(), head.id).project
        container.invoices.create_for_project(project.id, head.id)

        change = container.projects.update(
            project.id, ProjectUpdate.model_validate({"jcReferences": [{"value": "JC-7"}]}), head.id
        )

        assert change.invoice is None
        assert len(invoices_for(repos, project.id)) == 1

    def test_clearing_and_readding_refs_does_not_duplicate(self, container, repos, head):
        project = container.projects.create(
            project_payload(jcReferences=[{"value": "JC-1"}]), head.id
        ).project

        container.projects.update(project.id, ProjectUpdate.model_validate({"jcReferences": []}), head.id)
        change = container.projects.update(
            project.id, ProjectUpdate.model_validate({"jcReferences": [{"value": "JC-2"}]}), head.id
        )

        assert change.invoice is None
        assert len(invoices_for(repos, project.id)) == 1

    def test_omitted_fields_keep_stored_values(self, container, head, make_user):
        worker = make_user()
        project = container.projects.create(project_payload(users=[str(worker.id)]), head.id).project

        change = container.projects.update(
            project.id, ProjectUpdate.model_validate({"description": "Second floor"}), head.id
        )

        assert change.project.users == [worker.id]
        assert change.project.description == "Second floor"
        assert change.project.status == LifecycleStatus.IN_PROGRESS

    def test_client_status_is_ignored(self, container, head):
        project = container.projects.create(project_payload(), head.id).project
        change = container.projects.update(
            project.id, ProjectUpdate.model_validate({"status": "Completed"}), head.id
        )
        assert change.project.status == LifecycleStatus.PENDING

    def test_editable_field_keeps_creation_time(self, container, head):
        project = container.projects.create(project_payload(po={"value": "PO-1"}), head.id).project
        change = container.projects.update(
            project.id, ProjectUpdate.model_validate({"po": {"value": "PO-2", "isEdited": True}}), head.id
        )
        assert change.project.po.value == "PO-2"
        assert change.project.po.is_edited is True
        assert change.project.po.created_at == project.po.created_at

    def test_missing_project(self, container, head):
        with pytest.raises(NotFoundError, match="Project not found"):
            container.projects.update(uuid4(), ProjectUpdate(), head.id)


class TestAssignUsers:

    def test_union_and_only_new_users_notified(self, container, head, make_user, push_client):
        first = make_user(push_token="tok-1")
        second = make_user(push_token="tok-2")
        project = container.projects.create(project_payload(users=[str(first.id)]), head.id).project
        push_client.reset_mock()

        assigned = container.projects.assign_users(project.id, [first.id, second.id])

        assert assigned.users == [first.id, second.id]
        assert assigned.status == LifecycleStatus.IN_PROGRESS
        tokens, title, _body, data = push_client.send.call_args[0]
        assert tokens == ["tok-2"]
        assert title == "📋 New Project Assignment"
        assert data["type"] == "project_assigned"

    def test_unapproved_users_are_not_notified(self, container, head, make_user, push_client):
        pending = make_user(status=ApprovalStatus.PENDING, push_token="tok-pending")
        project = container.projects.create(project_payload(), head.id).project
        push_client.reset_mock()

        container.projects.assign_users(project.id, [pending.id])

        push_client.send.assert_not_called()

    def test_user_ids_required(self, container, head):
        project = container.projects.create(project_payload(), head.id).project
        with pytest.raises(ValidationError, match="User IDs are required"):
            container.projects.assign_users(project.id, None)

    def test_assignment_keeps_completed_when_refs_present(self, container, head, make_user):
        worker = make_user()
        project = container.projects.create(
            project_payload(jcReferences=[{"value": "JC-1"}]), head.id
        ).project
        assigned = container.projects.assign_users(project.id, [worker.id])
        assert assigned.status == LifecycleStatus.COMPLETED


class TestDeleteProject:

    def test_soft_delete_hides_from_every_list(self, container, repos, head, make_user):
        worker = make_user()
        project = container.projects.create(project_payload(users=[str(worker.id)]), head.id).project

        container.projects.delete(project.id)

        assert repos.projects.get(project.id).status == LifecycleStatus.CANCELLED
        assert container.projects.list() == []
        assert container.projects.list_for_user(worker.id) == []
        assert container.projects.list_by_status(LifecycleStatus.CANCELLED) == []

    def test_lists_newest_first(self, container, head):
        first = container.projects.create(project_payload(clientName="First"), head.id).project
        second = container.projects.create(project_payload(clientName="Second"), head.id).project

        assert [p.id for p in container.projects.list()] == [second.id, first.id]


def test_role_ranks_are_ordered():
    assert UserRole.USER.rank < UserRole.HEAD.rank < UserRole.ADMIN.rank < UserRole.DIRECTOR.rank


def test_work_item_type_must_supply_assignment_notice(repos, container):
    class Untitled(WorkItemService[Project]):
        pass

    with pytest.raises(TypeError):
        Untitled(repos.projects, repos.users, container.notifications)
