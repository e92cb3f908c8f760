"""
Dashboard and response population tests
"""

from servicedesk.models.api import ComplaintCreate, InvoiceCreate, MaintenanceCreate, ProjectCreate
from servicedesk.services.dashboard import RECENT_LIMIT
from servicedesk.services.populate import public_user


def new_project(container, actor, **fields):
    body = {"clientName": "Client"}
    body.update(fields)
    return container.projects.create(ProjectCreate.model_validate(body), actor.id).project


class TestOverview:

    def test_counts_only_active_records(self, container, head):
        open_project = new_project(container, head)
        new_project(container, head, jcReferences=[{"value": "JC-1"}])
        cancelled = new_project(container, head)
        container.projects.delete(cancelled.id)
        container.complaints.create(
            ComplaintCreate.model_validate({"clientName": "C", "description": "d"}), head.id
        )
        container.maintenance.create(MaintenanceCreate(client_name="M"), head.id)
        container.invoices.create(InvoiceCreate(project=open_project.id), head.id)

        overview = container.dashboard.overview()

        assert overview["activeProjects"] == 1
        assert overview["activeComplaints"] == 1
        assert overview["activeMaintenances"] == 1
        # the auto-created invoice for the completed project plus the manual one
        assert overview["activeInvoices"] == 2
        assert len(overview["allProjects"]) == 2
        assert set(overview["allProjects"][0]) == {"id", "createdAt"}

    def test_recent_lists_are_capped_and_newest_first(self, container, head):
        created = [new_project(container, head, clientName=f"Client {i}") for i in range(RECENT_LIMIT + 2)]

        recent = container.dashboard.overview()["recentProjects"]

        assert len(recent) == RECENT_LIMIT
        assert recent[0]["id"] == str(created[-1].id)
        assert recent[0]["createdBy"]["name"] == head.name
        assert "passwordHash" not in recent[0]["createdBy"]


class TestUserDashboard:

    def test_scoped_to_assignments(self, container, head, make_user):
        worker = make_user()
        mine = new_project(container, head, users=[str(worker.id)])
        new_project(container, head)
        container.maintenance.create(
            MaintenanceCreate.model_validate({"clientName": "M", "users": [str(worker.id)]}), head.id
        )

        view = container.dashboard.for_user(worker.id)

        assert view["activeProjects"] == 1
        assert view["activeComplaints"] == 0
        assert view["activeMaintenances"] == 1
        assert "activeInvoices" not in view
        assert [p["id"] for p in view["recentProjects"]] == [str(mine.id)]
        assert view["recentProjects"][0]["users"][0]["id"] == str(worker.id)
        assert [p["id"] for p in view["userProjects"]] == [str(mine.id)]


class TestPopulation:

    def test_missing_references_are_dropped(self, container, repos, head, make_user):
        gone = make_user()
        project = new_project(container, head, users=[str(gone.id)])
        repos.users.delete(gone.id)
        repos.users.delete(head.id)

        data = container.populator.one(repos.projects.get(project.id))

        assert data["users"] == []
        assert data["createdBy"] is None
        assert data["clientName"] == "Client"

    def test_invoice_project_summary(self, container, head):
        project = new_project(container, head, description="Roof units")
        invoice = container.invoices.create(InvoiceCreate(project=project.id), head.id)

        data = container.populator.one(invoice)

        assert data["project"] == {
            "id": str(project.id),
            "clientName": "Client",
            "description": "Roof units",
            "status": "Pending",
        }

    def test_public_user_hides_secrets(self, make_user):
        data = public_user(make_user(push_token="tok"))
        assert "passwordHash" not in data
        assert "pushToken" not in data
        assert "resetCode" not in data
        assert data["status"] == "Approved"
