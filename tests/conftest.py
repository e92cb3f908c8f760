"""
Shared fixtures: in-memory repositories with the same query surface as the
PostgreSQL ones, mocked transports, a controllable clock and a fully wired
service container.
"""

import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from servicedesk.models.domain import (
    ApprovalStatus,
    Complaint,
    Invoice,
    LifecycleStatus,
    Maintenance,
    Project,
    User,
    UserRole,
    Department,
    utcnow,
)
from servicedesk.services.auth import hash_password
from servicedesk.services.container import ServiceContainer
from servicedesk.services.repositories import Repositories
from servicedesk.utils.config import Settings

PASSWORD = "secret123"


def _text(value: Any) -> str:
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


class InMemoryRepository:
    """Dict-backed stand-in for servicedesk.services.repositories.Repository"""

    _sequence = itertools.count()

    def __init__(self, model):
        self.model = model
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.order: Dict[str, int] = {}

    def _load(self, record_id: str):
        return self.model.model_validate(self.rows[record_id])

    def insert(self, record):
        key = str(record.id)
        self.rows[key] = record.model_dump(mode="json")
        self.order[key] = next(self._sequence)
        return self._load(key)

    def save(self, record):
        key = str(record.id)
        if key not in self.rows:
            return None
        record.updated_at = utcnow()
        self.rows[key] = record.model_dump(mode="json")
        return self._load(key)

    def delete(self, record_id) -> bool:
        return self.rows.pop(str(record_id), None) is not None

    def get(self, record_id):
        key = str(record_id)
        return self._load(key) if key in self.rows else None

    def all(self) -> List[Any]:
        return [self._load(key) for key in self.rows]

    def _matches(self, key, status, statuses, exclude_cancelled, assigned_to, ids, fields) -> bool:
        data = self.rows[key]
        if status is not None and data.get("status") != _text(status):
            return False
        if statuses is not None and data.get("status") not in {_text(s) for s in statuses}:
            return False
        if exclude_cancelled and data.get("status") == LifecycleStatus.CANCELLED.value:
            return False
        if assigned_to is not None and str(assigned_to) not in (data.get("users") or []):
            return False
        if ids is not None and key not in {str(i) for i in ids}:
            return False
        for name, value in (fields or {}).items():
            if data.get(name) is None or str(data.get(name)) != _text(value):
                return False
        return True

    def _newest_first(self, keys) -> List[str]:
        return sorted(
            keys,
            key=lambda k: (self.rows[k]["created_at"], self.order[k]),
            reverse=True,
        )

    def find(
        self,
        status=None,
        statuses=None,
        exclude_cancelled=False,
        assigned_to=None,
        ids=None,
        fields=None,
        limit=None,
    ):
        keys = [
            key for key in self.rows
            if self._matches(key, status, statuses, exclude_cancelled, assigned_to, ids, fields)
        ]
        keys = self._newest_first(keys)
        if limit is not None:
            keys = keys[:limit]
        return [self._load(key) for key in keys]

    def find_one(self, **fields):
        found = self.find(fields=fields, limit=1)
        return found[0] if found else None

    def count(self, statuses=None, assigned_to=None) -> int:
        return len(self.find(statuses=statuses, assigned_to=assigned_to))


class InMemoryInvoiceRepository(InMemoryRepository):
    def __init__(self):
        super().__init__(Invoice)

    def find_overdue(self, now: datetime):
        closed = {LifecycleStatus.COMPLETED, LifecycleStatus.CANCELLED}
        overdue = [
            invoice for invoice in self.all()
            if invoice.due_date is not None and invoice.due_date < now and invoice.status not in closed
        ]
        return sorted(overdue, key=lambda invoice: invoice.due_date)


class InMemoryMaintenanceRepository(InMemoryRepository):
    def __init__(self):
        super().__init__(Maintenance)

    def find_upcoming(self, start: datetime, end: datetime):
        found = [
            m for m in self.all()
            if m.status != LifecycleStatus.CANCELLED
            and any(
                start <= sd.service_date <= end and not sd.is_completed
                for sd in m.service_dates
            )
        ]
        return sorted(found, key=lambda m: min(sd.service_date for sd in m.service_dates))


class InMemoryUserRepository(InMemoryRepository):
    def __init__(self):
        super().__init__(User)

    def get_by_email(self, email: str):
        return self.find_one(email=email.lower().strip())

    def find_approved(self, roles=None, ids=None):
        users = self.find(status=ApprovalStatus.APPROVED, ids=ids)
        if roles is not None:
            allowed = {UserRole(r) for r in roles}
            users = [u for u in users if u.role in allowed]
        return users


def make_repositories() -> Repositories:
    return Repositories(
        users=InMemoryUserRepository(),
        projects=InMemoryRepository(Project),
        complaints=InMemoryRepository(Complaint),
        invoices=InMemoryInvoiceRepository(),
        maintenances=InMemoryMaintenanceRepository(),
    )


class FakeClock:
    """Callable clock that only moves when told to"""

    def __init__(self, now: Optional[datetime] = None):
        self.now = now or datetime(2025, 1, 5, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def settings():
    return Settings(_env_file=None, JWT_SECRET="test-secret", MAIL_BRAND="TechnoTrends")


@pytest.fixture
def repos():
    return make_repositories()


@pytest.fixture
def mailer():
    return MagicMock(name="mailer")


@pytest.fixture
def push_client():
    return MagicMock(name="push_client")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def container(settings, repos, mailer, push_client, clock):
    services = ServiceContainer(
        settings=settings,
        repositories=repos,
        mailer=mailer,
        push_client=push_client,
        clock=clock,
    )
    yield services
    services.close()


@pytest.fixture
def make_user(repos):
    """Insert an account; approved by default"""

    def factory(
        role: UserRole = UserRole.USER,
        status: ApprovalStatus = ApprovalStatus.APPROVED,
        email: Optional[str] = None,
        push_token: Optional[str] = None,
        name: str = "Staff Member",
    ) -> User:
        user = User(
            name=name,
            email=email or f"{role.value}-{next(InMemoryRepository._sequence)}@example.com",
            phone="0500000000",
            password_hash=hash_password(PASSWORD),
            role=role,
            department=Department.TECHNICAL if role == UserRole.HEAD else None,
            status=status,
            push_token=push_token,
        )
        return repos.users.insert(user)

    return factory


@pytest.fixture
def head(make_user):
    return make_user(UserRole.HEAD, name="Hana Head")


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN, name="Adam Admin", push_token="ExponentPushToken[admin]")
