"""
Repositories

Document-style persistence for the service-desk entities on PostgreSQL.
Each collection is a table of ``(id, status, created_at, updated_at, data)``
where ``data`` is the full record as JSONB; filters address keys inside
``data``. See db/schema.sql.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Generic, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar
from uuid import UUID

from psycopg2.extras import Json

from servicedesk.models.domain import (
    Complaint,
    Invoice,
    LifecycleStatus,
    Maintenance,
    Project,
    Record,
    User,
    UserRole,
    ApprovalStatus,
    utcnow,
)
from servicedesk.utils.database import Database, get_db

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Record)


def _text(value: Any) -> str:
    """Render a filter value the way it is stored in JSONB."""
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


class Repository(Generic[T]):
    """CRUD and simple queries over one collection table"""

    table: str = ""
    model: Type[T]

    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_db()

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    def _to_row(self, record: T) -> Tuple:
        data = record.model_dump(mode="json")
        return (
            str(record.id),
            _text(getattr(record, "status", "")),
            record.created_at,
            record.updated_at,
            Json(data),
        )

    def _from_row(self, row: Optional[Dict[str, Any]]) -> Optional[T]:
        if not row:
            return None
        return self.model.model_validate(row["data"])

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, record: T) -> T:
        """Store a new record and return it as persisted"""
        query = f"""
            INSERT INTO {self.table} (id, status, created_at, updated_at, data)
            VALUES (%s, %s, %s, %s, %s)
            RETURNING data
        """
        row = self.db.execute_query(query, self._to_row(record), fetch_one=True)
        logger.debug(f"Inserted {self.table} record {record.id}")
        return self._from_row(row)

    def save(self, record: T) -> T:
        """Overwrite a stored record (last write wins) and bump updated_at"""
        record.updated_at = utcnow()
        record_id, status, _, updated_at, data = self._to_row(record)
        query = f"""
            UPDATE {self.table}
            SET status = %s, updated_at = %s, data = %s
            WHERE id = %s
            RETURNING data
        """
        row = self.db.execute_query(query, (status, updated_at, data, record_id), fetch_one=True)
        return self._from_row(row)

    def delete(self, record_id: UUID) -> bool:
        """Hard delete; returns False when nothing matched"""
        query = f"DELETE FROM {self.table} WHERE id = %s"
        return self.db.execute_update(query, (str(record_id),)) > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, record_id: UUID) -> Optional[T]:
        query = f"SELECT data FROM {self.table} WHERE id = %s"
        return self._from_row(self.db.execute_query(query, (str(record_id),), fetch_one=True))

    def _where(
        self,
        status: Optional[Any] = None,
        statuses: Optional[Sequence[Any]] = None,
        exclude_cancelled: bool = False,
        assigned_to: Optional[Any] = None,
        ids: Optional[Iterable[Any]] = None,
        fields: Optional[Dict[str, Any]] = None,
    ) -> Tuple[str, List[Any]]:
        clauses = []
        params: List[Any] = []
        if status is not None:
            clauses.append("status = %s")
            params.append(_text(status))
        if statuses is not None:
            clauses.append("status = ANY(%s)")
            params.append([_text(s) for s in statuses])
        if exclude_cancelled:
            clauses.append("status <> %s")
            params.append(LifecycleStatus.CANCELLED.value)
        if assigned_to is not None:
            clauses.append("data->'users' ? %s")
            params.append(str(assigned_to))
        if ids is not None:
            clauses.append("id::text = ANY(%s)")
            params.append([str(i) for i in ids])
        for key, value in (fields or {}).items():
            clauses.append("data->>%s = %s")
            params.extend([key, _text(value)])
        where = " AND ".join(clauses) if clauses else "TRUE"
        return where, params

    def find(
        self,
        status: Optional[Any] = None,
        statuses: Optional[Sequence[Any]] = None,
        exclude_cancelled: bool = False,
        assigned_to: Optional[Any] = None,
        ids: Optional[Iterable[Any]] = None,
        fields: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[T]:
        """
        Query records, newest first

        Args:
            status: Exact lifecycle/approval status
            statuses: Any of these statuses
            exclude_cancelled: Drop records whose status is Cancelled
            assigned_to: User id that must appear in the record's ``users``
            ids: Restrict to these record ids
            fields: Equality filters on top-level keys of the stored record
            limit: Maximum number of records
        """
        where, params = self._where(status, statuses, exclude_cancelled, assigned_to, ids, fields)
        query = f"SELECT data FROM {self.table} WHERE {where} ORDER BY created_at DESC"
        if limit is not None:
            query += " LIMIT %s"
            params.append(limit)
        rows = self.db.execute_query(query, tuple(params))
        return [self._from_row(row) for row in rows]

    def find_one(self, **fields: Any) -> Optional[T]:
        found = self.find(fields=fields, limit=1)
        return found[0] if found else None

    def count(
        self,
        statuses: Optional[Sequence[Any]] = None,
        assigned_to: Optional[Any] = None,
    ) -> int:
        where, params = self._where(statuses=statuses, assigned_to=assigned_to)
        row = self.db.execute_query(
            f"SELECT COUNT(*) AS total FROM {self.table} WHERE {where}", tuple(params), fetch_one=True
        )
        return int(row["total"]) if row else 0


class ProjectRepository(Repository[Project]):
    table = "projects"
    model = Project


class ComplaintRepository(Repository[Complaint]):
    table = "complaints"
    model = Complaint


class InvoiceRepository(Repository[Invoice]):
    table = "invoices"
    model = Invoice

    def find_overdue(self, now: datetime) -> List[Invoice]:
        """Invoices past their due date that are neither Completed nor Cancelled, oldest due first"""
        query = """
            SELECT data FROM invoices
            WHERE data->>'due_date' IS NOT NULL
              AND (data->>'due_date')::timestamptz < %s
              AND status <> ALL(%s)
            ORDER BY (data->>'due_date')::timestamptz ASC
        """
        closed = [LifecycleStatus.COMPLETED.value, LifecycleStatus.CANCELLED.value]
        rows = self.db.execute_query(query, (now, closed))
        return [self._from_row(row) for row in rows]


class MaintenanceRepository(Repository[Maintenance]):
    table = "maintenances"
    model = Maintenance

    def find_upcoming(self, start: datetime, end: datetime) -> List[Maintenance]:
        """Contracts with at least one open visit scheduled in [start, end]"""
        query = """
            SELECT m.data FROM maintenances m
            WHERE m.status <> %s
              AND EXISTS (
                SELECT 1 FROM jsonb_array_elements(m.data->'service_dates') sd
                WHERE (sd->>'service_date')::timestamptz BETWEEN %s AND %s
                  AND NOT (sd->>'is_completed')::boolean
              )
            ORDER BY (
                SELECT MIN((sd->>'service_date')::timestamptz)
                FROM jsonb_array_elements(m.data->'service_dates') sd
            ) ASC
        """
        rows = self.db.execute_query(query, (LifecycleStatus.CANCELLED.value, start, end))
        return [self._from_row(row) for row in rows]


class UserRepository(Repository[User]):
    table = "users"
    model = User

    def get_by_email(self, email: str) -> Optional[User]:
        return self.find_one(email=email.lower().strip())

    def find_approved(
        self,
        roles: Optional[Sequence[UserRole]] = None,
        ids: Optional[Iterable[Any]] = None,
    ) -> List[User]:
        """Approved accounts, optionally limited to roles and/or ids"""
        users = self.find(status=ApprovalStatus.APPROVED, ids=ids)
        if roles is not None:
            allowed = {UserRole(r) for r in roles}
            users = [u for u in users if u.role in allowed]
        return users


@dataclass
class Repositories:
    """The set of repositories the services are built from"""

    users: UserRepository
    projects: ProjectRepository
    complaints: ComplaintRepository
    invoices: InvoiceRepository
    maintenances: MaintenanceRepository

    @classmethod
    def postgres(cls, db: Optional[Database] = None) -> "Repositories":
        db = db or get_db()
        return cls(
            users=UserRepository(db),
            projects=ProjectRepository(db),
            complaints=ComplaintRepository(db),
            invoices=InvoiceRepository(db),
            maintenances=MaintenanceRepository(db),
        )
