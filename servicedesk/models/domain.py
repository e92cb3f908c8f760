"""
Domain Models - Pydantic models for the service-desk entities.

These models represent the stored business records (projects, complaints,
invoices, maintenance contracts and user accounts). Attribute names are
snake_case in Python and camelCase on the wire.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


# ============================================================================
# Enums
# ============================================================================

class LifecycleStatus(str, Enum):
    """Status values shared by projects, complaints, invoices and maintenance."""
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


ACTIVE_STATUSES = (LifecycleStatus.PENDING, LifecycleStatus.IN_PROGRESS)


class Priority(str, Enum):
    """Complaint priority."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class PaymentTerms(str, Enum):
    CASH = "Cash"
    CREDIT = "Credit"


class PaymentStatus(str, Enum):
    """Payment state of a single maintenance visit."""
    PENDING = "Pending"
    PAID = "Paid"
    OVERDUE = "Overdue"
    CANCELLED = "Cancelled"


class UserRole(str, Enum):
    """Account roles, lowest privilege first."""
    USER = "user"
    HEAD = "head"
    ADMIN = "admin"
    DIRECTOR = "director"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]


_ROLE_RANK = {
    UserRole.USER: 1,
    UserRole.HEAD: 2,
    UserRole.ADMIN: 3,
    UserRole.DIRECTOR: 4,
}


class Department(str, Enum):
    ACCOUNTS = "accounts"
    TECHNICAL = "technical"
    IT = "it"
    SALES = "sales"
    STORE = "store"


class ApprovalStatus(str, Enum):
    """Account approval state; only approved users log in and get notified."""
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


# ============================================================================
# Shared building blocks
# ============================================================================

class DomainModel(BaseModel):
    """Base for stored records: camelCase aliases, attribute access."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class EditableField(DomainModel):
    """
    A user-entered reference (PO number, quotation, JC/DC reference, remark).

    ``is_edited`` is whatever the caller sent; it is never inferred from
    comparing values.
    """

    value: str = ""
    is_edited: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Record(DomainModel):
    """Fields every stored entity carries."""

    id: UUID = Field(default_factory=uuid4)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ============================================================================
# Domain Models
# ============================================================================

class Project(Record):
    """Installation/project job for a client."""

    client_name: str
    description: str = ""
    po: EditableField = Field(default_factory=EditableField)
    quotation: EditableField = Field(default_factory=EditableField)
    remarks: EditableField = Field(default_factory=EditableField)
    survey_date: Optional[datetime] = None
    survey_photos: List[str] = Field(default_factory=list)
    jc_references: List[EditableField] = Field(default_factory=list)
    dc_references: List[EditableField] = Field(default_factory=list)
    users: List[UUID] = Field(default_factory=list)
    due_date: Optional[datetime] = None
    status: LifecycleStatus = LifecycleStatus.PENDING
    created_by: UUID


class Complaint(Record):
    """Client complaint; follows the same status rule as a project."""

    complaint_reference: str = ""
    client_name: str
    description: str = ""
    po: EditableField = Field(default_factory=EditableField)
    quotation: EditableField = Field(default_factory=EditableField)
    remarks: EditableField = Field(default_factory=EditableField)
    visit_dates: List[datetime] = Field(default_factory=list)
    photos: List[str] = Field(default_factory=list)
    priority: Priority = Priority.MEDIUM
    jc_references: List[EditableField] = Field(default_factory=list)
    dc_references: List[EditableField] = Field(default_factory=list)
    users: List[UUID] = Field(default_factory=list)
    due_date: Optional[datetime] = None
    status: LifecycleStatus = LifecycleStatus.PENDING
    created_by: UUID


class Invoice(Record):
    """Invoice raised against a project."""

    invoice_reference: str = ""
    invoice_date: Optional[datetime] = None
    amount: str = "0"
    payment_terms: PaymentTerms = PaymentTerms.CASH
    credit_days: str = ""
    due_date: Optional[datetime] = None
    project: UUID
    status: LifecycleStatus = LifecycleStatus.PENDING
    created_by: UUID


class ServiceDate(DomainModel):
    """One scheduled maintenance visit. ``month``/``year`` follow ``service_date``."""

    id: UUID = Field(default_factory=uuid4)
    service_date: datetime
    actual_date: Optional[datetime] = None
    jc_reference: str = ""
    invoice_ref: str = ""
    payment_status: PaymentStatus = PaymentStatus.PENDING
    is_completed: bool = False
    month: int = Field(default=1, ge=1, le=12)
    year: int = 1970

    @model_validator(mode="after")
    def _derive_month_year(self) -> "ServiceDate":
        self.month = self.service_date.month
        self.year = self.service_date.year
        return self


class Maintenance(Record):
    """Recurring maintenance contract with its visit schedule."""

    client_name: str
    remarks: EditableField = Field(default_factory=EditableField)
    service_dates: List[ServiceDate] = Field(default_factory=list)
    users: List[UUID] = Field(default_factory=list)
    status: LifecycleStatus = LifecycleStatus.PENDING
    created_by: UUID


class User(Record):
    """Staff account. Never serialized directly to clients (see UserPublic)."""

    name: str
    email: str
    phone: str = ""
    password_hash: str
    role: UserRole
    department: Optional[Department] = None
    status: ApprovalStatus = ApprovalStatus.PENDING
    reset_code: Optional[str] = None
    reset_code_expires: Optional[datetime] = None
    push_token: Optional[str] = None

    @property
    def is_approved(self) -> bool:
        return self.status == ApprovalStatus.APPROVED
