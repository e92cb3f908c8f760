"""
API Models - Pydantic models for API requests and responses.

These models define the structure of HTTP request and response payloads
for the FastAPI endpoints. Request bodies accept camelCase keys (as sent
by the mobile and web clients) as well as snake_case.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .domain import (
    ApprovalStatus,
    Department,
    LifecycleStatus,
    PaymentStatus,
    PaymentTerms,
    Priority,
    UserRole,
)


class ApiModel(BaseModel):
    """Base for payloads: camelCase aliases, extra keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class EditableFieldInput(ApiModel):
    """Client-supplied reference value."""

    value: str = ""
    is_edited: bool = False


# ============================================================================
# Project API Models
# ============================================================================

class ProjectCreate(ApiModel):
    """Request payload for creating a project. Any ``status`` sent is ignored."""

    client_name: Optional[str] = Field(default=None, description="Client name (required)")
    description: Optional[str] = None
    po: Optional[EditableFieldInput] = None
    quotation: Optional[EditableFieldInput] = None
    remarks: Optional[EditableFieldInput] = None
    survey_photos: Optional[List[str]] = None
    jc_references: Optional[List[EditableFieldInput]] = None
    dc_references: Optional[List[EditableFieldInput]] = None
    users: Optional[List[UUID]] = None
    due_date: Optional[datetime] = None


class ProjectUpdate(ProjectCreate):
    """Partial update; omitted fields keep their stored values."""


# ============================================================================
# Complaint API Models
# ============================================================================

class ComplaintCreate(ApiModel):
    """Request payload for creating a complaint. Any ``status`` sent is ignored."""

    complaint_reference: Optional[str] = None
    client_name: Optional[str] = Field(default=None, description="Client name (required)")
    description: Optional[str] = None
    po: Optional[EditableFieldInput] = None
    quotation: Optional[EditableFieldInput] = None
    remarks: Optional[EditableFieldInput] = None
    visit_dates: Optional[List[datetime]] = None
    photos: Optional[List[str]] = None
    priority: Optional[Priority] = None
    jc_references: Optional[List[EditableFieldInput]] = None
    dc_references: Optional[List[EditableFieldInput]] = None
    users: Optional[List[UUID]] = None
    due_date: Optional[datetime] = None


class ComplaintUpdate(ComplaintCreate):
    """Partial update; omitted fields keep their stored values."""


class AssignUsersRequest(ApiModel):
    """Request payload for the assign-users endpoints."""

    user_ids: Optional[List[UUID]] = Field(default=None, description="Users to assign")


# ============================================================================
# Invoice API Models
# ============================================================================

class InvoiceCreate(ApiModel):
    invoice_reference: Optional[str] = None
    amount: Optional[str] = None
    payment_terms: Optional[PaymentTerms] = None
    credit_days: Optional[str] = None
    due_date: Optional[datetime] = None
    project: Optional[UUID] = Field(default=None, description="Owning project (required)")
    status: Optional[LifecycleStatus] = None


class InvoiceUpdate(InvoiceCreate):
    """Partial update; omitted fields keep their stored values."""


# ============================================================================
# Maintenance API Models
# ============================================================================

class ServiceDateInput(ApiModel):
    """
    One visit in a maintenance schedule.

    ``id`` is optional; when it names an existing visit the update is
    matched by id, otherwise by position in the list.
    """

    id: Optional[UUID] = None
    service_date: datetime
    actual_date: Optional[datetime] = None
    jc_reference: Optional[str] = None
    invoice_ref: Optional[str] = None
    payment_status: Optional[PaymentStatus] = None
    is_completed: Optional[bool] = None


class MaintenanceCreate(ApiModel):
    client_name: Optional[str] = None
    remarks: Optional[EditableFieldInput] = None
    service_dates: Optional[List[ServiceDateInput]] = None
    users: Optional[List[UUID]] = None
    status: Optional[LifecycleStatus] = Field(
        default=None,
        description="Overrides the derived status when given"
    )


class MaintenanceUpdate(MaintenanceCreate):
    """Partial update; omitted fields keep their stored values."""


# ============================================================================
# User API Models
# ============================================================================

class RegisterRequest(ApiModel):
    name: str
    email: str
    password: str
    phone: str
    role: UserRole
    department: Optional[Department] = None


class LoginRequest(ApiModel):
    email: str
    password: str
    role: UserRole


class UpdateProfileRequest(ApiModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class ChangeStatusRequest(ApiModel):
    status: ApprovalStatus


class ChangePasswordRequest(ApiModel):
    old_password: str
    new_password: str


class ForgotPasswordRequest(ApiModel):
    email: Optional[str] = None


class VerifyResetCodeRequest(ApiModel):
    email: Optional[str] = None
    code: Optional[str] = None
    new_password: Optional[str] = None


class PushTokenRequest(ApiModel):
    push_token: Optional[str] = None


class UserPublic(ApiModel):
    """Account fields safe to return to clients."""

    id: UUID
    name: str
    email: str
    phone: str
    role: UserRole
    department: Optional[Department] = None
    status: ApprovalStatus
    created_at: datetime
    updated_at: datetime


class UserSummary(ApiModel):
    """Populated reference to a user (creator or assignee)."""

    id: UUID
    name: str
    email: str
    role: UserRole


class ProjectSummary(ApiModel):
    """Populated reference from an invoice to its project."""

    id: UUID
    client_name: str
    description: str
    status: LifecycleStatus


# ============================================================================
# System API Models
# ============================================================================

class HealthCheckResponse(ApiModel):
    """Response for health check endpoint."""

    status: str = Field(..., description="System status: 'healthy' or 'unhealthy'")
    database: str = Field(..., description="Database connection status")
    timestamp: datetime = Field(..., description="Check timestamp")
