"""
Models package for the Service Desk API.
"""

# Domain models
from .domain import (
    ACTIVE_STATUSES,
    ApprovalStatus,
    Complaint,
    Department,
    EditableField,
    Invoice,
    LifecycleStatus,
    Maintenance,
    PaymentStatus,
    PaymentTerms,
    Priority,
    Project,
    Record,
    ServiceDate,
    User,
    UserRole,
    utcnow,
)

# API models
from .api import (
    AssignUsersRequest,
    ChangePasswordRequest,
    ChangeStatusRequest,
    ComplaintCreate,
    ComplaintUpdate,
    EditableFieldInput,
    ForgotPasswordRequest,
    HealthCheckResponse,
    InvoiceCreate,
    InvoiceUpdate,
    LoginRequest,
    MaintenanceCreate,
    MaintenanceUpdate,
    ProjectCreate,
    ProjectSummary,
    ProjectUpdate,
    PushTokenRequest,
    RegisterRequest,
    ServiceDateInput,
    UpdateProfileRequest,
    UserPublic,
    UserSummary,
    VerifyResetCodeRequest,
)

__version__ = "0.1.0"

__all__ = [
    # Domain
    "ACTIVE_STATUSES",
    "ApprovalStatus",
    "Complaint",
    "Department",
    "EditableField",
    "Invoice",
    "LifecycleStatus",
    "Maintenance",
    "PaymentStatus",
    "PaymentTerms",
    "Priority",
    "Project",
    "Record",
    "ServiceDate",
    "User",
    "UserRole",
    "utcnow",
    # API
    "AssignUsersRequest",
    "ChangePasswordRequest",
    "ChangeStatusRequest",
    "ComplaintCreate",
    "ComplaintUpdate",
    "EditableFieldInput",
    "ForgotPasswordRequest",
    "HealthCheckResponse",
    "InvoiceCreate",
    "InvoiceUpdate",
    "LoginRequest",
    "MaintenanceCreate",
    "MaintenanceUpdate",
    "ProjectCreate",
    "ProjectSummary",
    "ProjectUpdate",
    "PushTokenRequest",
    "RegisterRequest",
    "ServiceDateInput",
    "UpdateProfileRequest",
    "UserPublic",
    "UserSummary",
    "VerifyResetCodeRequest",
]
