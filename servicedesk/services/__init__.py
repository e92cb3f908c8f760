"""
Services package for the Service Desk API.
"""

from .complaints import ComplaintService
from .container import ServiceContainer, get_container, reset_container
from .dashboard import DashboardService
from .invoices import InvoiceProvisioner, InvoiceService
from .maintenance import MaintenanceService
from .notifications import NotificationGateway, RecipientResolver
from .projects import ProjectChange, ProjectService
from .status_rules import derive_maintenance_status, derive_reference_status
from .users import UserService

__version__ = "0.1.0"

__all__ = [
    "ComplaintService",
    "DashboardService",
    "InvoiceProvisioner",
    "InvoiceService",
    "MaintenanceService",
    "NotificationGateway",
    "ProjectChange",
    "ProjectService",
    "RecipientResolver",
    "ServiceContainer",
    "UserService",
    "derive_maintenance_status",
    "derive_reference_status",
    "get_container",
    "reset_container",
]
