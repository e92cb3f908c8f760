"""
Service container

Builds every service from one Settings object, one set of repositories and
one pair of transports, and subscribes the invoice provisioner to the
project service's ReferencesPopulated signal.
"""

import logging
from typing import Callable, Optional

from servicedesk.models.domain import utcnow
from servicedesk.services.auth import TokenService
from servicedesk.services.complaints import ComplaintService
from servicedesk.services.dashboard import DashboardService
from servicedesk.services.invoices import InvoiceProvisioner, InvoiceService
from servicedesk.services.maintenance import MaintenanceService
from servicedesk.services.notifications import NotificationGateway, RecipientResolver
from servicedesk.services.populate import Populator
from servicedesk.services.projects import ProjectService
from servicedesk.services.repositories import Repositories
from servicedesk.services.users import UserService
from servicedesk.utils.config import Settings, get_settings
from servicedesk.utils.database import Database, get_db
from servicedesk.utils.mailer import SmtpMailer
from servicedesk.utils.push import PushClient

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    The application's object graph.

    Args:
        settings: Configuration; defaults to get_settings()
        repositories: Persistence; defaults to PostgreSQL repositories on ``db``
        db: Database used for the default repositories and health checks
        mailer: Object with ``send(to, subject, html)``
        push_client: Object with ``send(tokens, title, body, data)``
        clock: Returns the current time; injected into time-dependent services
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        repositories: Optional[Repositories] = None,
        db: Optional[Database] = None,
        mailer=None,
        push_client=None,
        clock: Callable = utcnow,
    ):
        self.settings = settings or get_settings()
        if repositories is None:
            db = db or get_db()
            repositories = Repositories.postgres(db)
        self.db = db
        self.repositories = repositories
        self.mailer = mailer or SmtpMailer(self.settings)
        self.push_client = push_client or PushClient(self.settings)

        repos = self.repositories
        self.resolver = RecipientResolver(repos.users)
        self.notifications = NotificationGateway(self.resolver, self.mailer, self.push_client)
        self.tokens = TokenService(self.settings)

        self.users = UserService(
            repos.users, self.tokens, self.notifications, self.mailer, self.settings, clock=clock
        )
        self.projects = ProjectService(repos.projects, repos.users, self.notifications, self.settings)
        self.complaints = ComplaintService(repos.complaints, repos.users, self.notifications, self.settings)
        self.invoices = InvoiceService(
            repos.invoices, repos.projects, repos.users, self.notifications, self.settings, clock=clock
        )
        self.maintenance = MaintenanceService(
            repos.maintenances, repos.users, self.notifications, self.settings, clock=clock
        )
        self.populator = Populator(repos.users, repos.projects)
        self.dashboard = DashboardService(repos, self.populator)

        self.provisioner = InvoiceProvisioner(self.invoices)
        self.provisioner.subscribe(self.projects)
        logger.debug("Service container initialized")

    def database_status(self) -> str:
        """'connected', 'disconnected' or 'not configured' (no SQL database in use)"""
        if self.db is None:
            return "not configured"
        return "connected" if self.db.ping() else "disconnected"

    def close(self):
        self.provisioner.unsubscribe(self.projects)
        if self.db is not None:
            self.db.close()


_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """Get the global service container, building it on first use"""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container():
    """Reset the global service container (useful for testing)."""
    global _container
    if _container is not None:
        _container.close()
    _container = None
