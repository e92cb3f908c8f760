"""
Dashboard Aggregator

Read-only summaries across projects, complaints, invoices and maintenance
contracts: active counts, the most recent records, and the creation
timestamps used by the clients' activity charts.
"""

import logging
from typing import Any, Dict, List, Optional

from servicedesk.models.domain import ACTIVE_STATUSES
from servicedesk.services.populate import Populator
from servicedesk.services.repositories import Repositories, Repository

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5


class DashboardService:
    def __init__(self, repositories: Repositories, populator: Populator):
        self.repositories = repositories
        self.populator = populator

    def _active(self, repository: Repository, user_id: Optional[Any] = None) -> int:
        return repository.count(statuses=ACTIVE_STATUSES, assigned_to=user_id)

    def _recent(self, repository: Repository, user_id: Optional[Any] = None) -> List[Dict[str, Any]]:
        records = repository.find(assigned_to=user_id, exclude_cancelled=True, limit=RECENT_LIMIT)
        return self.populator.many(records)

    def _timeline(self, repository: Repository, user_id: Optional[Any] = None) -> List[Dict[str, Any]]:
        records = repository.find(assigned_to=user_id, exclude_cancelled=True)
        return [
            {"id": str(record.id), "createdAt": record.created_at.isoformat()}
            for record in records
        ]

    def overview(self) -> Dict[str, Any]:
        """Company-wide view for heads, admins and directors"""
        repos = self.repositories
        return {
            "activeProjects": self._active(repos.projects),
            "activeComplaints": self._active(repos.complaints),
            "activeInvoices": self._active(repos.invoices),
            "activeMaintenances": self._active(repos.maintenances),
            "recentProjects": self._recent(repos.projects),
            "recentComplaints": self._recent(repos.complaints),
            "recentMaintenances": self._recent(repos.maintenances),
            "allProjects": self._timeline(repos.projects),
            "allComplaints": self._timeline(repos.complaints),
            "allMaintenances": self._timeline(repos.maintenances),
        }

    def for_user(self, user_id: Any) -> Dict[str, Any]:
        """The same view restricted to work assigned to ``user_id``; no invoices"""
        repos = self.repositories
        return {
            "activeProjects": self._active(repos.projects, user_id),
            "activeComplaints": self._active(repos.complaints, user_id),
            "activeMaintenances": self._active(repos.maintenances, user_id),
            "recentProjects": self._recent(repos.projects, user_id),
            "recentComplaints": self._recent(repos.complaints, user_id),
            "recentMaintenances": self._recent(repos.maintenances, user_id),
            "userProjects": self._timeline(repos.projects, user_id),
            "userComplaints": self._timeline(repos.complaints, user_id),
            "userMaintenances": self._timeline(repos.maintenances, user_id),
        }
