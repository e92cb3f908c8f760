"""
Response population

Serializes stored records for the API and replaces user and project ids
with small summaries (``createdBy``, ``users``, ``project``), loading every
referenced record in one query per collection.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from servicedesk.models.api import ProjectSummary, UserPublic, UserSummary
from servicedesk.models.domain import Record, User
from servicedesk.services.repositories import ProjectRepository, UserRepository

logger = logging.getLogger(__name__)


def dump(model) -> Dict[str, Any]:
    """JSON-ready camelCase dict of a pydantic model"""
    return model.model_dump(mode="json", by_alias=True)


def public_user(user: User) -> Dict[str, Any]:
    """Account without password hash, reset code or push token"""
    return dump(UserPublic.model_validate(user))


class Populator:
    """Expands references on records for responses"""

    def __init__(self, users: UserRepository, projects: ProjectRepository):
        self.users = users
        self.projects = projects

    def one(self, record: Optional[Record]) -> Optional[Dict[str, Any]]:
        if record is None:
            return None
        return self.many([record])[0]

    def many(self, records: Iterable[Record]) -> List[Dict[str, Any]]:
        records = list(records)
        if not records:
            return []

        user_ids = set()
        project_ids = set()
        for record in records:
            if getattr(record, "created_by", None) is not None:
                user_ids.add(str(record.created_by))
            for uid in getattr(record, "users", None) or []:
                user_ids.add(str(uid))
            if getattr(record, "project", None) is not None:
                project_ids.add(str(record.project))

        users = self._users_by_id(user_ids)
        projects = self._projects_by_id(project_ids)

        results = []
        for record in records:
            data = dump(record)
            if "createdBy" in data:
                data["createdBy"] = users.get(str(record.created_by))
            if "users" in data:
                data["users"] = [users[str(uid)] for uid in record.users if str(uid) in users]
            if "project" in data:
                data["project"] = projects.get(str(record.project))
            results.append(data)
        return results

    def _users_by_id(self, ids) -> Dict[str, Dict[str, Any]]:
        if not ids:
            return {}
        return {
            str(user.id): dump(UserSummary.model_validate(user))
            for user in self.users.find(ids=ids)
        }

    def _projects_by_id(self, ids) -> Dict[str, Dict[str, Any]]:
        if not ids:
            return {}
        return {
            str(project.id): dump(ProjectSummary.model_validate(project))
            for project in self.projects.find(ids=ids)
        }
