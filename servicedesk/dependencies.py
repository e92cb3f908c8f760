"""
FastAPI dependencies: service container access, token authentication and
role gates.

Role gates load the caller's account and check, in order: the account
exists (404), it is Approved (403), and its role is high enough (403).
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, Request

from servicedesk.exceptions import NotFoundError, PermissionDeniedError
from servicedesk.models.domain import User, UserRole
from servicedesk.services.auth import AuthOutcome
from servicedesk.services.container import ServiceContainer

logger = logging.getLogger(__name__)


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.container


def current_identity(
    authorization: Optional[str] = Header(default=None),
    services: ServiceContainer = Depends(get_services),
) -> AuthOutcome:
    """Token-only gate: any valid bearer token"""
    return services.tokens.verify(authorization)


def current_user_id(identity: AuthOutcome = Depends(current_identity)) -> UUID:
    """The caller's account id; subjects that are not account ids match no user"""
    try:
        return UUID(identity.user_id)
    except ValueError:
        raise NotFoundError("User not found")


def _role_gate(minimum: UserRole, label: str):
    def dependency(
        user_id: UUID = Depends(current_user_id),
        services: ServiceContainer = Depends(get_services),
    ) -> User:
        user = services.repositories.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        if not user.is_approved:
            raise PermissionDeniedError("Access denied - User not approved")
        if user.role.rank < minimum.rank:
            logger.info(f"User {user.id} ({user.role.value}) denied {label.lower()} route")
            raise PermissionDeniedError(f"Access denied - {label} privileges required")
        return user

    dependency.__name__ = f"require_{label.lower()}"
    return dependency


require_head = _role_gate(UserRole.HEAD, "Head")
require_admin = _role_gate(UserRole.ADMIN, "Admin")
require_director = _role_gate(UserRole.DIRECTOR, "Director")
