"""
Notification Gateway

Fans a notification out to staff by push and email. Recipients are
resolved to approved accounts only. Delivery is best-effort: every
transport failure is logged and swallowed so the entity mutation that
triggered the notification is never affected.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from servicedesk.models.domain import User, UserRole
from servicedesk.services.repositories import UserRepository

logger = logging.getLogger(__name__)

ADMIN_ROLES = (UserRole.ADMIN, UserRole.DIRECTOR)


class RecipientResolver:
    """Turns a role filter or an id list into approved user records"""

    def __init__(self, users: UserRepository):
        self.users = users

    def by_roles(self, roles: Sequence[UserRole] = ADMIN_ROLES) -> List[User]:
        return self.users.find_approved(roles=roles)

    def by_ids(self, user_ids: Iterable[Any]) -> List[User]:
        ids = [str(i) for i in user_ids]
        if not ids:
            return []
        return self.users.find_approved(ids=ids)


class NotificationGateway:
    """
    Sends push and email notifications to resolved recipients.

    ``mailer`` needs ``send(to, subject, html)`` and ``push_client`` needs
    ``send(tokens, title, body, data)``; see servicedesk.utils.
    """

    def __init__(self, resolver: RecipientResolver, mailer, push_client):
        self.resolver = resolver
        self.mailer = mailer
        self.push_client = push_client

    def notify_roles(
        self,
        subject: str,
        html: str,
        push_title: Optional[str] = None,
        push_body: Optional[str] = None,
        push_data: Optional[Dict[str, Any]] = None,
        roles: Sequence[UserRole] = ADMIN_ROLES,
    ) -> int:
        """
        Notify every approved user holding one of ``roles``.

        Push goes out only when both title and body are given; every
        recipient gets the email.

        Returns:
            Number of recipients resolved (0 when resolution failed)
        """
        try:
            recipients = self.resolver.by_roles(roles)
        except Exception as e:
            logger.error(f"Failed to resolve notification recipients for roles {list(roles)}: {e}")
            return 0

        if not recipients:
            return 0

        if push_title and push_body:
            self._push(recipients, push_title, push_body, push_data)
        self._email(recipients, subject, html)
        return len(recipients)

    def notify_users(
        self,
        user_ids: Iterable[Any],
        push_title: str,
        push_body: str,
        push_data: Optional[Dict[str, Any]] = None,
        email_subject: Optional[str] = None,
        email_html: Optional[str] = None,
    ) -> int:
        """
        Notify the approved users among ``user_ids``.

        Push always; email only when both subject and html are given.
        """
        try:
            recipients = self.resolver.by_ids(user_ids)
        except Exception as e:
            logger.error(f"Failed to resolve notification recipients: {e}")
            return 0

        if not recipients:
            return 0

        self._push(recipients, push_title, push_body, push_data)
        if email_subject and email_html:
            self._email(recipients, email_subject, email_html)
        return len(recipients)

    def notify_user(
        self,
        user: User,
        push_title: str,
        push_body: str,
        push_data: Optional[Dict[str, Any]] = None,
        email_subject: Optional[str] = None,
        email_html: Optional[str] = None,
    ) -> None:
        """Notify one already-loaded user regardless of how they were found."""
        self._push([user], push_title, push_body, push_data)
        if email_subject and email_html:
            self._email([user], email_subject, email_html)

    def _push(
        self,
        recipients: Sequence[User],
        title: str,
        body: str,
        data: Optional[Dict[str, Any]],
    ) -> None:
        tokens = [user.push_token for user in recipients if user.push_token]
        if not tokens:
            return
        try:
            self.push_client.send(tokens, title, body, data)
        except Exception as e:
            logger.error(f"Failed to send push notifications: {e}")

    def _email(self, recipients: Sequence[User], subject: str, html: str) -> None:
        for user in recipients:
            try:
                self.mailer.send(user.email, subject, html)
            except Exception as e:
                logger.error(f"Failed to send email '{subject}' to {user.email}: {e}")
