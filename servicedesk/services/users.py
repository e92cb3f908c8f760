"""
User Service

Account registration and login, approval workflow, profile and password
management, and the emailed one-time code used to reset a forgotten
password.
"""

import logging
import secrets
from datetime import timedelta
from typing import Any, Callable, List, Optional, Tuple
from uuid import UUID

from servicedesk.exceptions import NotFoundError, ServiceDeskError, ValidationError
from servicedesk.models.api import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    PushTokenRequest,
    RegisterRequest,
    UpdateProfileRequest,
    VerifyResetCodeRequest,
)
from servicedesk.models.domain import ApprovalStatus, User, UserRole, utcnow
from servicedesk.services import email_templates
from servicedesk.services.auth import TokenService, check_password, hash_password
from servicedesk.services.notifications import NotificationGateway
from servicedesk.services.repositories import UserRepository
from servicedesk.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.lower().strip()


def generate_reset_code() -> str:
    """Random 6-digit code"""
    return str(100000 + secrets.randbelow(900000))


class UserService:
    """Account operations"""

    def __init__(
        self,
        repository: UserRepository,
        tokens: TokenService,
        notifications: NotificationGateway,
        mailer,
        settings: Optional[Settings] = None,
        clock: Callable = utcnow,
    ):
        self.repository = repository
        self.tokens = tokens
        self.notifications = notifications
        self.mailer = mailer
        self.settings = settings or get_settings()
        self.clock = clock

    # ------------------------------------------------------------------
    # Registration and login
    # ------------------------------------------------------------------

    def register(self, payload: RegisterRequest) -> Tuple[User, str]:
        """
        Create a Pending account and a token for it.

        Returns:
            (user, token); the account cannot use role-gated routes until approved
        """
        email = normalize_email(payload.email)
        if self.repository.get_by_email(email) is not None:
            raise ValidationError("User already exists")
        if payload.role == UserRole.HEAD and payload.department is None:
            raise ValidationError("Department is required for head role")

        user = User(
            name=payload.name.strip(),
            email=email,
            phone=payload.phone.strip(),
            password_hash=hash_password(payload.password),
            role=payload.role,
            department=payload.department,
        )
        user = self.repository.insert(user)
        logger.info(f"Registered user {user.id} with role {user.role.value}")
        return user, self.tokens.issue(user.id)

    def login(self, payload: LoginRequest) -> Tuple[User, str]:
        user = self.repository.get_by_email(payload.email)
        if user is None:
            raise NotFoundError("User not found")
        if user.role != payload.role:
            raise ValidationError("Invalid role")
        if not user.is_approved:
            raise ValidationError("User not approved")
        if not check_password(user.password_hash, payload.password):
            raise ValidationError("Invalid credentials")
        return user, self.tokens.issue(user.id)

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def get(self, user_id: Any) -> User:
        user = self.repository.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, user_id: Any, payload: UpdateProfileRequest) -> User:
        user = self.get(user_id)
        if payload.email:
            email = normalize_email(payload.email)
            existing = self.repository.get_by_email(email)
            if existing is not None and existing.id != user.id:
                raise ValidationError("Email already in use")
            user.email = email
        if payload.name is not None:
            user.name = payload.name.strip()
        if payload.phone is not None:
            user.phone = payload.phone.strip()
        return self._save(user)

    def update_push_token(self, user_id: Any, payload: PushTokenRequest) -> User:
        if not payload.push_token:
            raise ValidationError("Push token is required")
        user = self.get(user_id)
        user.push_token = payload.push_token
        return self._save(user)

    # ------------------------------------------------------------------
    # Listing and approval
    # ------------------------------------------------------------------

    def list_users(self) -> List[User]:
        """Approved accounts with the plain user role (assignable staff)"""
        return self.repository.find(status=ApprovalStatus.APPROVED, fields={"role": UserRole.USER})

    def list_approved(self) -> List[User]:
        return self.repository.find(status=ApprovalStatus.APPROVED)

    def list_pending(self) -> List[User]:
        return self.repository.find(status=ApprovalStatus.PENDING)

    def change_status(self, user_id: Any, status: ApprovalStatus) -> User:
        user = self.get(user_id)
        user.status = status
        user = self._save(user)
        logger.info(f"User {user.id} status changed to {status.value}")

        if status == ApprovalStatus.APPROVED:
            self._notify_approved(user)
        return user

    def delete(self, user_id: UUID) -> None:
        if not self.repository.delete(user_id):
            raise NotFoundError("User not found")
        logger.info(f"Deleted user {user_id}")

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    def change_password(self, user_id: Any, payload: ChangePasswordRequest) -> None:
        user = self.get(user_id)
        if not check_password(user.password_hash, payload.old_password):
            raise ValidationError("Invalid old password")
        user.password_hash = hash_password(payload.new_password)
        self._save(user)

    def forgot_password(self, payload: ForgotPasswordRequest) -> str:
        """
        Store a short-lived reset code and email it to the account.

        Returns:
            The address the code was sent to

        Raises:
            ServiceDeskError: 500 when the email could not be sent; the
                stored code is cleared first
        """
        if not payload.email:
            raise ValidationError("Email is required")
        user = self.repository.get_by_email(payload.email)
        if user is None:
            raise NotFoundError("No account found with this email address")

        code = generate_reset_code()
        ttl = self.settings.RESET_CODE_TTL_SECONDS
        user.reset_code = code
        user.reset_code_expires = self.clock() + timedelta(seconds=ttl)
        user = self._save(user)

        brand = self.settings.MAIL_BRAND
        try:
            self.mailer.send(
                user.email,
                f"Password Reset - {brand}",
                email_templates.password_reset(brand, user, code, ttl),
            )
        except Exception as e:
            logger.error(f"Failed to send password reset email to {user.email}: {e}")
            self._clear_reset_code(user)
            raise ServiceDeskError("Failed to send verification code. Please try again later.", 500)

        return user.email

    def verify_reset_code(self, payload: VerifyResetCodeRequest) -> None:
        if not payload.email or not payload.code or not payload.new_password:
            raise ValidationError("Email, code, and new password are required")
        user = self.repository.get_by_email(payload.email)
        if user is None:
            raise NotFoundError("User not found")
        if not user.reset_code or user.reset_code_expires is None:
            raise ValidationError("No password reset request found")
        if user.reset_code != payload.code:
            raise ValidationError("Invalid verification code")
        if self.clock() > user.reset_code_expires:
            self._clear_reset_code(user)
            raise ValidationError("Verification code has expired. Please request a new one.")

        user.password_hash = hash_password(payload.new_password)
        user.reset_code = None
        user.reset_code_expires = None
        self._save(user)
        logger.info(f"Password reset for user {user.id}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _save(self, user: User) -> User:
        saved = self.repository.save(user)
        if saved is None:
            raise NotFoundError("User not found")
        return saved

    def _clear_reset_code(self, user: User) -> None:
        user.reset_code = None
        user.reset_code_expires = None
        self.repository.save(user)

    def _notify_approved(self, user: User) -> None:
        brand = self.settings.MAIL_BRAND
        try:
            self.notifications.notify_user(
                user,
                "Account Approved! 🎉",
                f"Welcome to {brand}, {user.name}! Your account has been approved.",
                {"type": "user_approved", "userId": str(user.id)},
                email_subject=f"Account Approved - {brand}",
                email_html=email_templates.account_approved(brand, user),
            )
        except Exception as e:
            logger.error(f"Failed to send approval notifications: {e}")
