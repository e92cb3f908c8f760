"""
Authentication

Issues and verifies bearer tokens and hashes passwords.

Two kinds of bearer token are accepted. Short tokens are ones this server
issued: HS256-signed, carrying ``{id}``. Long tokens come from an external
OAuth provider and are decoded WITHOUT signature verification, trusting
their ``sub`` claim. The two outcomes are kept as distinct types so callers
can tell a verified identity from a merely asserted one.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional, Union

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from servicedesk.exceptions import AuthenticationError, ConfigurationError
from servicedesk.models.domain import utcnow
from servicedesk.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerifiedToken:
    """Signature checked against JWT_SECRET"""

    user_id: str
    kind: str = "verified"
    trusted: bool = True


@dataclass(frozen=True)
class UnverifiedExternalToken:
    """Decoded without any signature check; ``user_id`` is the token's ``sub``"""

    user_id: str
    kind: str = "unverified_external"
    trusted: bool = False


AuthOutcome = Union[VerifiedToken, UnverifiedExternalToken]


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def check_password(password_hash: str, password: str) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """The token part of an ``Authorization: Bearer <token>`` header"""
    if not authorization:
        return None
    parts = authorization.split(" ")
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1]


class TokenService:
    """Issues server tokens and classifies incoming ones"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def _secret(self) -> str:
        if not self.settings.JWT_SECRET:
            raise ConfigurationError("Internal server error - JWT secret not configured")
        return self.settings.JWT_SECRET

    def issue(self, user_id: Any) -> str:
        """Signed token for ``user_id`` valid for TOKEN_TTL_DAYS"""
        payload = {
            "id": str(user_id),
            "exp": utcnow() + timedelta(days=self.settings.TOKEN_TTL_DAYS),
        }
        return jwt.encode(payload, self._secret(), algorithm=self.settings.JWT_ALGORITHM)

    def verify(self, authorization: Optional[str]) -> AuthOutcome:
        """
        Authenticate an Authorization header value.

        Args:
            authorization: Raw header, e.g. "Bearer eyJ..."

        Returns:
            VerifiedToken for server-issued tokens, UnverifiedExternalToken
            for long external tokens

        Raises:
            AuthenticationError: No token, bad signature, expired or unreadable token
            ConfigurationError: JWT_SECRET is not set
        """
        token = bearer_token(authorization)
        if not token:
            raise AuthenticationError("Unauthorized - No token provided")

        secret = self._secret()

        if len(token) < self.settings.EXTERNAL_TOKEN_MIN_LENGTH:
            try:
                payload = jwt.decode(token, secret, algorithms=[self.settings.JWT_ALGORITHM])
            except jwt.InvalidTokenError as e:
                logger.debug(f"Rejected server token: {e}")
                raise AuthenticationError("Invalid token")
            user_id = payload.get("id")
            if not user_id:
                raise AuthenticationError("Invalid token")
            return VerifiedToken(user_id=str(user_id))

        try:
            payload = jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError as e:
            logger.debug(f"Rejected external token: {e}")
            raise AuthenticationError("Invalid token format")
        subject = payload.get("sub") if isinstance(payload, dict) else None
        if not subject:
            raise AuthenticationError("Invalid token format")
        logger.warning(f"Accepted unverified external token for subject {subject}")
        return UnverifiedExternalToken(user_id=str(subject))
