"""Actor identity for CabDispatch commands and operations."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List

import jwt

from cabdispatch import config

logger = logging.getLogger(__name__)


class Role(Enum):
    """Roles allowed to act on bookings."""
    DISPATCHER = "dispatcher"
    DRIVER = "driver"
    ADMIN = "admin"


class AuthError(Exception):
    """Custom exception for authentication errors."""
    pass


@dataclass(frozen=True)
class Actor:
    """The verified user behind a request."""
    user_id: str
    role: Role


class IdentityService:
    """Service for issuing and verifying actor tokens."""

    @staticmethod
    def issue_token(user_id: str, role: str, hours: int = None) -> str:
        """
        Generate a JWT token for an actor.

        Args:
            user_id: User ID to encode in the token
            role: Role of the user (dispatcher, driver, admin)
            hours: Token lifetime, defaults to the configured expiration

        Returns:
            str: JWT token

        Raises:
            AuthError: If the role is unknown
        """
        try:
            role_value = Role(role).value
        except ValueError:
            raise AuthError(f"Unknown role: {role}")

        now = datetime.now(timezone.utc)
        payload = {
            "user_id": user_id,
            "role": role_value,
            "exp": now + timedelta(hours=hours or config.JWT_EXPIRATION_HOURS),
            "iat": now,
        }
        return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """
        Verify a JWT token and return its payload.

        Raises:
            AuthError: If token is invalid or expired
        """
        try:
            return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
        except jwt.PyJWTError as e:
            raise AuthError(f"Invalid token: {str(e)}")

    @staticmethod
    def verify_token(token: str) -> Actor:
        """
        Verify a token and return the actor it identifies.

        Raises:
            AuthError: If the token is invalid or carries no usable identity
        """
        payload = IdentityService.decode_token(token)

        user_id = payload.get("user_id")
        if not user_id:
            raise AuthError("Invalid token: missing user_id")

        try:
            role = Role(payload.get("role"))
        except ValueError:
            raise AuthError(f"Invalid token: unknown role {payload.get('role')}")

        return Actor(user_id=user_id, role=role)

    @staticmethod
    def require_role(token: str, roles: List[str]) -> Actor:
        """
        Verify a token and check the actor holds one of the given roles.

        Raises:
            AuthError: If the token is invalid or the role is not allowed
        """
        actor = IdentityService.verify_token(token)
        if actor.role.value not in roles:
            logger.info("Access denied for %s with role %s", actor.user_id, actor.role.value)
            raise AuthError(f"This action requires one of the following roles: {', '.join(roles)}")
        return actor
