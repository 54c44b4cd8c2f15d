"""Bearer token helpers and the authenticated principal.

Tokens are issued by the external identity system; this module only needs the
shared secret to verify them. ``create_access_token`` exists for local tooling
and the test-suite.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

from jose import JWTError, jwt

from civic_report.core.settings import settings


class Role(str, Enum):
    """Roles understood by the lifecycle engine."""

    CITIZEN = "citizen"
    AGENT = "agent"
    ADMIN = "admin"


STAFF_ROLES = frozenset({Role.AGENT, Role.ADMIN})


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as supplied by the identity system."""

    id: str
    role: Role

    @property
    def is_staff(self) -> bool:
        """Return True for agents and admins."""
        return self.role in STAFF_ROLES

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


class InvalidTokenError(Exception):
    """Raised when a bearer token cannot be turned into a principal."""


def create_access_token(
    subject: str,
    role: Role | str = Role.CITIZEN,
    extra_claims: dict[str, str] | None = None,
) -> str:
    """Create a signed JWT carrying the subject and role claims."""
    to_encode: dict[str, object] = {"sub": subject, "role": Role(role).value}
    if extra_claims:
        to_encode.update(extra_claims)
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> Principal:
    """Verify ``token`` and return the principal it describes.

    Raises:
        InvalidTokenError: If the signature, expiry, subject or role is invalid.
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise InvalidTokenError("Could not validate credentials") from err

    subject = payload.get("sub")
    if not subject:
        raise InvalidTokenError("Could not validate credentials")
    try:
        role = Role(payload.get("role", Role.CITIZEN.value))
    except ValueError as err:
        raise InvalidTokenError("Unknown role claim") from err
    return Principal(id=str(subject), role=role)
