"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from civic_report.core.security import InvalidTokenError, Principal, decode_access_token
from civic_report.db.session import get_db
from civic_report.schemas import ErrorResponse
from civic_report.services.lifecycle import LifecycleEngine

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()
optional_bearer_scheme = HTTPBearer(auto_error=False)

# Documented bodies for the failures the LifecycleError handler renders
ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_403_FORBIDDEN: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_409_CONFLICT: {"model": ErrorResponse},
}

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def _principal_from(credentials: HTTPAuthorizationCredentials) -> Principal:
    try:
        return decode_access_token(credentials.credentials)
    except InvalidTokenError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(err),
            headers={"WWW-Authenticate": "Bearer"},
        ) from err


def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> Principal:
    """Return the authenticated caller described by the bearer token.

    Raises:
        HTTPException: If the token is missing, expired or malformed
    """
    return _principal_from(credentials)


def get_optional_principal(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(optional_bearer_scheme)
    ],
) -> Principal | None:
    """Like ``get_current_principal`` but anonymous callers get ``None``.

    A token that is present but invalid is still rejected.
    """
    if credentials is None:
        return None
    return _principal_from(credentials)


def get_lifecycle_engine(db: SessionDep) -> LifecycleEngine:
    """Return an engine bound to the request's session."""
    return LifecycleEngine(db)


# Type aliases for principal and engine dependencies
CurrentPrincipalDep = Annotated[Principal, Depends(get_current_principal)]
OptionalPrincipalDep = Annotated[Principal | None, Depends(get_optional_principal)]
EngineDep = Annotated[LifecycleEngine, Depends(get_lifecycle_engine)]
