"""Tests for API dependencies and bearer token handling."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi import HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from civic_report.api.v1.dependencies import get_current_principal, get_optional_principal
from civic_report.core.security import (
    InvalidTokenError,
    Principal,
    Role,
    create_access_token,
    decode_access_token,
)
from civic_report.core.settings import settings


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestTokens:
    def test_round_trip(self):
        token = create_access_token("user-42", Role.AGENT)
        assert decode_access_token(token) == Principal(id="user-42", role=Role.AGENT)

    def test_role_defaults_to_citizen(self):
        token = jwt.encode({"sub": "user-1"}, settings.secret_key, algorithm=settings.jwt_algorithm)
        assert decode_access_token(token).role is Role.CITIZEN

    def test_unknown_role(self):
        token = jwt.encode(
            {"sub": "user-1", "role": "mayor"},
            settings.secret_key,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(InvalidTokenError):
            decode_access_token(token)

    def test_missing_subject(self):
        token = jwt.encode({"role": "admin"}, settings.secret_key, algorithm=settings.jwt_algorithm)
        with pytest.raises(InvalidTokenError):
            decode_access_token(token)

    def test_expired_token(self):
        token = jwt.encode(
            {"sub": "user-1", "exp": datetime.now(UTC) - timedelta(minutes=1)},
            settings.secret_key,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(InvalidTokenError):
            decode_access_token(token)

    def test_wrong_signature(self):
        token = jwt.encode({"sub": "user-1"}, "another-secret", algorithm=settings.jwt_algorithm)
        with pytest.raises(InvalidTokenError):
            decode_access_token(token)


class TestPrincipalDependencies:
    def test_current_principal(self):
        token = create_access_token("admin-9", "admin")
        principal = get_current_principal(_credentials(token))
        assert principal.is_admin and principal.is_staff

    def test_invalid_token_is_401(self):
        with pytest.raises(HTTPException) as exc_info:
            get_current_principal(_credentials("garbage"))
        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED

    def test_optional_principal_allows_anonymous(self):
        assert get_optional_principal(None) is None

    def test_optional_principal_still_validates(self):
        with pytest.raises(HTTPException):
            get_optional_principal(_credentials("garbage"))

    def test_citizen_is_not_staff(self):
        principal = get_optional_principal(_credentials(create_access_token("c-1")))
        assert principal == Principal(id="c-1", role=Role.CITIZEN)
        assert not principal.is_staff
