# Unit Tests for bearer-token authentication
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from claims_case_service.app.config import settings
from claims_case_service.app.dependencies.auth import decode_acting_user, get_current_user, require_admin
from claims_case_service.app.models import ActingUser


def make_token(claims, secret=None) -> str:
    return jwt.encode(claims, secret or settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def test_decode_reads_subject_name_and_role():
    user = decode_acting_user(make_token({"sub": "u-1", "name": "Ada", "role": "admin"}))

    assert user == ActingUser(id="u-1", name="Ada", role="admin")
    assert user.is_admin


def test_decode_accepts_id_claim_and_defaults_role():
    user = decode_acting_user(make_token({"id": "u-2"}))

    assert user.id == "u-2"
    assert user.name == "u-2"
    assert user.role == "employee"
    assert not user.is_admin


@pytest.mark.asyncio
async def test_missing_credentials_is_401():
    with pytest.raises(HTTPException) as exc_info:
        await get_current_user(None)
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_wrong_signature_is_401():
    token = make_token({"sub": "u-1"}, secret="not-the-secret")
    with pytest.raises(HTTPException) as exc_info:
        await get_current_user(bearer(token))
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_unknown_role_is_401():
    with pytest.raises(HTTPException) as exc_info:
        await get_current_user(bearer(make_token({"sub": "u-1", "role": "superuser"})))
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_token_without_subject_is_401():
    with pytest.raises(HTTPException) as exc_info:
        await get_current_user(bearer(make_token({"name": "nobody"})))
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_require_admin(admin_user, employee_user):
    assert await require_admin(admin_user) is admin_user
    with pytest.raises(HTTPException) as exc_info:
        await require_admin(employee_user)
    assert exc_info.value.status_code == 403
