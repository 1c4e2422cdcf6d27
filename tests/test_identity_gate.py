import base64
import json
from datetime import timedelta

import pytest
from jose import jwt

from conftest import auth_headers
from envindo.core.config import settings
from envindo.core.dependencies import decode_identity
from envindo.core.exceptions import UnauthenticatedError
from envindo.core.roles import Role
from envindo.utils.auth import create_access_token


def test_decode_identity_returns_claims():
    token = create_access_token(42, Role.ADMIN_KEUANGAN)["access_token"]
    identity = decode_identity(token)
    assert identity.user_id == 42
    assert identity.role is Role.ADMIN_KEUANGAN


def test_identity_is_immutable():
    identity = decode_identity(create_access_token(1, Role.USER)["access_token"])
    with pytest.raises(Exception):
        identity.role = Role.SUPERADMIN


def test_token_lifetime_defaults_to_a_day():
    token_data = create_access_token(1, Role.USER)
    assert token_data["expires_in"] == 24 * 60 * 60
    claims = jwt.get_unverified_claims(token_data["access_token"])
    assert claims["exp"] - claims["iat"] == 24 * 60 * 60
    assert claims["sub"] == "1"
    assert claims["role"] == "user"


def test_expired_token_rejected():
    token = create_access_token(1, Role.USER, expires_delta=timedelta(seconds=-30))["access_token"]
    with pytest.raises(UnauthenticatedError, match="expired"):
        decode_identity(token)


def test_token_signed_with_other_secret_rejected():
    token = jwt.encode({"sub": "1", "role": "superadmin", "exp": 9999999999}, "not-the-secret", algorithm="HS256")
    with pytest.raises(UnauthenticatedError):
        decode_identity(token)


@pytest.mark.parametrize(
    "claims",
    [
        {"sub": "1", "exp": 9999999999},
        {"sub": "1", "role": "root", "exp": 9999999999},
        {"sub": "abc", "role": "user", "exp": 9999999999},
        {"role": "user", "exp": 9999999999},
        {"sub": "1", "role": "user"},
    ],
)
def test_missing_or_unknown_claims_rejected(claims):
    token = jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.ALGORITHM)
    with pytest.raises(UnauthenticatedError):
        decode_identity(token)


def test_garbage_token_rejected():
    with pytest.raises(UnauthenticatedError):
        decode_identity("not-a-jwt")


async def test_missing_header_is_401(client):
    response = await client.get("/api/user/profile")
    assert response.status_code == 401
    body = response.json()
    assert body["status"] == "error"
    assert body["code"] == "UNAUTHORIZED"
    assert response.headers["WWW-Authenticate"] == "Bearer"


async def test_wrong_scheme_is_401(client, make_user):
    user = await make_user()
    token = create_access_token(user.id, Role.USER)["access_token"]
    response = await client.get("/api/user/profile", headers={"Authorization": f"Basic {token}"})
    assert response.status_code == 401


async def test_tampered_token_is_401(client, make_user):
    user = await make_user(Role.USER)
    header, _, signature = create_access_token(user.id, Role.USER)["access_token"].split(".")
    forged_claims = json.dumps({"sub": str(user.id), "role": "superadmin", "exp": 9999999999}).encode()
    forged_payload = base64.urlsafe_b64encode(forged_claims).rstrip(b"=").decode()
    tampered = f"{header}.{forged_payload}.{signature}"

    response = await client.get(
        "/api/superadmin/system-stats", headers={"Authorization": f"Bearer {tampered}"}
    )
    assert response.status_code == 401


async def test_expired_token_is_401(client, make_user):
    admin = await make_user(Role.SUPERADMIN)
    token = create_access_token(admin.id, Role.SUPERADMIN, expires_delta=timedelta(seconds=-1))["access_token"]
    response = await client.get("/api/dashboard/superadmin", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["message"] == "Token has expired"


@pytest.mark.parametrize(
    "role,path,expected",
    [
        (Role.USER, "/api/dashboard/user", 200),
        (Role.ADMIN_KEUANGAN, "/api/dashboard/user", 200),
        (Role.SUPERADMIN, "/api/dashboard/user", 200),
        (Role.USER, "/api/dashboard/admin", 403),
        (Role.ADMIN_KEUANGAN, "/api/dashboard/admin", 200),
        (Role.SUPERADMIN, "/api/dashboard/admin", 200),
        (Role.USER, "/api/dashboard/superadmin", 403),
        (Role.ADMIN_KEUANGAN, "/api/dashboard/superadmin", 403),
        (Role.SUPERADMIN, "/api/dashboard/superadmin", 200),
        (Role.USER, "/api/admin/users", 403),
        (Role.ADMIN_KEUANGAN, "/api/admin/users", 200),
        (Role.ADMIN_KEUANGAN, "/api/superadmin/system-stats", 403),
        (Role.SUPERADMIN, "/api/superadmin/system-stats", 200),
    ],
)
async def test_route_policy_per_role(client, make_user, role, path, expected):
    user = await make_user(role)
    response = await client.get(path, headers=auth_headers(user))
    assert response.status_code == expected
    if expected == 403:
        assert response.json()["code"] == "FORBIDDEN"
