import pytest
from jose import jwt
from sqlalchemy import func, select

from conftest import TEST_PASSWORD, auth_headers
from envindo.core.roles import Role
from envindo.models import ActivityLog

REGISTRATION = {
    "username": "pt_maju",
    "email": "admin@ptmaju.co.id",
    "password": "kuatsekali1",
    "nama_lengkap": "Budi Santoso",
    "nama_perusahaan": "PT Maju Jaya",
}


async def test_register_creates_customer(client):
    response = await client.post("/api/auth/register", json={**REGISTRATION, "role": "superadmin"})
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["role"] == "user"
    assert data["envipoin"] == 0
    assert "password" not in data


@pytest.mark.parametrize("field,value", [("username", "PT_MAJU_2"), ("email", "lain@ptmaju.co.id")])
async def test_register_duplicate_is_conflict(client, field, value):
    await client.post("/api/auth/register", json=REGISTRATION)
    # Same username with a new e-mail, or the other way round
    duplicate = dict(REGISTRATION, **{field: value})
    response = await client.post("/api/auth/register", json=duplicate)
    assert response.status_code == 409


async def test_register_validates_input(client):
    response = await client.post("/api/auth/register", json=dict(REGISTRATION, password="short"))
    assert response.status_code == 400
    assert "password" in response.json()["errors"]


@pytest.mark.parametrize("login", ["pt_maju", "admin@ptmaju.co.id"])
async def test_login_by_username_or_email(client, login):
    await client.post("/api/auth/register", json=REGISTRATION)
    response = await client.post("/api/auth/login", json={"login": login, "password": REGISTRATION["password"]})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["user"]["username"] == "pt_maju"
    claims = jwt.get_unverified_claims(data["access_token"])
    assert claims["role"] == "user"
    assert claims["sub"] == str(data["user"]["id"])


async def test_bad_password_is_401_and_logged(client, session_factory, make_user):
    user = await make_user(Role.ADMIN_KEUANGAN)
    response = await client.post("/api/auth/login", json={"login": user.username, "password": "salah-salah"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"

    async with session_factory() as session:
        failures = await session.scalar(
            select(func.count(ActivityLog.id)).where(ActivityLog.activity_description.like("Login failed%"))
        )
    assert failures == 1


async def test_unknown_user_is_401(client):
    response = await client.post("/api/auth/login", json={"login": "tidak_ada", "password": "apa saja"})
    assert response.status_code == 401


async def test_inactive_account_is_403(client, make_user):
    user = await make_user(is_active=False)
    response = await client.post("/api/auth/login", json={"login": user.username, "password": TEST_PASSWORD})
    assert response.status_code == 403


async def test_back_office_accounts_log_in_through_the_same_route(client, make_user):
    superadmin = await make_user(Role.SUPERADMIN)
    response = await client.post("/api/auth/login", json={"login": superadmin.email, "password": TEST_PASSWORD})
    assert response.status_code == 200
    assert response.json()["data"]["user"]["role"] == "superadmin"


async def test_profile_returns_caller(client, make_user):
    user = await make_user(envipoin=75)
    response = await client.get("/api/user/profile", headers=auth_headers(user))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == user.id
    assert data["envipoin"] == 75
