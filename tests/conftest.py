import os

# Settings are read on first import of envindo, so the test environment has to
# be in place before anything below imports it.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./envindo_test.db")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("PPN_RATE", "0.11")
os.environ.setdefault("INVOICE_DUE_DAYS", "7")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from envindo.core.dependencies import get_db
from envindo.core.roles import Role
from envindo.main import app
from envindo.models import Layanan, Users
from envindo.models.base import Base
from envindo.schemas.token_schema import Identity
from envindo.utils.auth import create_access_token
from envindo.utils.security import get_password_hash

TEST_PASSWORD = "rahasia123"
# Hash once for the whole run
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    # A file, not :memory:, so separate sessions see the same database
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'envindo.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client against the app with get_db bound to the test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    async def _make_user(role: Role = Role.USER, envipoin: int = 0, is_active: bool = True) -> Users:
        counter["n"] += 1
        user = Users(
            username=f"{role.value}{counter['n']}",
            email=f"{role.value}{counter['n']}@example.com",
            password=TEST_PASSWORD_HASH,
            role=role.value,
            nama_lengkap=f"Test {role.value} {counter['n']}",
            nama_perusahaan="PT Uji Coba",
            envipoin=envipoin,
            is_active=is_active,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_layanan(db):
    counter = {"n": 0}

    async def _make_layanan(
        harga: str = "1000000",
        envipoin_reward: int = 50,
        durasi_hari: int = 30,
        is_active: bool = True,
        tipe_layanan: str = "Envi+",
    ) -> Layanan:
        counter["n"] += 1
        layanan = Layanan(
            kode_layanan=f"SRV-{counter['n']:03d}",
            nama_layanan=f"Layanan Uji {counter['n']}",
            harga=Decimal(harga),
            satuan="bulan",
            tipe_layanan=tipe_layanan,
            durasi_hari=durasi_hari,
            envipoin_reward=envipoin_reward,
            is_active=is_active,
        )
        db.add(layanan)
        await db.commit()
        await db.refresh(layanan)
        return layanan

    return _make_layanan


def identity_of(user: Users) -> Identity:
    return Identity(user_id=user.id, role=Role(user.role))


def auth_headers(user: Users) -> dict:
    token = create_access_token(user.id, Role(user.role))["access_token"]
    return {"Authorization": f"Bearer {token}"}
