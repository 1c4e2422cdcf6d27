import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.exceptions import ConflictError, ForbiddenError, NotFoundError, UnauthenticatedError
from envindo.core.roles import Role
from envindo.models import user_model
from envindo.repository.user_repository import user_repository
from envindo.schemas import user_schema
from envindo.utils import auth
from envindo.utils.activity_logger import log_activity
from envindo.utils.security import get_password_hash, verify_password

logger = logging.getLogger(__name__)


async def register_user(db: AsyncSession, user_data: user_schema.UserRegistration) -> user_model.Users:
    """
    Registers a customer account. Self-registration always yields the ``user``
    role; back-office accounts are created by a superadmin.
    """
    if await user_repository.exists_username_or_email(db, user_data.username, user_data.email):
        raise ConflictError("Username or email is already registered")

    db_user = user_model.Users(
        username=user_data.username,
        email=user_data.email,
        password=get_password_hash(user_data.password),
        role=Role.USER.value,
        nama_lengkap=user_data.nama_lengkap,
        nama_perusahaan=user_data.nama_perusahaan,
        alamat_perusahaan=user_data.alamat_perusahaan,
        telepon=user_data.telepon,
        is_active=True,
        envipoin=0,
    )
    try:
        db_user = await user_repository.add(db, db_user)
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Username or email is already registered")

    await log_activity(
        db,
        user_id=db_user.id,
        activity_type_category="Login/Akses",
        activity_description=f"User '{db_user.username}' registered.",
    )
    await db.commit()
    return db_user


async def authenticate_user(db: AsyncSession, login: str, password: str) -> Optional[user_model.Users]:
    """Returns the user when ``login`` (username or email) and password match, else None."""
    user = await user_repository.get_user_by_login(db, login)
    if not user or not verify_password(password, user.password):
        return None
    return user


async def login(db: AsyncSession, credentials: user_schema.UserLogin) -> dict:
    user = await authenticate_user(db, credentials.login, credentials.password)
    if user is None:
        await log_activity(
            db,
            user_id=None,
            activity_type_category="Login/Akses",
            activity_description=f"Login failed for '{credentials.login}'.",
        )
        await db.commit()
        raise UnauthenticatedError("Invalid credentials")
    if not user.is_active:
        raise ForbiddenError("Account is inactive")

    token_data = auth.create_access_token(user.id, Role(user.role))
    await log_activity(
        db,
        user_id=user.id,
        activity_type_category="Login/Akses",
        activity_description=f"User '{user.username}' logged in.",
    )
    await db.commit()
    return {
        "access_token": token_data["access_token"],
        "token_type": "bearer",
        "expires_in": token_data["expires_in"],
        "user": user,
    }


async def get_profile(db: AsyncSession, user_id: int) -> user_model.Users:
    user = await user_repository.get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user
