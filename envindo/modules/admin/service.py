from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.exceptions import ConflictError, NotFoundError
from envindo.models import user_model
from envindo.modules.coordinator import service as coordinator
from envindo.repository.user_repository import user_repository
from envindo.schemas.token_schema import Identity
from envindo.utils.activity_logger import log_activity


async def list_users(
    db: AsyncSession, role: Optional[str] = None, skip: int = 0, limit: int = 100
) -> List[user_model.Users]:
    return await user_repository.get_users(db, role=role, skip=skip, limit=limit)


async def get_user(db: AsyncSession, user_id: int) -> user_model.Users:
    user = await user_repository.get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def update_user_status(
    db: AsyncSession, identity: Identity, user_id: int, is_active: bool
) -> user_model.Users:
    user = await get_user(db, user_id)
    if user.id == identity.user_id and not is_active:
        raise ConflictError("You cannot deactivate your own account")
    user = await user_repository.update_user_status(db, user, is_active)
    await log_activity(
        db,
        user_id=identity.user_id,
        activity_type_category="Data/CRUD",
        activity_description=f"User '{user.username}' {'activated' if is_active else 'deactivated'}.",
    )
    await db.commit()
    return user


async def delete_user(db: AsyncSession, identity: Identity, user_id: int) -> None:
    """Deletes an account and, by cascade, everything it owns."""
    user = await coordinator.delete_user(db, user_id, acting_user_id=identity.user_id)
    await log_activity(
        db,
        user_id=identity.user_id,
        activity_type_category="Data/CRUD",
        activity_description=f"User '{user.username}' deleted with all owned records.",
    )
    await db.commit()
