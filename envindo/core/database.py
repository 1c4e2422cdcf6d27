from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.future import select
from sqlalchemy import event
from sqlalchemy.engine import Engine
from envindo.core.config import settings
from envindo.core.roles import Role
from typing import AsyncGenerator
import asyncio
import logging
from envindo.utils.security import get_password_hash
from envindo.models.base import Base

import envindo.models

logger = logging.getLogger(__name__)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""
    if "sqlite" in type(dbapi_connection).__module__:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class DatabaseManager:
    def __init__(self, database_url: str = settings.DATABASE_URL):
        """Initializes the database engine and session maker upon creation."""
        self.engine = create_async_engine(database_url, echo=False)
        self.async_session_maker = async_sessionmaker(
            self.engine, expire_on_commit=False, class_=AsyncSession
        )

    async def close(self):
        """Closes the database engine connections."""
        if self.engine:
            await self.engine.dispose()

    async def get_db_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provides a database session."""
        async with self.async_session_maker() as session:
            yield session

db_manager = DatabaseManager()

async def create_super_admin(db_session: AsyncSession):
    """Creates the initial super admin user from environment variables or defaults."""
    if settings.SUPERADMIN_PASSWORD == "superadmin":
        logger.warning("SUPERADMIN_PASSWORD not set. Using default password.")

    from envindo.models.user_model import Users as UserModel
    result = await db_session.execute(select(UserModel).filter(UserModel.username == settings.SUPERADMIN_USERNAME))
    if result.scalar_one_or_none():
        logger.info("Super admin user '%s' already exists.", settings.SUPERADMIN_USERNAME)
        return

    super_admin = UserModel(
        username=settings.SUPERADMIN_USERNAME,
        email=settings.SUPERADMIN_EMAIL,
        password=get_password_hash(settings.SUPERADMIN_PASSWORD),
        role=Role.SUPERADMIN.value,
        nama_lengkap="Super Admin",
    )
    db_session.add(super_admin)
    await db_session.commit()
    logger.info("Super admin user '%s' created successfully.", settings.SUPERADMIN_USERNAME)

async def init_db():
    """
    Creates all database tables and the initial super admin.
    Schema migrations are managed outside this service; this is for local setups.
    """
    logger.info("Initializing database...")
    async with db_manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with db_manager.async_session_maker() as db:
        await create_super_admin(db)

    logger.info("Database initialization finished successfully.")

if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL)
    asyncio.run(init_db())
