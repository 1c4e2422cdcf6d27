import logging
from types import TracebackType
from typing import Callable, Optional, Type

from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.database import db_manager

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    Session scope for jobs that run outside a request (Celery beat tasks).

    ``async with UnitOfWork(factory) as db:`` yields a session, commits when
    the block finishes and rolls back if it raises. Services called inside may
    commit on their own; the final commit is then a no-op.
    """

    def __init__(self, session_factory: Optional[Callable[[], AsyncSession]] = None):
        self._session_factory = session_factory or db_manager.async_session_maker
        self._session: Optional[AsyncSession] = None

    async def __aenter__(self) -> AsyncSession:
        self._session = self._session_factory()
        return self._session

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        session, self._session = self._session, None
        try:
            if exc_type is None:
                await session.commit()
            else:
                logger.warning(f"Rolling back job session after {exc_type.__name__}: {exc}")
                await session.rollback()
        finally:
            await session.close()
