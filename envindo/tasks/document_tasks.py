# envindo/tasks/document_tasks.py
import asyncio
import logging
from datetime import date
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.celery_app import celery_app
from envindo.core.database import DatabaseManager
from envindo.core.uow import UnitOfWork
from envindo.modules.documents.service import refresh_document_statuses

logger = logging.getLogger(__name__)


async def refresh_document_statuses_async(
    session_factory: Optional[Callable[[], AsyncSession]] = None,
    today: Optional[date] = None,
) -> int:
    async with UnitOfWork(session_factory) as db:
        return await refresh_document_statuses(db, today=today)


async def _run_with_fresh_engine() -> int:
    manager = DatabaseManager()
    try:
        return await refresh_document_statuses_async(manager.async_session_maker)
    finally:
        await manager.close()


@celery_app.task(name="tasks.refresh_document_statuses")
def refresh_document_statuses_task():
    """Persists the validity-derived status of cooperation documents."""
    logger.info("Running periodic task: refreshing document statuses")
    try:
        changed = asyncio.run(_run_with_fresh_engine())
    except Exception as e:
        logger.error(f"Error during refresh_document_statuses task: {e}", exc_info=True)
        raise
    logger.info(f"Document status refresh finished, {changed} document(s) updated.")
    return changed
