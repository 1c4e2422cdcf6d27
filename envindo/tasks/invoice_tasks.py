# envindo/tasks/invoice_tasks.py
import asyncio
import logging
from datetime import date
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.celery_app import celery_app
from envindo.core.database import DatabaseManager
from envindo.core.uow import UnitOfWork
from envindo.modules.invoices.service import invoice_service

logger = logging.getLogger(__name__)


async def sweep_overdue_invoices_async(
    session_factory: Optional[Callable[[], AsyncSession]] = None,
    today: Optional[date] = None,
) -> int:
    async with UnitOfWork(session_factory) as db:
        return await invoice_service.sweep_overdue(db, today=today)


async def _run_with_fresh_engine() -> int:
    # Each task run gets its own engine bound to the loop asyncio.run creates
    manager = DatabaseManager()
    try:
        return await sweep_overdue_invoices_async(manager.async_session_maker)
    finally:
        await manager.close()


@celery_app.task(name="tasks.sweep_overdue_invoices")
def sweep_overdue_invoices():
    """
    A periodic task that persists 'jatuh_tempo' on unpaid invoices past their due date.
    """
    logger.info("Running periodic task: sweeping overdue invoices")
    try:
        swept = asyncio.run(_run_with_fresh_engine())
    except Exception as e:
        logger.error(f"Error during sweep_overdue_invoices task: {e}", exc_info=True)
        raise
    logger.info(f"Overdue sweep finished, {swept} invoice(s) marked jatuh_tempo.")
    return swept
