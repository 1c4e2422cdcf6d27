import datetime
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from envindo.models.log_model import ActivityLog

logger = logging.getLogger(__name__)

async def log_activity(
    db: AsyncSession,
    user_id: Optional[int],
    activity_type_category: str,
    activity_description: str,
    timestamp: Optional[datetime.datetime] = None
):
    """
    Records an audit row for a business event.

    The row joins the caller's unit of work and is committed (or rolled back)
    together with the change it describes.

    Args:
        db: The database session.
        user_id: The ID of the user performing the activity, None for system jobs.
        activity_type_category: The broad category of the activity (e.g., "Transaksi", "Manifest").
        activity_description: A human-readable description of what happened.
        timestamp: The datetime of the activity. Defaults to now.
    """
    if timestamp is None:
        timestamp = datetime.datetime.utcnow()

    log_entry = ActivityLog(
        timestamp=timestamp,
        user_id=user_id,
        activity_type_category=activity_type_category,
        activity_description=activity_description
    )

    db.add(log_entry)
    logger.info(f"[{activity_type_category}] {activity_description}")
