import logging

from sqlalchemy.ext.asyncio import AsyncSession

from envindo.models.layanan_model import Layanan
from envindo.models.transaksi_model import TransaksiLayanan
from envindo.repository.transaksi_repository import transaksi_repository
from envindo.repository.user_repository import user_repository
from envindo.utils.activity_logger import log_activity

logger = logging.getLogger(__name__)


async def credit_subscription_reward(db: AsyncSession, transaksi: TransaksiLayanan) -> int:
    """
    Credits the catalog reward of a completed subscription to its owner.

    The ``envipoin_dikreditkan`` marker is claimed first with a conditional
    update; only the caller that flips it gets to add the points, so retries
    and concurrent completions credit nothing. Runs inside the completing
    transition's unit of work and never commits.

    Returns the number of points credited (0 when already credited).
    """
    if not await transaksi_repository.claim_reward_marker(db, transaksi.id):
        logger.info(f"Reward for transaksi {transaksi.kode_transaksi} already credited, skipping.")
        return 0

    layanan = await db.get(Layanan, transaksi.layanan_id)
    reward = layanan.envipoin_reward if layanan else 0
    if reward > 0:
        await user_repository.add_envipoin(db, transaksi.user_id, reward)

    await db.refresh(transaksi)
    await log_activity(
        db,
        user_id=transaksi.user_id,
        activity_type_category="Envipoin",
        activity_description=f"Credited {reward} envipoin for transaksi {transaksi.kode_transaksi}.",
    )
    return reward
