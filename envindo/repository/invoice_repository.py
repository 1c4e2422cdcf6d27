from datetime import date
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from envindo.models.invoice_model import Invoice, StatusPembayaran
from envindo.repository.base_repository import BaseRepository


class InvoiceRepository(BaseRepository[Invoice]):
    status_column = "status_pembayaran"

    def __init__(self):
        super().__init__(Invoice)

    async def nomor_exists(self, db: AsyncSession, nomor_invoice: str) -> bool:
        result = await db.execute(select(Invoice.id).filter(Invoice.nomor_invoice == nomor_invoice))
        return result.first() is not None

    async def list_by_transaksi(self, db: AsyncSession, transaksi_id: int) -> List[Invoice]:
        result = await db.execute(select(Invoice).filter(Invoice.transaksi_id == transaksi_id))
        return result.scalars().all()

    async def list_unresolved_for_transaksi(self, db: AsyncSession, transaksi_id: int) -> List[Invoice]:
        result = await db.execute(
            select(Invoice).filter(
                Invoice.transaksi_id == transaksi_id,
                Invoice.status_pembayaran.notin_(
                    [StatusPembayaran.LUNAS.value, StatusPembayaran.DIBATALKAN.value]
                ),
            )
        )
        return result.scalars().all()

    async def list_overdue_candidates(self, db: AsyncSession, today: date) -> List[Invoice]:
        result = await db.execute(
            select(Invoice).filter(
                Invoice.status_pembayaran.in_(
                    [StatusPembayaran.BELUM_BAYAR.value, StatusPembayaran.PARTIAL.value]
                ),
                Invoice.tanggal_jatuh_tempo < today,
            )
        )
        return result.scalars().all()


invoice_repository = InvoiceRepository()
