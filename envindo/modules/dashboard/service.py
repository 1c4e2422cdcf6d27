from datetime import date, datetime
from typing import Dict

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from envindo.models.dokumen_model import DokumenKerjasama
from envindo.models.invoice_model import Invoice, StatusPembayaran
from envindo.models.layanan_model import Layanan
from envindo.models.manifest_model import ManifestElektronik
from envindo.models.pengangkutan_model import RiwayatPengangkutan
from envindo.models.transaksi_model import StatusTransaksi, TransaksiLayanan
from envindo.models.user_model import Users
from envindo.schemas import transaksi_schema
from envindo.core.exceptions import NotFoundError

_UNPAID = [StatusPembayaran.BELUM_BAYAR.value, StatusPembayaran.PARTIAL.value, StatusPembayaran.JATUH_TEMPO.value]


class DashboardService:
    @staticmethod
    async def _count_by(db: AsyncSession, column) -> Dict[str, int]:
        result = await db.execute(select(column, func.count()).group_by(column))
        return {key: count for key, count in result.all()}

    async def get_user_dashboard(self, db: AsyncSession, user_id: int) -> dict:
        user = await db.get(Users, user_id)
        if user is None:
            raise NotFoundError("User not found")

        active_services = await db.scalar(
            select(func.count(TransaksiLayanan.id)).where(
                and_(TransaksiLayanan.user_id == user_id, TransaksiLayanan.status == StatusTransaksi.AKTIF.value)
            )
        )
        total_transactions = await db.scalar(
            select(func.count(TransaksiLayanan.id)).where(TransaksiLayanan.user_id == user_id)
        )
        pending_invoices = await db.scalar(
            select(func.count(Invoice.id)).where(
                and_(Invoice.user_id == user_id, Invoice.status_pembayaran.in_(_UNPAID))
            )
        )
        total_waste_kg = await db.scalar(
            select(func.coalesce(func.sum(RiwayatPengangkutan.berat_kg), 0)).where(
                RiwayatPengangkutan.user_id == user_id
            )
        )
        recent = await db.execute(
            select(TransaksiLayanan)
            .where(TransaksiLayanan.user_id == user_id)
            .order_by(TransaksiLayanan.id.desc())
            .limit(5)
        )

        return {
            "envipoin": user.envipoin,
            "active_services": active_services or 0,
            "total_transactions": total_transactions or 0,
            "pending_invoices": pending_invoices or 0,
            "total_waste_kg": float(total_waste_kg or 0),
            "recent_transactions": [
                transaksi_schema.Transaksi.model_validate(t) for t in recent.scalars().all()
            ],
            "user_info": {
                "id": user.id,
                "username": user.username,
                "nama_lengkap": user.nama_lengkap,
                "nama_perusahaan": user.nama_perusahaan,
                "layanan_aktif": user.layanan_aktif,
                "masa_berlaku": user.masa_berlaku,
            },
        }

    async def get_admin_dashboard(self, db: AsyncSession) -> dict:
        now = datetime.utcnow()
        total_users = await db.scalar(select(func.count(Users.id)).where(Users.role == "user"))
        active_users = await db.scalar(
            select(func.count(Users.id)).where(and_(Users.role == "user", Users.masa_berlaku >= now))
        )
        total_transactions = await db.scalar(select(func.count(TransaksiLayanan.id)))
        pending_transactions = await db.scalar(
            select(func.count(TransaksiLayanan.id)).where(
                TransaksiLayanan.status.in_([StatusTransaksi.PENDING.value, StatusTransaksi.DIPROSES.value])
            )
        )
        total_invoices = await db.scalar(select(func.count(Invoice.id)))
        pending_invoices = await db.scalar(
            select(func.count(Invoice.id)).where(Invoice.status_pembayaran.in_(_UNPAID))
        )
        overdue_invoices = await db.scalar(
            select(func.count(Invoice.id)).where(
                and_(Invoice.status_pembayaran.in_(_UNPAID), Invoice.tanggal_jatuh_tempo < date.today())
            )
        )
        total_revenue = await db.scalar(
            select(func.coalesce(func.sum(Invoice.total_tagihan), 0)).where(
                Invoice.status_pembayaran == StatusPembayaran.LUNAS.value
            )
        )
        outstanding = await db.scalar(
            select(func.coalesce(func.sum(Invoice.total_tagihan - Invoice.jumlah_dibayar), 0)).where(
                Invoice.status_pembayaran.in_(_UNPAID)
            )
        )

        return {
            "user_statistics": {"total_users": total_users or 0, "active_users": active_users or 0},
            "transaction_statistics": {
                "total_transactions": total_transactions or 0,
                "pending_transactions": pending_transactions or 0,
            },
            "financial_overview": {
                "total_invoices": total_invoices or 0,
                "pending_invoices": pending_invoices or 0,
                "overdue_invoices": overdue_invoices or 0,
                "total_revenue": float(total_revenue or 0),
                "outstanding_revenue": float(outstanding or 0),
            },
        }

    async def get_superadmin_dashboard(self, db: AsyncSession) -> dict:
        total_waste = await db.scalar(select(func.coalesce(func.sum(RiwayatPengangkutan.berat_kg), 0)))
        total_revenue = await db.scalar(
            select(func.coalesce(func.sum(Invoice.total_tagihan), 0)).where(
                Invoice.status_pembayaran == StatusPembayaran.LUNAS.value
            )
        )
        return {
            "users_by_role": await self._count_by(db, Users.role),
            "service_statistics": {
                "total_services": await db.scalar(select(func.count(Layanan.id))) or 0,
                "active_services": await db.scalar(
                    select(func.count(Layanan.id)).where(Layanan.is_active.is_(True))
                ) or 0,
            },
            "transactions_by_status": await self._count_by(db, TransaksiLayanan.status),
            "manifests_by_status": await self._count_by(db, ManifestElektronik.status_manifest),
            "waste_statistics": {"total_waste_kg": float(total_waste or 0)},
            "financial_overview": {"total_revenue": float(total_revenue or 0)},
        }

    async def get_system_stats(self, db: AsyncSession) -> dict:
        start_of_month = date.today().replace(day=1)
        tables = {
            "users": Users,
            "services": Layanan,
            "transactions": TransaksiLayanan,
            "invoices": Invoice,
            "documents": DokumenKerjasama,
            "waste_collections": RiwayatPengangkutan,
            "manifests": ManifestElektronik,
        }
        total_records = {}
        for name, model in tables.items():
            total_records[name] = await db.scalar(select(func.count(model.id))) or 0

        return {
            "user_statistics": {
                "total_users": total_records["users"],
                "users_by_role": await self._count_by(db, Users.role),
                "inactive_users": await db.scalar(
                    select(func.count(Users.id)).where(Users.is_active.is_(False))
                ) or 0,
                "new_users_this_month": await db.scalar(
                    select(func.count(Users.id)).where(Users.created_at >= start_of_month)
                ) or 0,
            },
            "service_statistics": {
                "total_services": total_records["services"],
                "services_by_type": await self._count_by(db, Layanan.tipe_layanan),
            },
            "transaction_statistics": await self._count_by(db, TransaksiLayanan.status),
            "invoice_statistics": await self._count_by(db, Invoice.status_pembayaran),
            "total_records": total_records,
        }


dashboard_service = DashboardService()
