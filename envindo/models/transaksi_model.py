# envindo/models/transaksi_model.py
import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric, Text, Boolean, Index, func
from sqlalchemy.orm import relationship

from .base import Base


class StatusTransaksi(str, enum.Enum):
    PENDING = "pending"
    DIPROSES = "diproses"
    AKTIF = "aktif"
    SELESAI = "selesai"
    DIBATALKAN = "dibatalkan"


class TransaksiLayanan(Base):
    """A customer's subscription to a catalog service."""
    __tablename__ = 'transaksi_layanan'
    __table_args__ = (
        Index("ix_transaksi_user_status", "user_id", "status"),
    )
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete="CASCADE"), nullable=False, index=True)
    layanan_id = Column(Integer, ForeignKey('layanan.id', ondelete="RESTRICT"), nullable=False, index=True)
    kode_transaksi = Column(String(50), unique=True, nullable=False)

    tanggal_pesan = Column(DateTime, server_default=func.now(), nullable=False)
    # Both set together when the subscription enters 'aktif'
    tanggal_mulai = Column(DateTime, nullable=True)
    tanggal_selesai = Column(DateTime, nullable=True)

    jumlah = Column(Integer, nullable=False, default=1)
    total_harga = Column(Numeric(15, 2), nullable=False)

    # Alur status: pending -> diproses -> aktif -> selesai, dibatalkan dari pending/diproses
    status = Column(String(20), nullable=False, default=StatusTransaksi.PENDING.value)
    catatan = Column(Text, nullable=True)
    bukti_pembayaran = Column(String(255), nullable=True)
    envipoin_dikreditkan = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("Users", back_populates="transaksi")
    layanan = relationship("Layanan", back_populates="transaksi")
    invoices = relationship(
        "Invoice", back_populates="transaksi", cascade="all, delete-orphan", passive_deletes=True
    )
