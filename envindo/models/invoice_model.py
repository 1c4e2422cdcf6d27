# envindo/models/invoice_model.py
import enum
from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, Numeric, Text, Index, func
from sqlalchemy.orm import relationship

from .base import Base


class StatusPembayaran(str, enum.Enum):
    BELUM_BAYAR = "belum_bayar"
    PARTIAL = "partial"
    LUNAS = "lunas"
    JATUH_TEMPO = "jatuh_tempo"
    DIBATALKAN = "dibatalkan"


class Invoice(Base):
    __tablename__ = "invoice"
    __table_args__ = (
        Index("ix_invoice_status_due", "status_pembayaran", "tanggal_jatuh_tempo"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    transaksi_id = Column(Integer, ForeignKey("transaksi_layanan.id", ondelete="CASCADE"), nullable=False, index=True)
    nomor_invoice = Column(String(50), unique=True, nullable=False)

    tanggal_invoice = Column(Date, nullable=False)
    tanggal_jatuh_tempo = Column(Date, nullable=False)

    # total_tagihan is always subtotal + ppn
    subtotal = Column(Numeric(15, 2), nullable=False)
    ppn = Column(Numeric(15, 2), nullable=False, default=0)
    total_tagihan = Column(Numeric(15, 2), nullable=False)
    jumlah_dibayar = Column(Numeric(15, 2), nullable=False, default=0)

    status_pembayaran = Column(String(20), nullable=False, default=StatusPembayaran.BELUM_BAYAR.value)
    metode_pembayaran = Column(String(50), nullable=True)
    tanggal_pembayaran = Column(DateTime, nullable=True)
    catatan = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("Users", back_populates="invoices")
    transaksi = relationship("TransaksiLayanan", back_populates="invoices")
