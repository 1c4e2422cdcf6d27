# envindo/models/layanan_model.py
import enum
from sqlalchemy import Column, Integer, String, Boolean, Numeric, Text, Index, DateTime, func
from sqlalchemy.orm import relationship
from .base import Base


class TipeLayanan(str, enum.Enum):
    ENVI_REG = "EnviReg"
    ENVI_PLUS = "Envi+"
    ENVI_PRO = "EnviPro"
    LEGAL_PLUS = "Legal+"
    UJI_PRO = "UjiPro"


class Layanan(Base):
    """Service catalog entry. Read-only to the workflow engine."""
    __tablename__ = 'layanan'
    __table_args__ = (
        Index("ix_layanan_is_active", "is_active"),
    )
    id = Column(Integer, primary_key=True, index=True)
    kode_layanan = Column(String(20), unique=True, nullable=False)
    nama_layanan = Column(String(100), nullable=False)
    deskripsi = Column(Text, nullable=True)
    harga = Column(Numeric(15, 2), nullable=False)
    satuan = Column(String(50), nullable=False, default="bulan")
    tipe_layanan = Column(String(20), nullable=False)
    durasi_hari = Column(Integer, nullable=False, default=30)
    envipoin_reward = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    transaksi = relationship("TransaksiLayanan", back_populates="layanan", passive_deletes="all")
