from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Boolean,
    func,
)
from sqlalchemy.orm import relationship
from envindo.models.base import Base


class Users(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user")
    nama_lengkap = Column(String(100), nullable=True)
    nama_perusahaan = Column(String(150), nullable=True)
    alamat_perusahaan = Column(Text, nullable=True)
    telepon = Column(String(20), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Loyalty balance; only Reward Accrual writes to it
    envipoin = Column(Integer, default=0, nullable=False)
    layanan_aktif = Column(String(50), default="EnviReg")
    masa_berlaku = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    transaksi = relationship(
        "TransaksiLayanan", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    invoices = relationship("Invoice", back_populates="user", passive_deletes="all")
    pengangkutan = relationship(
        "RiwayatPengangkutan", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    manifests = relationship("ManifestElektronik", back_populates="user", passive_deletes="all")
    dokumen = relationship(
        "DokumenKerjasama", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    activity_logs = relationship("ActivityLog", back_populates="user", passive_deletes="all")
