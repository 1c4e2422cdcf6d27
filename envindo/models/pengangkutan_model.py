# envindo/models/pengangkutan_model.py
import enum
from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, Numeric, Text, Index, func
from sqlalchemy.orm import relationship

from .base import Base


class StatusPengangkutan(str, enum.Enum):
    TERJADWAL = "terjadwal"
    DALAM_PERJALANAN = "dalam_perjalanan"
    SELESAI = "selesai"
    DIBATALKAN = "dibatalkan"


class RiwayatPengangkutan(Base):
    """A scheduled waste-collection run."""
    __tablename__ = "riwayat_pengangkutan"
    __table_args__ = (
        Index("ix_pengangkutan_user_status", "user_id", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    tanggal_pengangkutan = Column(Date, nullable=False)
    jenis_limbah = Column(String(100), nullable=False)
    berat_kg = Column(Numeric(10, 2), nullable=False)
    volume_m3 = Column(Numeric(10, 2), nullable=True)
    lokasi_pengangkutan = Column(Text, nullable=False)
    metode_pengangkutan = Column(String(50), nullable=False)
    kendaraan_yang_digunakan = Column(String(100), nullable=True)
    driver_name = Column(String(100), nullable=True)
    # Tracking number handed to the customer at scheduling time
    nomor_manifest = Column(String(50), unique=True, nullable=False)
    dokumentasi = Column(String(255), nullable=True)
    catatan = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=StatusPengangkutan.TERJADWAL.value)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("Users", back_populates="pengangkutan")
    manifest = relationship(
        "ManifestElektronik",
        back_populates="pengangkutan",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
