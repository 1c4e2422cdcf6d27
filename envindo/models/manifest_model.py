# envindo/models/manifest_model.py
import enum
from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, Numeric, Text, func
from sqlalchemy.orm import relationship

from .base import Base


class StatusManifest(str, enum.Enum):
    DRAFT = "draft"
    DIAJUKAN = "diajukan"
    DISETUJUI = "disetujui"
    DITOLAK = "ditolak"
    SELESAI = "selesai"


class ManifestElektronik(Base):
    """Regulatory disposal manifest, one per completed collection run."""
    __tablename__ = "manifest_elektronik"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    riwayat_pengangkutan_id = Column(
        Integer,
        ForeignKey("riwayat_pengangkutan.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    nomor_manifest = Column(String(50), unique=True, nullable=False)
    tanggal_manifest = Column(Date, nullable=False)
    jenis_limbah = Column(String(100), nullable=False)
    kode_limbah = Column(String(50), nullable=False)
    jumlah_limbah_kg = Column(Numeric(10, 2), nullable=False)
    asal_limbah = Column(Text, nullable=False)
    tujuan_pengolahan = Column(Text, nullable=False)
    metode_pengolahan = Column(String(200), nullable=False)
    penyedia_jasa = Column(String(150), nullable=False)
    dokumen_pendukung = Column(String(255), nullable=True)

    status_manifest = Column(String(20), nullable=False, default=StatusManifest.DRAFT.value)
    tanggal_persetujuan = Column(DateTime, nullable=True)
    disetujui_oleh = Column(String(100), nullable=True)
    catatan_persetujuan = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("Users", back_populates="manifests")
    pengangkutan = relationship("RiwayatPengangkutan", back_populates="manifest")
