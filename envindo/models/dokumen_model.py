# envindo/models/dokumen_model.py
import enum
from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, Text, func
from sqlalchemy.orm import relationship

from .base import Base


class JenisDokumen(str, enum.Enum):
    KONTRAK = "kontrak"
    PERJANJIAN_KERJASAMA = "perjanjian_kerjasama"
    SOP = "sop"
    DOKUMEN_TEKNIS = "dokumen_teknis"
    LAINNYA = "lainnya"


class StatusDokumen(str, enum.Enum):
    DRAFT = "draft"
    AKTIF = "aktif"
    AKAN_KADALUARSA = "akan_kadaluarsa"
    KADALUARSA = "kadaluarsa"


class DokumenKerjasama(Base):
    __tablename__ = "dokumen_kerjasama"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    nama_dokumen = Column(String(200), nullable=False)
    jenis_dokumen = Column(String(30), nullable=False)
    nomor_dokumen = Column(String(100), nullable=True)
    tanggal_dokumen = Column(Date, nullable=False)
    tanggal_berlaku_mulai = Column(Date, nullable=True)
    tanggal_berlaku_selesai = Column(Date, nullable=True)
    # Opaque path issued by the file-storage service
    file_dokumen = Column(String(255), nullable=True)
    deskripsi = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=StatusDokumen.AKTIF.value)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("Users", back_populates="dokumen")
