from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ManifestCreate(BaseModel):
    riwayat_pengangkutan_id: int
    tanggal_manifest: date
    jenis_limbah: str = Field(..., max_length=100)
    kode_limbah: str = Field(..., max_length=50)
    jumlah_limbah_kg: Decimal = Field(..., gt=0)
    asal_limbah: str = Field(..., min_length=1)
    tujuan_pengolahan: str = Field(..., min_length=1)
    metode_pengolahan: str = Field(..., max_length=200)
    penyedia_jasa: str = Field(..., max_length=150)
    dokumen_pendukung: Optional[str] = Field(None, max_length=255)


class ManifestReview(BaseModel):
    action: Literal["approve", "reject"]
    catatan_persetujuan: Optional[str] = Field(None, max_length=500)


class Manifest(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    riwayat_pengangkutan_id: int
    nomor_manifest: str
    tanggal_manifest: date
    jenis_limbah: str
    kode_limbah: str
    jumlah_limbah_kg: Decimal
    asal_limbah: str
    tujuan_pengolahan: str
    metode_pengolahan: str
    penyedia_jasa: str
    dokumen_pendukung: Optional[str] = None
    status_manifest: str
    tanggal_persetujuan: Optional[datetime] = None
    disetujui_oleh: Optional[str] = None
    catatan_persetujuan: Optional[str] = None
