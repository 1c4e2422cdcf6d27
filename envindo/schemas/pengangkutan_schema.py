from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PengangkutanCreate(BaseModel):
    tanggal_pengangkutan: date
    jenis_limbah: str = Field(..., max_length=100)
    berat_kg: Decimal = Field(..., gt=0)
    volume_m3: Optional[Decimal] = Field(None, gt=0)
    lokasi_pengangkutan: str = Field(..., min_length=1)
    metode_pengangkutan: str = Field(..., max_length=50)
    kendaraan_yang_digunakan: Optional[str] = Field(None, max_length=100)
    driver_name: Optional[str] = Field(None, max_length=100)
    catatan: Optional[str] = Field(None, max_length=500)


class PengangkutanComplete(BaseModel):
    dokumentasi: Optional[str] = Field(None, max_length=255)
    catatan: Optional[str] = Field(None, max_length=500)


class Pengangkutan(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    tanggal_pengangkutan: date
    jenis_limbah: str
    berat_kg: Decimal
    volume_m3: Optional[Decimal] = None
    lokasi_pengangkutan: str
    metode_pengangkutan: str
    kendaraan_yang_digunakan: Optional[str] = None
    driver_name: Optional[str] = None
    nomor_manifest: str
    dokumentasi: Optional[str] = None
    catatan: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
