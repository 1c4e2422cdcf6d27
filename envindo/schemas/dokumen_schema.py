from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from envindo.models.dokumen_model import JenisDokumen


class DokumenCreate(BaseModel):
    nama_dokumen: str = Field(..., max_length=200)
    jenis_dokumen: JenisDokumen
    nomor_dokumen: Optional[str] = Field(None, max_length=100)
    tanggal_dokumen: date
    tanggal_berlaku_mulai: Optional[date] = None
    tanggal_berlaku_selesai: Optional[date] = None
    file_dokumen: Optional[str] = Field(None, max_length=255)
    deskripsi: Optional[str] = None

    @model_validator(mode="after")
    def validate_period(self):
        if (
            self.tanggal_berlaku_mulai
            and self.tanggal_berlaku_selesai
            and self.tanggal_berlaku_selesai < self.tanggal_berlaku_mulai
        ):
            raise ValueError("tanggal_berlaku_selesai must not be before tanggal_berlaku_mulai")
        return self


class Dokumen(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    nama_dokumen: str
    jenis_dokumen: str
    nomor_dokumen: Optional[str] = None
    tanggal_dokumen: date
    tanggal_berlaku_mulai: Optional[date] = None
    tanggal_berlaku_selesai: Optional[date] = None
    file_dokumen: Optional[str] = None
    deskripsi: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
