from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from envindo.models.layanan_model import TipeLayanan


class LayananBase(BaseModel):
    kode_layanan: str = Field(..., min_length=3, max_length=20)
    nama_layanan: str = Field(..., min_length=3, max_length=100)
    deskripsi: Optional[str] = None
    harga: Decimal = Field(..., ge=0)
    satuan: str = Field("bulan", pattern="^(bulan|tahun|sekali)$")
    tipe_layanan: TipeLayanan
    durasi_hari: int = Field(30, gt=0)
    envipoin_reward: int = Field(0, ge=0)
    is_active: bool = True


class LayananCreate(LayananBase):
    pass


class LayananUpdate(BaseModel):
    kode_layanan: Optional[str] = Field(None, min_length=3, max_length=20)
    nama_layanan: Optional[str] = Field(None, min_length=3, max_length=100)
    deskripsi: Optional[str] = None
    harga: Optional[Decimal] = Field(None, ge=0)
    satuan: Optional[str] = Field(None, pattern="^(bulan|tahun|sekali)$")
    tipe_layanan: Optional[TipeLayanan] = None
    durasi_hari: Optional[int] = Field(None, gt=0)
    envipoin_reward: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class Layanan(LayananBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tipe_layanan: str
    created_at: Optional[datetime] = None
