from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from envindo.models.transaksi_model import StatusTransaksi


class TransaksiCreate(BaseModel):
    layanan_id: int
    jumlah: int = Field(1, gt=0)
    catatan: Optional[str] = Field(None, max_length=500)


class TransaksiStatusUpdate(BaseModel):
    status: StatusTransaksi


class PaymentProof(BaseModel):
    # Relative path issued by the file-storage service
    bukti_pembayaran: str = Field(..., min_length=1, max_length=255)


class Transaksi(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    layanan_id: int
    kode_transaksi: str
    tanggal_pesan: Optional[datetime] = None
    tanggal_mulai: Optional[datetime] = None
    tanggal_selesai: Optional[datetime] = None
    jumlah: int
    total_harga: Decimal
    status: str
    catatan: Optional[str] = None
    bukti_pembayaran: Optional[str] = None
    envipoin_dikreditkan: bool


class SubscriptionCreated(BaseModel):
    transaction_id: int
    kode_transaksi: str
    invoice_id: int
    nomor_invoice: str
    total_harga: Decimal
    total_tagihan: Decimal
    tanggal_jatuh_tempo: str
