from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class InvoicePayment(BaseModel):
    jumlah: Decimal = Field(..., gt=0, decimal_places=2)
    metode_pembayaran: Optional[str] = Field(None, max_length=50)


class InvoiceMarkPaid(BaseModel):
    metode_pembayaran: Optional[str] = Field(None, max_length=50)


class InvoiceAmountUpdate(BaseModel):
    subtotal: Decimal = Field(..., ge=0)
    # Derived from the configured PPN rate when omitted
    ppn: Optional[Decimal] = Field(None, ge=0)


class Invoice(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    transaksi_id: int
    nomor_invoice: str
    tanggal_invoice: date
    tanggal_jatuh_tempo: date
    subtotal: Decimal
    ppn: Decimal
    total_tagihan: Decimal
    jumlah_dibayar: Decimal
    # Effective status: jatuh_tempo is derived at read time
    status_pembayaran: str
    metode_pembayaran: Optional[str] = None
    tanggal_pembayaran: Optional[datetime] = None
    catatan: Optional[str] = None
