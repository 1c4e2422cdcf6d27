from .user_model import Users
from .layanan_model import Layanan
from .transaksi_model import TransaksiLayanan
from .invoice_model import Invoice
from .pengangkutan_model import RiwayatPengangkutan
from .manifest_model import ManifestElektronik
from .dokumen_model import DokumenKerjasama
from .log_model import ActivityLog

__all__ = [
    "Users",
    "Layanan",
    "TransaksiLayanan",
    "Invoice",
    "RiwayatPengangkutan",
    "ManifestElektronik",
    "DokumenKerjasama",
    "ActivityLog",
]
