from envindo.models.dokumen_model import DokumenKerjasama
from envindo.repository.base_repository import BaseRepository


class DokumenRepository(BaseRepository[DokumenKerjasama]):
    def __init__(self):
        super().__init__(DokumenKerjasama)


dokumen_repository = DokumenRepository()
