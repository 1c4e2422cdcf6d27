from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, EmailStr
from typing import List, Optional


class UserBase(BaseModel):
    username: str
    email: EmailStr
    nama_lengkap: Optional[str] = None
    nama_perusahaan: Optional[str] = None
    alamat_perusahaan: Optional[str] = None
    telepon: Optional[str] = Field(default=None, max_length=20)


class UserRegistration(UserBase):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=8)


class UserLogin(BaseModel):
    # Username atau email
    login: str
    password: str


class User(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    role: str
    is_active: bool
    envipoin: int
    layanan_aktif: Optional[str] = None
    masa_berlaku: Optional[datetime] = None
    created_at: Optional[datetime] = None


class UserStatusUpdate(BaseModel):
    is_active: bool


class UserList(BaseModel):
    users: List[User]
    total_users: int
