from pydantic import EmailStr, Field
from typing import Optional
from datetime import datetime

from .base import CamelModel


class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    full_name: Optional[str] = Field(None, max_length=255)


class UserLogin(CamelModel):
    email: EmailStr
    password: str


class UserOut(CamelModel):
    id: int
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: str
    is_active: bool
    created_at: Optional[datetime] = None


class Token(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
