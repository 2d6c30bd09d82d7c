from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from uuid import uuid4

from expense_sheets.models.common import utc_now_iso


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: Optional[str] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class GoogleLogin(BaseModel):
    id_token: str = Field(min_length=1)


class UserInDB(BaseModel):
    user_id: str = Field(default_factory=lambda: str(uuid4()))
    email: EmailStr
    name: Optional[str] = None
    password_hash: Optional[str] = None
    google_id: Optional[str] = None
    picture: Optional[str] = None
    created_at: str = Field(default_factory=utc_now_iso)


class UserPublic(BaseModel):
    user_id: str
    email: EmailStr
    name: Optional[str] = None
    picture: Optional[str] = None
    created_at: str
