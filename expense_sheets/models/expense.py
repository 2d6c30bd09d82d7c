import datetime as dt
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from expense_sheets.models.common import Amount, normalize_name, utc_now_iso


class ExpenseCreate(BaseModel):
    date: dt.date
    amount: Amount
    category: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, value):
        return normalize_name(value)


class ExpenseUpdate(BaseModel):
    date: Optional[dt.date] = None
    amount: Optional[Amount] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, value):
        return normalize_name(value)


class ExpenseInDB(BaseModel):
    expense_id: str = Field(default_factory=lambda: str(uuid4()))
    sheet_id: str
    user_id: str
    date: dt.date
    amount: Amount
    category: str
    description: Optional[str] = None
    created_at: str = Field(default_factory=utc_now_iso)


class ExpensePublic(BaseModel):
    expense_id: str
    sheet_id: str
    date: dt.date
    amount: Amount
    category: str
    description: Optional[str] = None
    created_at: str
