from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from expense_sheets.models.common import utc_now_iso

PIN_PATTERN = r"^\d{4}$"

# Seeded into every new sheet, in display order
DEFAULT_CATEGORIES = (
    "food",
    "transport",
    "utilities",
    "entertainment",
    "shopping",
    "healthcare",
    "education",
    "savings",
    "other",
)


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


class SheetCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    pin: Optional[str] = Field(default=None, pattern=PIN_PATTERN)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return _strip(value)

    @field_validator("pin", mode="before")
    @classmethod
    def blank_pin_is_none(cls, value):
        return value or None


class SheetUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    # "" removes the PIN
    pin: Optional[str] = Field(default=None, pattern=r"^(\d{4})?$")

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return _strip(value)


class PinCheck(BaseModel):
    pin: str = ""


class SheetInDB(BaseModel):
    sheet_id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    name: str
    pin: Optional[str] = None
    has_pin: bool = False
    created_at: str = Field(default_factory=utc_now_iso)


class SheetPublic(BaseModel):
    sheet_id: str
    user_id: str
    name: str
    has_pin: bool
    created_at: str
