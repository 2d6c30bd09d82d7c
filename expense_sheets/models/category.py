from typing import Optional

from pydantic import BaseModel, Field, field_validator

from expense_sheets.models.common import normalize_name

UNCATEGORIZED = "uncategorized"


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    display_order: Optional[int] = Field(default=None, ge=0)

    @field_validator("name", mode="before")
    @classmethod
    def normalize(cls, value):
        return normalize_name(value)


class CategoryRename(BaseModel):
    new_name: str = Field(min_length=1, max_length=100)

    @field_validator("new_name", mode="before")
    @classmethod
    def normalize(cls, value):
        return normalize_name(value)


class CategoryPublic(BaseModel):
    name: str
    display_order: int
