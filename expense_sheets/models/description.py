from uuid import uuid4

from pydantic import BaseModel, Field

from expense_sheets.models.common import utc_now_iso

DEFAULT_COLUMN = "notes"


class DescriptionCreate(BaseModel):
    description: str = Field(min_length=1)
    column_name: str = Field(default=DEFAULT_COLUMN, min_length=1, max_length=50)


class DescriptionInDB(BaseModel):
    description_id: str = Field(default_factory=lambda: str(uuid4()))
    expense_id: str
    sheet_id: str
    user_id: str
    column_name: str = DEFAULT_COLUMN
    description: str
    created_at: str = Field(default_factory=utc_now_iso)


class DescriptionPublic(BaseModel):
    description_id: str
    expense_id: str
    column_name: str
    description: str
    created_at: str
