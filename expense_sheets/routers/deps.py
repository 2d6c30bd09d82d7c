from typing import Any, Dict

from fastapi import Depends, HTTPException, status

from expense_sheets.core.security import get_current_user_id
from expense_sheets.db import dynamo


def load_owned_sheet(user_id: str, sheet_id: str) -> Dict[str, Any]:
    # Another user's sheet is reported exactly like a missing one
    sheet = dynamo.get_sheet(user_id, sheet_id)
    if not sheet:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sheet not found")
    return sheet


def get_owned_sheet(sheet_id: str, user_id: str = Depends(get_current_user_id)) -> Dict[str, Any]:
    return load_owned_sheet(user_id, sheet_id)


def load_expense(sheet: Dict[str, Any], expense_id: str) -> Dict[str, Any]:
    expense = dynamo.get_expense(sheet["sheet_id"], expense_id)
    if not expense:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
    return expense
