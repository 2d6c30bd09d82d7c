import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from expense_sheets.db import dynamo
from expense_sheets.models.expense import ExpenseCreate, ExpenseInDB, ExpensePublic, ExpenseUpdate
from expense_sheets.routers.deps import get_owned_sheet, load_expense

router = APIRouter()
logger = logging.getLogger(__name__)

DUPLICATE_DETAIL = "An expense already exists for this date and category"


@router.get("/", response_model=List[ExpensePublic])
def list_expenses(
    month: Optional[str] = Query(None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$"),
    year: Optional[int] = Query(None, ge=1, le=9999),
    sheet: dict = Depends(get_owned_sheet),
):
    """
    month follows YYYY-MM (e.g. 2025-11) and takes precedence over year.
    Newest first.
    """
    date_prefix = month or (f"{year:04d}" if year else None)
    expenses = dynamo.list_expenses(sheet["sheet_id"], date_prefix=date_prefix)
    if expenses is None:
        raise HTTPException(status_code=500, detail="Failed to load expenses")
    expenses.sort(key=lambda e: (e["date"], e["created_at"]), reverse=True)
    return [ExpensePublic(**e) for e in expenses]


@router.post("/", response_model=ExpensePublic, status_code=status.HTTP_201_CREATED)
def create_expense(expense: ExpenseCreate, sheet: dict = Depends(get_owned_sheet)):
    if dynamo.find_expense(sheet["sheet_id"], expense.date, expense.category):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_DETAIL)

    expense_db = ExpenseInDB(sheet_id=sheet["sheet_id"], user_id=sheet["user_id"], **expense.model_dump())
    if not dynamo.put_expense(expense_db.model_dump()):
        raise HTTPException(status_code=500, detail="Failed to save expense")
    return ExpensePublic(**expense_db.model_dump())


@router.get("/{expense_id}", response_model=ExpensePublic)
def get_expense(expense_id: str, sheet: dict = Depends(get_owned_sheet)):
    return ExpensePublic(**load_expense(sheet, expense_id))


@router.put("/{expense_id}", response_model=ExpensePublic)
def update_expense(
    expense_id: str,
    expense_update: ExpenseUpdate,
    sheet: dict = Depends(get_owned_sheet),
):
    # date, amount and category can change but never be cleared
    mutable_fields = {
        k: v
        for k, v in expense_update.model_dump(exclude_unset=True).items()
        if v is not None or k == "description"
    }
    if not mutable_fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    current = load_expense(sheet, expense_id)
    if "date" in mutable_fields or "category" in mutable_fields:
        target_date = mutable_fields.get("date", current["date"])
        target_category = mutable_fields.get("category", current["category"])
        clash = dynamo.find_expense(sheet["sheet_id"], target_date, target_category)
        if clash and clash["expense_id"] != expense_id:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_DETAIL)

    updated = dynamo.update_expense(sheet["sheet_id"], expense_id, mutable_fields)
    if not updated:
        raise HTTPException(status_code=404, detail="Expense not found")
    return ExpensePublic(**updated)


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(expense_id: str, sheet: dict = Depends(get_owned_sheet)):
    expense = load_expense(sheet, expense_id)
    if not dynamo.delete_expense(sheet["sheet_id"], expense["expense_id"]):
        raise HTTPException(status_code=500, detail="Failed to delete expense")
    return None
