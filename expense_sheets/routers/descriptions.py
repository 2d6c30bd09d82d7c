from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from expense_sheets.db import dynamo
from expense_sheets.models.description import DescriptionCreate, DescriptionInDB, DescriptionPublic
from expense_sheets.routers.deps import get_owned_sheet, load_expense

router = APIRouter()


@router.get("/descriptions", response_model=List[DescriptionPublic])
def list_descriptions(
    expense_id: Optional[str] = Query(None),
    column_name: Optional[str] = Query(None),
    sheet: dict = Depends(get_owned_sheet),
):
    if expense_id:
        expense_ids = [load_expense(sheet, expense_id)["expense_id"]]
    else:
        expenses = dynamo.list_expenses(sheet["sheet_id"])
        if expenses is None:
            raise HTTPException(status_code=500, detail="Failed to load expenses")
        expense_ids = [e["expense_id"] for e in expenses]

    descriptions = []
    for eid in expense_ids:
        items = dynamo.list_descriptions(eid)
        if items is None:
            raise HTTPException(status_code=500, detail="Failed to load descriptions")
        descriptions.extend(items)
    if column_name:
        descriptions = [d for d in descriptions if d["column_name"] == column_name]
    return [DescriptionPublic(**d) for d in descriptions]


@router.post(
    "/expenses/{expense_id}/descriptions",
    response_model=DescriptionPublic,
    status_code=status.HTTP_201_CREATED,
)
def upsert_description(
    expense_id: str,
    payload: DescriptionCreate,
    sheet: dict = Depends(get_owned_sheet),
):
    """One description per (expense, column): posting again replaces the text."""
    expense = load_expense(sheet, expense_id)
    existing = dynamo.get_description(expense["expense_id"], payload.column_name)

    description = DescriptionInDB(
        expense_id=expense["expense_id"],
        sheet_id=sheet["sheet_id"],
        user_id=sheet["user_id"],
        column_name=payload.column_name,
        description=payload.description,
    )
    if existing:
        description.description_id = existing["description_id"]
        description.created_at = existing["created_at"]

    if not dynamo.put_description(description.model_dump()):
        raise HTTPException(status_code=500, detail="Failed to save description")
    return DescriptionPublic(**description.model_dump())


@router.get("/expenses/{expense_id}/descriptions/{column_name}", response_model=DescriptionPublic)
def get_description(expense_id: str, column_name: str, sheet: dict = Depends(get_owned_sheet)):
    expense = load_expense(sheet, expense_id)
    description = dynamo.get_description(expense["expense_id"], column_name)
    if not description:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Description not found")
    return DescriptionPublic(**description)


@router.delete("/expenses/{expense_id}/descriptions")
def delete_descriptions(
    expense_id: str,
    column_name: Optional[str] = Query(None),
    sheet: dict = Depends(get_owned_sheet),
):
    expense = load_expense(sheet, expense_id)
    deleted = dynamo.delete_descriptions(expense["expense_id"], column_name)
    if deleted is None:
        raise HTTPException(status_code=500, detail="Failed to delete descriptions")
    return {"deleted": deleted}
