"""
Categories Router
Per-sheet category list. Renaming or deleting a category carries the sheet's
expenses along with it.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from expense_sheets.db import dynamo
from expense_sheets.models.category import (
    UNCATEGORIZED,
    CategoryCreate,
    CategoryPublic,
    CategoryRename,
)
from expense_sheets.models.common import normalize_name
from expense_sheets.routers.deps import get_owned_sheet

router = APIRouter()
logger = logging.getLogger(__name__)


def _load_category(sheet_id: str, name: str) -> dict:
    category = dynamo.get_category(sheet_id, normalize_name(name))
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return category


def _ensure_move_allowed(sheet_id: str, source: str, target: str) -> None:
    """
    Moving expenses between categories must not put two expenses on the same
    (date, category) cell of the sheet.
    """
    expenses = dynamo.list_expenses(sheet_id)
    if expenses is None:
        raise HTTPException(status_code=500, detail="Failed to load expenses")
    target_dates = {e["date"] for e in expenses if e["category"] == target}
    clashes = sorted({e["date"] for e in expenses if e["category"] == source} & target_dates)
    if clashes:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Category '{target}' already has expenses on {', '.join(clashes)}",
        )


@router.get("/", response_model=List[CategoryPublic])
def list_categories(sheet: dict = Depends(get_owned_sheet)):
    categories = dynamo.list_categories(sheet["sheet_id"])
    if categories is None:
        raise HTTPException(status_code=500, detail="Failed to load categories")
    return [CategoryPublic(**c) for c in categories]


@router.post("/", response_model=CategoryPublic, status_code=status.HTTP_201_CREATED)
def create_category(category: CategoryCreate, sheet: dict = Depends(get_owned_sheet)):
    sheet_id = sheet["sheet_id"]
    if dynamo.get_category(sheet_id, category.name):
        raise HTTPException(status_code=400, detail="Category already exists")

    display_order = category.display_order
    if display_order is None:
        display_order = dynamo.next_display_order(sheet_id)
    if display_order is None or not dynamo.put_category(sheet_id, category.name, display_order):
        raise HTTPException(status_code=500, detail="Failed to save category")
    return CategoryPublic(name=category.name, display_order=display_order)


@router.put("/{name}", response_model=CategoryPublic)
def rename_category(name: str, rename: CategoryRename, sheet: dict = Depends(get_owned_sheet)):
    sheet_id = sheet["sheet_id"]
    category = _load_category(sheet_id, name)
    old_name, new_name = category["name"], rename.new_name
    if new_name == old_name:
        return CategoryPublic(**category)
    if dynamo.get_category(sheet_id, new_name):
        raise HTTPException(status_code=400, detail="Category already exists")
    _ensure_move_allowed(sheet_id, old_name, new_name)

    renamed = dynamo.rename_category(sheet_id, old_name, new_name)
    if not renamed:
        raise HTTPException(status_code=500, detail="Failed to rename category")
    moved = dynamo.recategorize_expenses(sheet_id, old_name, new_name)
    if moved is None:
        raise HTTPException(status_code=500, detail="Failed to move expenses to the renamed category")
    logger.info(f"Renamed category {old_name} -> {new_name} in sheet {sheet_id} ({moved} expenses)")
    return CategoryPublic(**renamed)


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(name: str, sheet: dict = Depends(get_owned_sheet)):
    """Expenses of a deleted category move to 'uncategorized'."""
    sheet_id = sheet["sheet_id"]
    category = _load_category(sheet_id, name)
    old_name = category["name"]

    if old_name != UNCATEGORIZED:
        _ensure_move_allowed(sheet_id, old_name, UNCATEGORIZED)
        if not dynamo.get_category(sheet_id, UNCATEGORIZED):
            display_order = dynamo.next_display_order(sheet_id)
            if display_order is None or not dynamo.put_category(sheet_id, UNCATEGORIZED, display_order):
                raise HTTPException(status_code=500, detail="Failed to create category")
        moved = dynamo.recategorize_expenses(sheet_id, old_name, UNCATEGORIZED)
        if moved is None:
            raise HTTPException(status_code=500, detail="Failed to move expenses")
        logger.info(f"Moved {moved} expenses from {old_name} to {UNCATEGORIZED} in sheet {sheet_id}")

    if not dynamo.delete_category(sheet_id, old_name):
        raise HTTPException(status_code=500, detail="Failed to delete category")
    return None
