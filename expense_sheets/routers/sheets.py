import logging
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from expense_sheets.core.security import get_current_user_id
from expense_sheets.db import dynamo
from expense_sheets.models.sheet import (
    DEFAULT_CATEGORIES,
    PinCheck,
    SheetCreate,
    SheetInDB,
    SheetPublic,
    SheetUpdate,
)
from expense_sheets.routers.deps import get_owned_sheet

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[SheetPublic])
def list_sheets(user_id: str = Depends(get_current_user_id)):
    sheets = dynamo.list_sheets(user_id)
    sheets.sort(key=lambda s: s["created_at"], reverse=True)
    return [SheetPublic(**s) for s in sheets]


@router.post("/", response_model=SheetPublic, status_code=status.HTTP_201_CREATED)
def create_sheet(sheet: SheetCreate, user_id: str = Depends(get_current_user_id)):
    if dynamo.get_sheet_by_name(user_id, sheet.name):
        raise HTTPException(status_code=400, detail="A sheet with this name already exists")

    sheet_db = SheetInDB(user_id=user_id, name=sheet.name, pin=sheet.pin, has_pin=sheet.pin is not None)
    if not dynamo.put_sheet(sheet_db.model_dump()):
        raise HTTPException(status_code=500, detail="Failed to save sheet")
    if not dynamo.seed_categories(sheet_db.sheet_id, DEFAULT_CATEGORIES):
        logger.error(f"Default categories missing for sheet {sheet_db.sheet_id}")

    logger.info(f"Created sheet {sheet_db.sheet_id} for user {user_id}")
    return SheetPublic(**sheet_db.model_dump())


@router.get("/{sheet_id}", response_model=SheetPublic)
def get_sheet(sheet: dict = Depends(get_owned_sheet)):
    return SheetPublic(**sheet)


@router.put("/{sheet_id}", response_model=SheetPublic)
def update_sheet(sheet_update: SheetUpdate, sheet: dict = Depends(get_owned_sheet)):
    changes = sheet_update.model_dump(exclude_unset=True)
    updates: Dict = {}

    name = changes.get("name")
    if name and name != sheet["name"]:
        existing = dynamo.get_sheet_by_name(sheet["user_id"], name)
        if existing and existing["sheet_id"] != sheet["sheet_id"]:
            raise HTTPException(status_code=400, detail="A sheet with this name already exists")
        updates["name"] = name

    if "pin" in changes:
        pin = changes["pin"] or None
        updates["pin"] = pin
        updates["has_pin"] = pin is not None

    if not updates:
        return SheetPublic(**sheet)

    updated = dynamo.update_sheet(sheet["user_id"], sheet["sheet_id"], updates)
    if not updated:
        raise HTTPException(status_code=404, detail="Sheet not found")
    return SheetPublic(**updated)


@router.delete("/{sheet_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sheet(sheet: dict = Depends(get_owned_sheet)):
    if not dynamo.delete_sheet(sheet["user_id"], sheet["sheet_id"]):
        raise HTTPException(status_code=500, detail="Failed to delete sheet")
    logger.info(f"Deleted sheet {sheet['sheet_id']}")
    return None


@router.post("/{sheet_id}/verify-pin")
def verify_pin(check: PinCheck, sheet: dict = Depends(get_owned_sheet)):
    """Sheets without a PIN always verify."""
    if not sheet.get("has_pin"):
        return {"valid": True}
    return {"valid": bool(check.pin) and check.pin == sheet.get("pin")}
