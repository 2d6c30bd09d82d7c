"""
Analytics Router
Category, monthly and daily totals for a sheet, anchored on a month.
"""
import logging
from typing import Dict, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query

from expense_sheets.core.security import get_current_user_id
from expense_sheets.db import dynamo
from expense_sheets.routers.deps import get_owned_sheet, load_owned_sheet
from expense_sheets.utils.analyzer import ExpenseAnalyzer

router = APIRouter()
logger = logging.getLogger(__name__)
expense_analyzer = ExpenseAnalyzer()


def _resolve_period(month: Optional[int], year: Optional[int]) -> Tuple[Optional[int], Optional[int]]:
    """A lone month or year is completed from the analyzer's today."""
    if month is None and year is None:
        return None, None
    today = expense_analyzer.today()
    return month or today.month, year or today.year


def _summarize(sheet: dict, month: Optional[int], year: Optional[int]) -> Dict:
    expenses = dynamo.list_expenses(sheet["sheet_id"])
    if expenses is None:
        raise HTTPException(status_code=500, detail="Failed to load expenses")
    summary = expense_analyzer.summarize(expenses, month=month, year=year)
    logger.info(f"Analytics for sheet {sheet['sheet_id']}: {len(expenses)} expenses, month={month}, year={year}")
    return summary.to_dict()


@router.get("/sheets/{sheet_id}/analytics")
def sheet_analytics(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1, le=9999),
    sheet: dict = Depends(get_owned_sheet),
) -> Dict:
    month, year = _resolve_period(month, year)
    return _summarize(sheet, month, year)


@router.get("/analytics")
def analytics(
    sheet_id: str = Query(..., alias="sheetId"),
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1, le=9999),
    user_id: str = Depends(get_current_user_id),
) -> Dict:
    """Same summary as the sheet route, plus the period it was computed for."""
    sheet = load_owned_sheet(user_id, sheet_id)
    if month is None and year is None:
        today = expense_analyzer.today()
        month, year = today.month, today.year
    else:
        month, year = _resolve_period(month, year)

    result = _summarize(sheet, month, year)
    result["filters"] = {"sheetId": sheet_id, "month": month, "year": year}
    return result
