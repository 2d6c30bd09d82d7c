from __future__ import annotations

import calendar
import datetime as dt
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from dateutil.relativedelta import relativedelta

ZERO = Decimal("0")


class AnalyticsInputError(ValueError):
    """Raised when an expense record or the requested period is malformed."""


@dataclass(frozen=True)
class ExpenseRecord:
    date: dt.date
    amount: Decimal
    category: str


@dataclass(frozen=True)
class AnalyticsSummary:
    """Totals for one sheet, anchored on a calendar month."""

    category_totals: Dict[str, Decimal]
    monthly_totals: Dict[str, Decimal]
    daily_totals: Dict[str, Decimal]
    current_month_total: Decimal
    previous_month_total: Decimal
    categories: List[str]

    def to_dict(self) -> Dict[str, Any]:
        # Decimal sums become floats only here, at the JSON boundary
        return {
            "category_totals": {k: float(v) for k, v in self.category_totals.items()},
            "monthly_totals": {k: float(v) for k, v in self.monthly_totals.items()},
            "daily_totals": {k: float(v) for k, v in self.daily_totals.items()},
            "current_month_total": float(self.current_month_total),
            "previous_month_total": float(self.previous_month_total),
            "categories": list(self.categories),
        }


def month_key(d: dt.date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def month_window(anchor: dt.date) -> Tuple[dt.date, dt.date]:
    """Return the first and last day of the month containing ``anchor``."""
    last_day = calendar.monthrange(anchor.year, anchor.month)[1]
    return anchor.replace(day=1), anchor.replace(day=last_day)


def previous_month_window(anchor: dt.date) -> Tuple[dt.date, dt.date]:
    try:
        shifted = anchor.replace(day=1) - relativedelta(months=1)
    except (ValueError, OverflowError) as exc:
        raise AnalyticsInputError(f"No month precedes {month_key(anchor)}") from exc
    return month_window(shifted)


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _to_date(value: Any) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        try:
            return dt.date.fromisoformat(value.strip())
        except ValueError as exc:
            raise AnalyticsInputError(f"Invalid expense date: {value!r}") from exc
    raise AnalyticsInputError(f"Invalid expense date: {value!r}")


def _to_amount(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise AnalyticsInputError(f"Invalid expense amount: {value!r}")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        # str() keeps the shortest repr, so 0.1 becomes Decimal("0.1")
        amount = Decimal(str(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation as exc:
            raise AnalyticsInputError(f"Invalid expense amount: {value!r}") from exc
    else:
        raise AnalyticsInputError(f"Invalid expense amount: {value!r}")

    if not amount.is_finite():
        raise AnalyticsInputError(f"Expense amount must be finite: {value!r}")
    return amount


def to_record(expense: Any) -> ExpenseRecord:
    category = _field(expense, "category")
    if not isinstance(category, str) or not category:
        raise AnalyticsInputError(f"Invalid expense category: {category!r}")
    return ExpenseRecord(
        date=_to_date(_field(expense, "date")),
        amount=_to_amount(_field(expense, "amount")),
        category=category,
    )


def resolve_anchor(
    month: Optional[int] = None,
    year: Optional[int] = None,
    today: Optional[dt.date] = None,
) -> dt.date:
    if month is None and year is None:
        return today or dt.date.today()
    if month is None or year is None:
        raise AnalyticsInputError("month and year must be given together")
    for name, value in (("month", month), ("year", year)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise AnalyticsInputError(f"{name} must be an integer, got {value!r}")
    if not 1 <= month <= 12:
        raise AnalyticsInputError(f"month must be between 1 and 12, got {month}")
    if not dt.MINYEAR <= year <= dt.MAXYEAR:
        raise AnalyticsInputError(f"year out of range: {year}")
    return dt.date(year, month, 1)


def _sum_by(records: Iterable[ExpenseRecord], key: Callable[[ExpenseRecord], str]) -> Dict[str, Decimal]:
    totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for record in records:
        totals[key(record)] += record.amount
    return {k: totals[k] for k in sorted(totals)}


def _total(records: Iterable[ExpenseRecord]) -> Decimal:
    return sum((r.amount for r in records), ZERO)


class ExpenseAnalyzer:
    """
    Builds the analytics summary of a sheet. Stateless apart from the clock
    used when no month/year is requested, so one instance can be shared by
    every request.
    """

    def __init__(self, clock: Optional[Callable[[], dt.date]] = None) -> None:
        self._clock = clock or dt.date.today

    def today(self) -> dt.date:
        return self._clock()

    def summarize(
        self,
        expenses: Iterable[Any],
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> AnalyticsSummary:
        # Validate everything up front so a bad record never yields a partial summary
        records = [to_record(exp) for exp in expenses]
        anchor = resolve_anchor(month, year, today=self.today())

        current_start, current_end = month_window(anchor)
        previous_start, previous_end = previous_month_window(anchor)

        current = [r for r in records if current_start <= r.date <= current_end]
        previous = [r for r in records if previous_start <= r.date <= previous_end]

        return AnalyticsSummary(
            category_totals=_sum_by(current, lambda r: r.category),
            monthly_totals=_sum_by(records, lambda r: month_key(r.date)),
            daily_totals=_sum_by(current, lambda r: r.date.isoformat()),
            current_month_total=_total(current),
            previous_month_total=_total(previous),
            categories=sorted({r.category for r in records}),
        )
