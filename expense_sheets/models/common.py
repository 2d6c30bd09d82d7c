from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any

from pydantic import Field, PlainSerializer

# Two fractional digits, finite; stored as Decimal, rendered as a JSON number
Amount = Annotated[
    Decimal,
    Field(max_digits=14, decimal_places=2, allow_inf_nan=False),
    PlainSerializer(float, return_type=float, when_used="json"),
]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_name(value: Any) -> Any:
    """Category names are case-insensitive and stored lower-cased."""
    if isinstance(value, str):
        return value.strip().lower()
    return value
