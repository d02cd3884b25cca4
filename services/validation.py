# services/validation.py

from __future__ import annotations
import re
from typing import Dict, Iterable, Optional

from services.errors import InvalidInput, ValidationError

MIN_CREDIT_THRESHOLD = 0
MAX_CREDIT_THRESHOLD = 200

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


def _safe_int(val) -> Optional[int]:
    try:
        if val is None or isinstance(val, bool):
            return None
        as_float = float(val)
    except (TypeError, ValueError):
        return None
    if not as_float.is_integer():
        return None
    return int(as_float)


def require_fields(payload: Dict, fields: Iterable[str]) -> None:
    """VALIDATION_ERROR naming every missing/blank field at once."""
    missing = [f for f in fields if payload.get(f) is None or str(payload.get(f)).strip() == ""]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def parse_int(
    value,
    field: str,
    minimum: Optional[int] = None,
    maximum: Optional[int] = None,
    nullable: bool = False,
) -> Optional[int]:
    if value is None and nullable:
        return None
    n = _safe_int(value)
    if n is None:
        raise InvalidInput(f"{field} must be an integer")
    if minimum is not None and n < minimum:
        raise InvalidInput(f"{field} must be at least {minimum}")
    if maximum is not None and n > maximum:
        raise InvalidInput(f"{field} must be at most {maximum}")
    return n


def parse_bool(value, field: str, nullable: bool = False) -> Optional[bool]:
    if value is None and nullable:
        return None
    if isinstance(value, bool):
        return value
    raise InvalidInput(f"{field} must be a boolean" + (" or null" if nullable else ""))


def validate_threshold(value, nullable: bool = True) -> Optional[int]:
    return parse_int(
        value,
        "minCreditThreshold",
        minimum=MIN_CREDIT_THRESHOLD,
        maximum=MAX_CREDIT_THRESHOLD,
        nullable=nullable,
    )


def validate_senior_standing(requires_senior_standing: bool, threshold) -> Optional[int]:
    """Return the threshold to store for these flags.

    Senior standing needs a threshold in [0, 200]; without senior standing the
    threshold is meaningless and stored as None.
    """
    if not requires_senior_standing:
        return None
    if threshold is None:
        raise InvalidInput("minCreditThreshold is required when requiresSeniorStanding is true")
    return validate_threshold(threshold, nullable=False)


def validate_color(value: str) -> str:
    if not isinstance(value, str) or not _HEX_COLOR.match(value):
        raise InvalidInput("color must be a hex colour like #1f77b4")
    return value.lower()
