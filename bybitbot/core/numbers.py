from decimal import Decimal, InvalidOperation
from typing import Any, Optional


def to_decimal(v: Any) -> Optional[Decimal]:
    """Parse an exchange numeric field; None for missing or garbage values."""
    if v is None or isinstance(v, bool):
        return None
    try:
        d = Decimal(str(v).strip())
    except (InvalidOperation, ValueError):
        return None
    if not d.is_finite():
        return None
    return d
