"""Query strings for the Remote Data Service REST endpoint (PostgREST syntax)."""
from enum import Enum
from typing import Any, Mapping
from urllib.parse import urlencode

# Characters PostgREST reads literally in select/order expressions
_SAFE = "*,():!._-"

ORDER_DIRECTIONS = ("asc", "desc")


def _filter_value(value: Any) -> str:
    """Equality operand: booleans lowercase, None becomes an IS NULL test."""
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{'true' if value else 'false'}"
    if isinstance(value, Enum):
        value = value.value
    return f"eq.{value}"


def build_query(
    *,
    columns: str | None = None,
    filters: Mapping[str, Any] | None = None,
    order: tuple[str, str] | None = None,
) -> str:
    """
    Build ``select=...&col=eq.value&order=col.desc``.
    filters are equality predicates (column = value), joined with AND.
    """
    pairs: list[tuple[str, str]] = []
    if columns:
        pairs.append(("select", columns))
    for column, value in (filters or {}).items():
        pairs.append((column, _filter_value(value)))
    if order:
        column, direction = order
        if direction not in ORDER_DIRECTIONS:
            raise ValueError(f"order direction must be one of {ORDER_DIRECTIONS}, got {direction!r}")
        pairs.append(("order", f"{column}.{direction}"))
    return urlencode(pairs, safe=_SAFE)
