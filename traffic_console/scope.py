"""
Row-level location scoping for records that carry a city-like field.
"""

import unicodedata
from typing import Any, Callable, Optional, Sequence, Tuple

from traffic_console.config import REGION_NAMES, SCOPE_ALL


def field_value(record: Any, name: str) -> Any:
    """Read a field from a mapping or an attribute from an object."""
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def fold(text: str) -> str:
    """Case- and composition-insensitive form used for name matching."""
    return unicodedata.normalize("NFC", text).lower()


def accepted_names(scope: str) -> Tuple[str, ...]:
    return REGION_NAMES.get(scope, ())


def in_scope(scope: str, location: Optional[str]) -> bool:
    """True if a single location value is visible under *scope*."""
    if scope == SCOPE_ALL:
        return True
    if not location or not isinstance(location, str):
        return False
    folded = fold(location)
    return any(fold(name) in folded for name in accepted_names(scope))


def filter_by_scope(
    scope: str,
    records: Sequence[Any],
    field: str = "city",
    get_field: Callable[[Any, str], Any] = field_value,
) -> Sequence[Any]:
    """
    Keep only the records whose *field* matches one of the region's names.

    Scope "all" returns *records* unchanged. Records without a location are
    dropped under any other scope, as is everything under an unknown scope.
    """
    if scope == SCOPE_ALL:
        return records
    return [r for r in records if in_scope(scope, get_field(r, field))]
