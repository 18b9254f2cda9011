"""
Generic listing engine – search, filter, sort and paginate record snapshots.

Every entity listing goes through :func:`run_query`. The pipeline order is
fixed: search, then exact-match filters, then sort, then the page slice.
"""

import math
from datetime import date
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

import pandas as pd

from traffic_console.config import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, FILTER_SENTINEL, MAX_PAGE_SIZE
from traffic_console.envelope import ValidationError
from traffic_console.models import Pagination, QueryRequest, QueryResult
from traffic_console.scope import field_value, fold

SORT_ORDERS = ("asc", "desc")


# ── Request parsing ──────────────────────────────────────────────────

def _positive_int(raw: Any, name: str, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer", details={"field": name, "value": raw})
    if value < 1:
        raise ValidationError(f"{name} must be >= 1", details={"field": name, "value": value})
    return value


def parse_query_request(
    params: Mapping[str, Any],
    filter_keys: Iterable[str] = (),
    default_sort_by: Optional[str] = None,
    default_sort_order: str = "asc",
) -> QueryRequest:
    """Build a QueryRequest from request parameters (camelCase keys)."""
    page = _positive_int(params.get("page"), "page", DEFAULT_PAGE)
    limit = _positive_int(params.get("limit"), "limit", DEFAULT_PAGE_SIZE)
    if limit > MAX_PAGE_SIZE:
        raise ValidationError(
            f"limit must be <= {MAX_PAGE_SIZE}",
            details={"field": "limit", "value": limit, "max": MAX_PAGE_SIZE},
        )

    sort_by = params.get("sortBy") or default_sort_by
    sort_order = str(params.get("sortOrder") or default_sort_order).lower()
    if sort_order not in SORT_ORDERS:
        raise ValidationError(
            "sortOrder must be 'asc' or 'desc'",
            details={"field": "sortOrder", "value": params.get("sortOrder")},
        )

    search = str(params.get("search") or "").strip() or None
    filters = {
        key: params.get(key)
        for key in filter_keys
        if params.get(key) not in (None, "")
    }
    return QueryRequest(
        page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
        search=search, filters=filters,
    )


# ── Value helpers ────────────────────────────────────────────────────

def _is_missing(value: Any) -> bool:
    if value is None or value is pd.NaT:
        return True
    return isinstance(value, float) and math.isnan(value)


def stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_date_field(name: str, date_fields: Iterable[str] = ()) -> bool:
    return (
        name in date_fields
        or name == "date"
        or name.endswith(("Date", "At", "_date", "_at"))
    )


def _to_timestamp(value: Any):
    if not isinstance(value, (str, date)):
        return pd.NaT
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError, OverflowError):
        return pd.NaT
    if pd.isna(ts):
        return pd.NaT
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")


def _column(records: Sequence[Any], positions: Sequence[int], name: str, get_field) -> pd.Series:
    return pd.Series([get_field(records[i], name) for i in positions], index=positions, dtype=object)


# ── Pipeline stages ──────────────────────────────────────────────────

def _search_mask(records, positions, term: str, fields: Sequence[str], get_field) -> pd.Series:
    needle = fold(term)
    mask = pd.Series(False, index=positions, dtype=bool)
    for name in fields:
        hits = _column(records, positions, name, get_field).map(
            lambda v: not _is_missing(v) and needle in fold(stringify(v))
        )
        mask |= hits.astype(bool)
    return mask


def _matches(value: Any, expected: Any) -> bool:
    if _is_missing(value):
        return False
    if isinstance(expected, str) and not isinstance(value, str):
        return stringify(value) == expected
    return value == expected


def _sort_keys(values: pd.Series, as_dates: bool) -> pd.Series:
    """
    Convert raw values into comparable keys of a single type.

    Values that do not fit the column's key type become NA and therefore
    sort last, instead of failing the whole comparison.
    """
    present = [v for v in values if not _is_missing(v)]
    if as_dates or any(isinstance(v, date) for v in present):
        return pd.to_datetime(values.map(_to_timestamp), utc=True)

    numeric = sum(1 for v in present if isinstance(v, (int, float)))
    if present and numeric * 2 > len(present):
        plain = values.map(lambda v: v if isinstance(v, (int, float, str)) else None)
        return pd.to_numeric(plain, errors="coerce")

    return values.map(lambda v: v if isinstance(v, str) else None)


def run_query(
    records: Sequence[Any],
    request: QueryRequest,
    search_fields: Sequence[str] = (),
    date_fields: Iterable[str] = (),
    get_field: Callable[[Any, str], Any] = field_value,
) -> QueryResult:
    """Apply *request* to *records* and return one page of them."""
    records = list(records)
    positions = list(range(len(records)))

    if request.search:
        mask = _search_mask(records, positions, request.search, search_fields, get_field)
        positions = list(mask[mask].index)

    for key, expected in request.filters.items():
        if expected is None or expected == "" or expected == FILTER_SENTINEL:
            continue
        mask = _column(records, positions, key, get_field).map(lambda v: _matches(v, expected))
        mask = mask.astype(bool)
        positions = list(mask[mask].index)

    if request.sort_by and positions:
        keys = _sort_keys(
            _column(records, positions, request.sort_by, get_field),
            as_dates=is_date_field(request.sort_by, date_fields),
        )
        # mergesort is stable: equal keys keep their source order
        ordered = keys.sort_values(
            ascending=request.sort_order != "desc",
            na_position="last",
            kind="mergesort",
        )
        positions = list(ordered.index)

    total = len(positions)
    offset = (request.page - 1) * request.limit
    page_items = [records[i] for i in positions[offset:offset + request.limit]]
    return QueryResult(
        items=page_items,
        pagination=Pagination(page=request.page, limit=request.limit, total=total),
    )
