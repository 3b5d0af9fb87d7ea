"""Query Parser — turns raw query-string parameters into a typed QueryDescriptor.

Invariants:
    - Only one of where/filter is read: "where" if present, else "filter"
    - where/sort/select are JSON objects or absent; anything else is MalformedQueryError
      naming the parameter that was read
    - skip and limit are never negative
    - count is True iff the raw text lowercased is exactly "true"
    - where["_id"] equal to the number 0 or 1 moves into select, never stays a filter

Design Decisions:
    - Frozen dataclass over a plain dict: callers get named fields, validated once
    - Pure: no store access, no status codes; boundary maps errors to HTTP
"""

import json
import math
from collections.abc import Mapping
from dataclasses import dataclass, field

from app.core.errors import MalformedQueryError


WHERE_KEYS: tuple[str, ...] = ("where", "filter")


@dataclass(frozen=True)
class QueryDescriptor:
    """Structured read query."""
    where: dict = field(default_factory=dict)
    sort: dict | None = None
    select: dict | None = None
    skip: int = 0
    limit: int = 0
    count: bool = False
    where_key: str = "where"


def parse_query_params(
    params: Mapping[str, str], default_limit: int = 0,
) -> QueryDescriptor:
    """Parse where/filter, sort, select, skip, limit, count."""
    where_key = next((k for k in WHERE_KEYS if k in params), "where")
    where = parse_json_param(params.get(where_key), where_key)
    sort = parse_json_param(params.get("sort"), "sort")
    select = parse_json_param(params.get("select"), "select")

    where, select = _lift_id_projection(where or {}, select)

    return QueryDescriptor(
        where=where,
        sort=sort,
        select=select,
        skip=parse_non_negative(params.get("skip"), 0),
        limit=parse_non_negative(params.get("limit"), default_limit),
        count=str(params.get("count")).lower() == "true",
        where_key=where_key,
    )


def parse_json_param(raw: str | None, name: str) -> dict | None:
    """Decode a JSON-object parameter. Absent, blank or null → None."""
    if raw is None or not raw.strip():
        return None
    try:
        value = json.loads(raw)
    except ValueError:
        raise MalformedQueryError(name)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise MalformedQueryError(name, "expected a JSON object")
    return value


def parse_non_negative(raw: str | None, default: int) -> int:
    """Numeric text → int clamped at 0; non-numeric or non-finite → default.

    Blank text reads as 0 (limit=0 is "no limit"), like numeric coercion of "".
    """
    if raw is None:
        return default
    if not raw.strip():
        return 0
    try:
        value = float(raw)
    except ValueError:
        return default
    if not math.isfinite(value):
        return default
    return max(0, int(value))


def _lift_id_projection(
    where: dict, select: dict | None,
) -> tuple[dict, dict | None]:
    if "_id" not in where:
        return where, select
    value = where["_id"]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return where, select
    if value not in (0, 1):
        return where, select
    remaining = {k: v for k, v in where.items() if k != "_id"}
    return remaining, {**(select or {}), "_id": int(value)}
