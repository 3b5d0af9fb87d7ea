"""Projection — validates select directives and applies them to serialized records.

Invariants:
    - A projection is either inclusion or exclusion; only _id may differ from the rest
    - Inclusion always keeps _id unless _id is explicitly 0
    - apply_projection never mutates its input document
"""

from app.core.errors import MalformedQueryError


ID_FIELD = "_id"


def normalize_projection(select: dict | None, param: str = "select") -> dict | None:
    """Validate flags and mode; returns {field: 0|1} or None."""
    if not select:
        return None
    normalized: dict[str, int] = {}
    for name, flag in select.items():
        if flag not in (0, 1):
            raise MalformedQueryError(param, f"'{name}' must be 0 or 1")
        normalized[name] = int(flag)

    modes = {flag for name, flag in normalized.items() if name != ID_FIELD}
    if len(modes) > 1:
        raise MalformedQueryError(
            param, "cannot mix inclusion and exclusion",
        )
    return normalized


def apply_projection(document: dict, projection: dict | None) -> dict:
    """Return the projected copy of document."""
    if not projection:
        return dict(document)

    inclusive = any(
        flag == 1 for name, flag in projection.items() if name != ID_FIELD
    )
    if inclusive:
        keep = {name for name, flag in projection.items() if flag == 1}
        if projection.get(ID_FIELD, 1) == 1:
            keep.add(ID_FIELD)
        return {k: v for k, v in document.items() if k in keep}

    # _id alone with 1 is an inclusion of only _id
    if projection.get(ID_FIELD) == 1 and len(projection) == 1:
        return {k: v for k, v in document.items() if k == ID_FIELD}

    drop = {name for name, flag in projection.items() if flag == 0}
    return {k: v for k, v in document.items() if k not in drop}
