"""Query Runner — executes a QueryDescriptor against a RecordStore and shapes the payload.

Invariants:
    - count=True returns {"count": n} over the filter only (skip/limit ignored)
    - Projection is validated BEFORE the store is queried
    - PredicateError from the store surfaces as MalformedQueryError naming the client's key
"""

from collections.abc import Callable

from app.core.errors import MalformedQueryError
from app.core.projection import apply_projection, normalize_projection
from app.core.query_parser import QueryDescriptor
from app.core.repository_protocols import RecordStore
from app.infrastructure.predicate_compiler import PredicateError


async def run_query(
    store: RecordStore,
    query: QueryDescriptor,
    to_document: Callable[[object], dict],
) -> list[dict] | dict:
    """Run a list/count query; returns documents or {"count": n}."""
    projection = normalize_projection(query.select)
    try:
        if query.count:
            return {"count": await store.count_documents(query.where)}
        records = await store.find(
            query.where, sort=query.sort, skip=query.skip, limit=query.limit,
        )
    except PredicateError as e:
        param = query.where_key if e.clause == "where" else e.clause
        raise MalformedQueryError(param, str(e)) from e
    return [apply_projection(to_document(r), projection) for r in records]


def project_one(record: object, select: dict | None, to_document) -> dict:
    """Serialize one record under an optional select directive."""
    return apply_projection(to_document(record), normalize_projection(select))
