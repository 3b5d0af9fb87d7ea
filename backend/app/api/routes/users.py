"""User Routes — /api/users list, create, read, replace, delete.

Invariants:
    - Every success body is the {message, data} envelope; DELETE is 204 with no body
    - Query parameters go through parse_query_params (default limit from settings)
    - Routes hold no business logic: UserRecords owns sequencing
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status

from app.api.dependencies import get_user_records
from app.config import get_settings
from app.core.query_parser import parse_query_params
from app.schemas.envelope import Envelope, envelope
from app.schemas.user import UserBody, user_document
from app.services.query_runner import project_one
from app.services.user_records import UserRecords

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=Envelope)
async def list_users(
    request: Request, records: UserRecords = Depends(get_user_records),
):
    """List or count Users (where/filter, sort, select, skip, limit, count)."""
    query = parse_query_params(
        request.query_params, default_limit=get_settings().user_default_limit,
    )
    return envelope(await records.query(query))


@router.post(
    "", response_model=Envelope, status_code=status.HTTP_201_CREATED,
)
async def create_user(
    body: UserBody, records: UserRecords = Depends(get_user_records),
):
    user = await records.create(body)
    return envelope(user_document(user), "Created")


@router.get("/{user_id}", response_model=Envelope)
async def get_user(
    user_id: str, request: Request,
    records: UserRecords = Depends(get_user_records),
):
    """Read one User; honours ?select=."""
    query = parse_query_params(request.query_params)
    user = await records.get(user_id)
    return envelope(project_one(user, query.select, user_document))


@router.put("/{user_id}", response_model=Envelope)
async def replace_user(
    user_id: str, body: UserBody,
    records: UserRecords = Depends(get_user_records),
):
    user = await records.replace(user_id, body)
    return envelope(user_document(user))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str, records: UserRecords = Depends(get_user_records),
):
    await records.delete(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
