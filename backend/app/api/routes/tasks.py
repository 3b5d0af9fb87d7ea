"""Task Routes — /api/tasks list, create, read, replace, delete.

Invariants:
    - Every success body is the {message, data} envelope; DELETE is 204 with no body
    - Query parameters go through parse_query_params (default limit from settings)
    - Routes hold no business logic: TaskRecords owns sequencing
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status

from app.api.dependencies import get_task_records
from app.config import get_settings
from app.core.query_parser import parse_query_params
from app.schemas.envelope import Envelope, envelope
from app.schemas.task import TaskBody, task_document
from app.services.query_runner import project_one
from app.services.task_records import TaskRecords

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.get("", response_model=Envelope)
async def list_tasks(
    request: Request, records: TaskRecords = Depends(get_task_records),
):
    """List or count Tasks (where/filter, sort, select, skip, limit, count)."""
    query = parse_query_params(
        request.query_params, default_limit=get_settings().task_default_limit,
    )
    return envelope(await records.query(query))


@router.post(
    "", response_model=Envelope, status_code=status.HTTP_201_CREATED,
)
async def create_task(
    body: TaskBody, records: TaskRecords = Depends(get_task_records),
):
    task = await records.create(body)
    return envelope(task_document(task), "Created")


@router.get("/{task_id}", response_model=Envelope)
async def get_task(
    task_id: str, request: Request,
    records: TaskRecords = Depends(get_task_records),
):
    """Read one Task; honours ?select=."""
    query = parse_query_params(request.query_params)
    task = await records.get(task_id)
    return envelope(project_one(task, query.select, task_document))


@router.put("/{task_id}", response_model=Envelope)
async def replace_task(
    task_id: str, body: TaskBody,
    records: TaskRecords = Depends(get_task_records),
):
    task = await records.replace(task_id, body)
    return envelope(task_document(task))


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: str, records: TaskRecords = Depends(get_task_records),
):
    await records.delete(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
