"""Route Dependencies — build per-request services over the request's DB session.

Invariants:
    - Both stores of a service share ONE AsyncSession (the request's)
    - Services are constructed per request; nothing is cached across requests
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.database import get_db
from app.infrastructure.document_mappings import TASK_DOCUMENT, USER_DOCUMENT
from app.infrastructure.record_store import SqlRecordStore
from app.services.task_records import TaskRecords
from app.services.user_records import UserRecords


def get_task_records(db: AsyncSession = Depends(get_db)) -> TaskRecords:
    return TaskRecords(
        SqlRecordStore(db, TASK_DOCUMENT), SqlRecordStore(db, USER_DOCUMENT),
    )


def get_user_records(db: AsyncSession = Depends(get_db)) -> UserRecords:
    return UserRecords(
        SqlRecordStore(db, USER_DOCUMENT), SqlRecordStore(db, TASK_DOCUMENT),
    )
