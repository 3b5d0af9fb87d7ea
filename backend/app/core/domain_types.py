"""Domain Types — identity types, the unassigned sentinel, and id validation.

Invariants:
    - UserId, TaskId wrap UUIDs — never a bare string in service logic
    - is_valid_id is the single check separating "malformed id" (400) from
      "well-formed id, no such record" (404)
    - UNASSIGNED is the only value assignedUserName takes when assignedUser is null

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - UUID ids: generated client-side by the ORM default, portable across backends
"""

from enum import Enum
from typing import NewType
from uuid import UUID

from app.core.errors import InvalidIdError


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)
TaskId = NewType("TaskId", UUID)


# ─── Constants ───────────────────────────────────────────────────

UNASSIGNED: str = "unassigned"


# ─── Enums ───────────────────────────────────────────────────────

class Resource(str, Enum):
    """Resource names used in error messages and log context."""
    USER = "User"
    TASK = "Task"


class PendingTaskAction(str, Enum):
    """User-side pendingTasks mutations."""
    ADD = "add"
    REMOVE = "remove"


# ─── Identifier validation ───────────────────────────────────────

def is_valid_id(raw: object) -> bool:
    """True if raw is a UUID or text that parses as one."""
    if isinstance(raw, UUID):
        return True
    if not isinstance(raw, str):
        return False
    try:
        UUID(raw)
    except ValueError:
        return False
    return True


def parse_id(raw: object) -> UUID | None:
    """Parse raw into a UUID, or None if it is not a well-formed id."""
    if isinstance(raw, UUID):
        return raw
    if not is_valid_id(raw):
        return None
    return UUID(raw)


def require_id(raw: object, resource: Resource) -> UUID:
    """Parse a by-id route parameter; malformed → InvalidIdError."""
    parsed = parse_id(raw)
    if parsed is None:
        raise InvalidIdError(resource.value, str(raw))
    return parsed


def parse_id_list(raw: object, resource: Resource) -> list[UUID]:
    """Parse an id list from a body field; non-lists are treated as empty."""
    if not isinstance(raw, list):
        return []
    return [require_id(item, resource) for item in raw]
