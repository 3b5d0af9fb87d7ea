"""Error Hierarchy — typed, categorized exceptions for all record-service failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Client-input errors are 400, missing records 404, infrastructure errors 5xx
    - to_response() produces the {message, data, error} envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with RecordServiceError base: FastAPI global handler catches all
      (ADR: uniform error shape)
    - Core raises these without knowing about HTTP; http_status is metadata the
      boundary layer reads, never logic the core branches on
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    resource: str | None = None
    resource_id: str | None = None
    field: str | None = None
    debug_info: dict[str, Any] | None = None


class RecordServiceError(Exception):
    """Base exception for all record-service errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to the standard {message, data, error} envelope."""
        return {
            "message": self.message,
            "data": None,
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "resource": self.context.resource,
                    "resource_id": self.context.resource_id,
                    "field": self.context.field,
                },
            },
        }


# ─── Client Input Errors (400-level) ────────────────────────────

class MalformedQueryError(RecordServiceError):
    """A query parameter is not valid JSON or not a usable query object."""
    def __init__(self, param: str, detail: str | None = None):
        message = f"Invalid JSON in '{param}'" if detail is None else (
            f"Invalid query in '{param}': {detail}"
        )
        super().__init__(
            message, "MALFORMED_QUERY", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, ErrorContext(field=param), 400,
        )
        self.param = param


class InvalidIdError(RecordServiceError):
    """Identifier fails format validation."""
    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            f"Invalid {resource.lower()} id",
            "INVALID_ID", ErrorCategory.VALIDATION, ErrorSeverity.WARNING,
            ErrorContext(resource=resource, resource_id=resource_id), 400,
        )


class InvalidDeadlineError(RecordServiceError):
    """Deadline is neither a date nor epoch milliseconds."""
    def __init__(self, raw: object):
        super().__init__(
            "deadline must be a valid date or epoch milliseconds",
            "INVALID_DEADLINE", ErrorCategory.VALIDATION, ErrorSeverity.WARNING,
            ErrorContext(field="deadline", debug_info={"raw": repr(raw)}), 400,
        )


class InvalidAssigneeIdError(RecordServiceError):
    """assignedUser is not a well-formed id."""
    def __init__(self, raw: object):
        super().__init__(
            "assignedUser is not a valid id",
            "INVALID_ASSIGNEE_ID", ErrorCategory.VALIDATION, ErrorSeverity.WARNING,
            ErrorContext(field="assignedUser", resource_id=str(raw)), 400,
        )


class AssigneeNotFoundError(RecordServiceError):
    """assignedUser is well-formed but no such User exists."""
    def __init__(self, user_id: str):
        super().__init__(
            "assignedUser does not exist",
            "ASSIGNEE_NOT_FOUND", ErrorCategory.VALIDATION, ErrorSeverity.WARNING,
            ErrorContext(field="assignedUser", resource="User", resource_id=user_id),
            400,
        )


class DuplicateEmailError(RecordServiceError):
    """Another User already owns this email."""
    def __init__(self, email: str):
        super().__init__(
            "A user with that email already exists",
            "DUPLICATE_EMAIL", ErrorCategory.VALIDATION, ErrorSeverity.WARNING,
            ErrorContext(field="email", resource="User", debug_info={"email": email}),
            400,
        )


class ResourceNotFoundError(RecordServiceError):
    """Requested resource does not exist."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING,
            ErrorContext(resource=resource_type, resource_id=resource_id), 404,
        )


class RecordConflictError(RecordServiceError):
    """A write violated a uniqueness constraint."""
    def __init__(self, resource: str, operation: str):
        super().__init__(
            f"{resource} {operation} conflicts with an existing record",
            "RECORD_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ErrorContext(resource=resource), 409,
        )
        self.resource = resource


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(RecordServiceError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
