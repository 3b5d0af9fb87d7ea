"""Record Bodies — Pydantic validation of Task and User request bodies.

Invariants:
    - name is stripped and must be non-empty
    - deadline is required and non-null, any format accepted here
    - email is stripped and lowercased
    - assignedUser / pendingTasks accepted by alias and left loosely typed
"""

import pytest
from pydantic import ValidationError

from app.schemas.task import TaskBody
from app.schemas.user import UserBody


# --- TaskBody -----------------------------------------------------------------

def test_task_body_accepts_loose_fields():
    body = TaskBody.model_validate({
        "name": "  Write report ", "deadline": "1700000000000",
        "completed": "TRUE", "assignedUser": "",
    })
    assert body.name == "Write report"
    assert body.deadline == "1700000000000"
    assert body.completed == "TRUE"
    assert body.assigned_user == ""
    assert body.description is None


def test_task_body_requires_deadline():
    with pytest.raises(ValidationError):
        TaskBody.model_validate({"name": "T"})


def test_task_body_rejects_null_deadline():
    with pytest.raises(ValidationError):
        TaskBody.model_validate({"name": "T", "deadline": None})


@pytest.mark.parametrize("name", ["", "   "])
def test_task_body_rejects_blank_name(name):
    with pytest.raises(ValidationError):
        TaskBody.model_validate({"name": name, "deadline": 1})


def test_task_body_assigned_user_defaults_to_none():
    assert TaskBody.model_validate({"name": "T", "deadline": 1}).assigned_user is None


# --- UserBody -----------------------------------------------------------------

def test_user_body_normalizes_email():
    body = UserBody.model_validate({"name": "A", "email": "  Alice@Example.COM "})
    assert body.email == "alice@example.com"


def test_user_body_requires_email():
    with pytest.raises(ValidationError):
        UserBody.model_validate({"name": "A"})


def test_user_body_rejects_blank_email():
    with pytest.raises(ValidationError):
        UserBody.model_validate({"name": "A", "email": "   "})


def test_user_body_pending_tasks_alias():
    body = UserBody.model_validate({"name": "A", "email": "a@x.com", "pendingTasks": ["x"]})
    assert body.pending_tasks == ["x"]
