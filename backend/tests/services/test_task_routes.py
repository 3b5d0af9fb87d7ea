"""Task Routes — verifies /api/tasks through the FastAPI app.

Invariants:
    - POST 201 / GET 200 / PUT 200 / DELETE 204, all successes in {message, data}
    - Malformed ids 400, unknown ids 404
    - Assignment failures reject the write entirely
    - Reassignment moves the Task between pendingTasks lists
"""

import json
from uuid import uuid4


async def _get_user(client, user_id):
    res = await client.get(f"/api/users/{user_id}")
    assert res.status_code == 200
    return res.json()["data"]


# ─── POST ────────────────────────────────────────────────────────

async def test_create_task_defaults(client):
    res = await client.post("/api/tasks", json={"name": "T", "deadline": 1700000000000})
    assert res.status_code == 201
    body = res.json()
    assert body["message"] == "Created"
    task = body["data"]
    assert task["name"] == "T"
    assert task["description"] == ""
    assert task["completed"] is False
    assert task["assignedUser"] is None
    assert task["assignedUserName"] == "unassigned"
    assert task["deadline"].startswith("2023-11-14T22:13:20")
    assert "_id" in task and "dateCreated" in task


async def test_create_task_coerces_completed_text(make_task):
    task = await make_task(completed="TRUE")
    assert task["completed"] is True


async def test_create_task_lenient_completed(make_task):
    task = await make_task(completed="maybe")
    assert task["completed"] is False


async def test_create_task_requires_name(client):
    res = await client.post("/api/tasks", json={"deadline": 1})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"
    assert res.json()["data"] is None


async def test_create_task_requires_deadline(client):
    res = await client.post("/api/tasks", json={"name": "T"})
    assert res.status_code == 400


async def test_create_task_invalid_deadline(client):
    res = await client.post("/api/tasks", json={"name": "T", "deadline": "not-a-date"})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_DEADLINE"


async def test_create_task_invalid_assignee_id(client):
    res = await client.post(
        "/api/tasks", json={"name": "T", "deadline": 1, "assignedUser": "nope"},
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_ASSIGNEE_ID"


async def test_create_task_unknown_assignee_writes_nothing(client):
    res = await client.post(
        "/api/tasks", json={"name": "T", "deadline": 1, "assignedUser": str(uuid4())},
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "ASSIGNEE_NOT_FOUND"

    res = await client.get("/api/tasks", params={"count": "true"})
    assert res.json()["data"] == {"count": 0}


async def test_create_assigned_task_updates_user(client, make_user, make_task):
    user = await make_user("Alice")
    task = await make_task(assignedUser=user["_id"])

    assert task["assignedUser"] == user["_id"]
    assert task["assignedUserName"] == "Alice"
    assert (await _get_user(client, user["_id"]))["pendingTasks"] == [task["_id"]]


# ─── GET list ────────────────────────────────────────────────────

async def test_list_tasks_envelope(client, make_task):
    await make_task("a")
    await make_task("b")
    res = await client.get("/api/tasks")
    assert res.status_code == 200
    assert res.json()["message"] == "OK"
    assert len(res.json()["data"]) == 2


async def test_list_tasks_default_limit_is_100(client, make_task):
    for i in range(101):
        await make_task(f"t{i}")
    res = await client.get("/api/tasks")
    assert len(res.json()["data"]) == 100
    res = await client.get("/api/tasks", params={"limit": "0"})
    assert len(res.json()["data"]) == 101
    res = await client.get("/api/tasks", params={"limit": ""})
    assert len(res.json()["data"]) == 101


async def test_list_tasks_where_sort_skip_limit(client, make_task):
    for name in ("a", "b", "c", "d"):
        await make_task(name, completed=name != "c")
    res = await client.get("/api/tasks", params={
        "where": json.dumps({"completed": True}),
        "sort": json.dumps({"name": -1}),
        "skip": "1",
        "limit": "1",
    })
    assert [t["name"] for t in res.json()["data"]] == ["b"]


async def test_list_tasks_filter_alias(client, make_task):
    await make_task("a")
    await make_task("b")
    res = await client.get("/api/tasks", params={"filter": json.dumps({"name": "b"})})
    assert [t["name"] for t in res.json()["data"]] == ["b"]


async def test_list_tasks_count(client, make_task):
    await make_task("a")
    await make_task("b", completed=True)
    res = await client.get("/api/tasks", params={
        "count": "True", "where": json.dumps({"completed": False}),
    })
    assert res.json()["data"] == {"count": 1}


async def test_list_tasks_select(client, make_task):
    await make_task("a")
    res = await client.get("/api/tasks", params={"select": json.dumps({"name": 1})})
    assert set(res.json()["data"][0]) == {"_id", "name"}


async def test_list_tasks_where_id_flag_becomes_projection(client, make_task):
    await make_task("a")
    res = await client.get("/api/tasks", params={"where": json.dumps({"_id": 0})})
    doc = res.json()["data"][0]
    assert "_id" not in doc
    assert doc["name"] == "a"


async def test_list_tasks_malformed_where(client):
    res = await client.get("/api/tasks", params={"where": "{oops"})
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid JSON in 'where'"
    assert res.json()["error"]["code"] == "MALFORMED_QUERY"


async def test_list_tasks_malformed_filter_names_filter(client):
    res = await client.get("/api/tasks", params={"filter": "{oops"})
    assert res.status_code == 400
    assert "'filter'" in res.json()["message"]


async def test_list_tasks_unknown_field_is_400(client):
    res = await client.get("/api/tasks", params={"filter": json.dumps({"colour": 1})})
    assert res.status_code == 400
    assert res.json()["error"]["context"]["field"] == "filter"


async def test_list_tasks_mixed_projection_is_400(client):
    res = await client.get("/api/tasks", params={"select": json.dumps({"name": 1, "completed": 0})})
    assert res.status_code == 400


# ─── GET by id ───────────────────────────────────────────────────

async def test_get_task_by_id(client, make_task):
    task = await make_task("a")
    res = await client.get(f"/api/tasks/{task['_id']}")
    assert res.status_code == 200
    assert res.json()["data"] == task


async def test_get_task_by_id_with_select(client, make_task):
    task = await make_task("a")
    res = await client.get(
        f"/api/tasks/{task['_id']}", params={"select": json.dumps({"deadline": 1, "_id": 0})},
    )
    assert res.json()["data"] == {"deadline": task["deadline"]}


async def test_get_task_malformed_id_is_400(client):
    res = await client.get("/api/tasks/not-an-id")
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid task id"


async def test_get_task_unknown_id_is_404(client):
    res = await client.get(f"/api/tasks/{uuid4()}")
    assert res.status_code == 404
    assert res.json()["message"] == "Task not found"


# ─── PUT ─────────────────────────────────────────────────────────

async def test_replace_task_is_full_replace(client, make_task):
    task = await make_task("a", description="old", completed=True)
    res = await client.put(f"/api/tasks/{task['_id']}", json={"name": "b", "deadline": "2024-01-01"})
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["name"] == "b"
    assert data["description"] == ""
    assert data["completed"] is False
    assert data["deadline"].startswith("2024-01-01T00:00:00")
    assert data["dateCreated"] == task["dateCreated"]


async def test_replace_task_moves_between_users(client, make_user, make_task):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    task = await make_task(assignedUser=alice["_id"])

    res = await client.put(
        f"/api/tasks/{task['_id']}",
        json={"name": "T", "deadline": 1, "assignedUser": bob["_id"]},
    )

    assert res.json()["data"]["assignedUserName"] == "Bob"
    assert (await _get_user(client, alice["_id"]))["pendingTasks"] == []
    assert (await _get_user(client, bob["_id"]))["pendingTasks"] == [task["_id"]]


async def test_replace_task_same_assignee_keeps_single_entry(client, make_user, make_task):
    alice = await make_user("Alice")
    task = await make_task(assignedUser=alice["_id"])
    for _ in range(2):
        res = await client.put(
            f"/api/tasks/{task['_id']}",
            json={"name": "Renamed", "deadline": 1, "assignedUser": alice["_id"]},
        )
        assert res.status_code == 200
    assert (await _get_user(client, alice["_id"]))["pendingTasks"] == [task["_id"]]


async def test_replace_task_unknown_assignee_leaves_task_unchanged(client, make_user, make_task):
    alice = await make_user("Alice")
    task = await make_task("keep", assignedUser=alice["_id"])
    res = await client.put(
        f"/api/tasks/{task['_id']}",
        json={"name": "changed", "deadline": 1, "assignedUser": str(uuid4())},
    )
    assert res.status_code == 400
    stored = (await client.get(f"/api/tasks/{task['_id']}")).json()["data"]
    assert stored["name"] == "keep"
    assert stored["assignedUser"] == alice["_id"]


async def test_replace_unknown_task_is_404(client):
    res = await client.put(f"/api/tasks/{uuid4()}", json={"name": "x", "deadline": 1})
    assert res.status_code == 404


# ─── DELETE ──────────────────────────────────────────────────────

async def test_delete_assigned_task_pulls_from_user(client, make_user, make_task):
    alice = await make_user("Alice")
    keep = await make_task("keep", assignedUser=alice["_id"])
    gone = await make_task("gone", assignedUser=alice["_id"])

    res = await client.delete(f"/api/tasks/{gone['_id']}")

    assert res.status_code == 204
    assert res.content == b""
    assert (await _get_user(client, alice["_id"]))["pendingTasks"] == [keep["_id"]]
    assert (await client.get(f"/api/tasks/{gone['_id']}")).status_code == 404


async def test_delete_unassigned_task(client, make_task):
    task = await make_task()
    assert (await client.delete(f"/api/tasks/{task['_id']}")).status_code == 204


async def test_delete_task_invalid_and_unknown_ids(client):
    assert (await client.delete("/api/tasks/xyz")).status_code == 400
    assert (await client.delete(f"/api/tasks/{uuid4()}")).status_code == 404
