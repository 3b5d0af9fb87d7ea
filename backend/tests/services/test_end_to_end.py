"""End-to-end — a User and their Tasks through a full lifecycle over HTTP.

Invariants:
    - After every request, assignedUser/assignedUserName and pendingTasks agree
"""

import json


async def _data(res, status=200):
    assert res.status_code == status, res.text
    return res.json()["data"]


async def test_user_and_task_lifecycle(client):
    user = await _data(
        await client.post("/api/users", json={"name": "A", "email": "a@x.io"}), 201,
    )
    assert user["pendingTasks"] == []

    task = await _data(await client.post("/api/tasks", json={
        "name": "T", "deadline": "2030-01-01T00:00:00Z", "assignedUser": user["_id"],
    }), 201)
    assert task["assignedUserName"] == "A"
    user = await _data(await client.get(f"/api/users/{user['_id']}"))
    assert user["pendingTasks"] == [task["_id"]]

    task = await _data(await client.put(f"/api/tasks/{task['_id']}", json={
        "name": "T", "deadline": "2030-01-01T00:00:00Z", "assignedUser": "",
    }))
    assert task["assignedUser"] is None
    assert task["assignedUserName"] == "unassigned"
    user = await _data(await client.get(f"/api/users/{user['_id']}"))
    assert user["pendingTasks"] == []

    res = await client.post("/api/users", json={"name": "B", "email": "A@x.io"})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "DUPLICATE_EMAIL"

    count = await _data(await client.get("/api/tasks", params={
        "where": json.dumps({"assignedUser": None}), "count": "true",
    }))
    assert count == {"count": 1}

    assert (await client.delete(f"/api/tasks/{task['_id']}")).status_code == 204
    assert (await client.delete(f"/api/users/{user['_id']}")).status_code == 204
    assert await _data(await client.get("/api/users")) == []
    assert await _data(await client.get("/api/tasks")) == []


async def test_query_language_over_http(client, make_user, make_task):
    alice = await make_user("Alice")
    await make_task("late", deadline="2031-06-01", assignedUser=alice["_id"])
    await make_task("soon", deadline="2030-01-01", completed=True)
    await make_task("mid", deadline="2030-06-01")

    res = await client.get("/api/tasks", params={
        "where": json.dumps({"deadline": {"$gte": "2030-03-01"}}),
        "sort": json.dumps({"deadline": 1}),
        "select": json.dumps({"name": 1, "_id": 0}),
    })
    assert await _data(res) == [{"name": "mid"}, {"name": "late"}]

    res = await client.get("/api/tasks", params={
        "where": json.dumps({"$or": [{"completed": True}, {"assignedUserName": "Alice"}]}),
        "sort": json.dumps({"name": "asc"}),
    })
    assert [t["name"] for t in await _data(res)] == ["late", "soon"]

    res = await client.get("/api/tasks", params={"where": json.dumps({"_id": 1})})
    assert all(set(doc) == {"_id"} for doc in await _data(res))


async def test_claiming_and_releasing_keeps_both_sides_consistent(client, make_user, make_task):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    tasks = [await make_task(f"t{i}", assignedUser=alice["_id"]) for i in range(3)]
    ids = [t["_id"] for t in tasks]

    await _data(await client.put(f"/api/users/{bob['_id']}", json={
        "name": "Bob", "email": "bob@example.com", "pendingTasks": ids[:2],
    }))

    alice = await _data(await client.get(f"/api/users/{alice['_id']}"))
    assert alice["pendingTasks"] == [ids[2]]
    by_owner = await _data(await client.get("/api/tasks", params={
        "where": json.dumps({"assignedUser": bob["_id"]}),
    }))
    assert sorted(t["_id"] for t in by_owner) == sorted(ids[:2])
    assert all(t["assignedUserName"] == "Bob" for t in by_owner)


async def test_health_endpoints(client):
    res = await client.get("/api/health/")
    assert res.status_code == 200
    assert res.json()["status"] == "healthy"

    res = await client.get("/api/health/ready")
    assert res.status_code == 200
    assert res.json()["status"] == "ready"
