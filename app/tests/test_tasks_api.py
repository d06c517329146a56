def _job(client, tenant, name="Kitchen remodel"):
    resp = client.post("/jobs", headers=tenant.headers, json={"name": name})
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def _task(client, tenant, job_id, **fields):
    body = {"job_id": job_id, "title": "Demo cabinets"}
    body.update(fields)
    resp = client.post("/tasks", headers=tenant.headers, json=body)
    assert resp.status_code == 201, f"task create failed: {resp.status_code} {resp.text}"
    return resp.json()["data"]


def test_task_crud_is_scoped_through_the_job(client, tenant, other_tenant):
    job = _job(client, tenant)
    task = _task(client, tenant, job["id"], priority="high")
    assert task["status"] == "pending"
    assert task["created_by"] == tenant.user_id

    assert client.get(f"/tasks/{task['id']}", headers=tenant.headers).status_code == 200
    assert client.get(f"/tasks/{task['id']}", headers=other_tenant.headers).status_code == 404
    assert client.get("/tasks", headers=other_tenant.headers).json()["data"]["total"] == 0

    foreign_job = _job(client, other_tenant, name="Not yours")
    resp = client.post("/tasks", headers=tenant.headers, json={"job_id": foreign_job["id"], "title": "Sneaky"})
    assert resp.status_code == 400


def test_tasks_disappear_with_their_job(client, tenant):
    job = _job(client, tenant)
    task = _task(client, tenant, job["id"])

    client.delete(f"/jobs/{job['id']}", headers=tenant.headers)
    assert client.get(f"/tasks/{task['id']}", headers=tenant.headers).status_code == 404


def test_status_changes_are_recorded(client, tenant):
    job = _job(client, tenant)
    task = _task(client, tenant, job["id"])

    resp = client.put(
        f"/tasks/{task['id']}",
        headers=tenant.headers,
        json={"status": "in_progress", "status_notes": "Crew on site"},
    )
    assert resp.status_code == 200, resp.text
    client.put(f"/tasks/{task['id']}", headers=tenant.headers, json={"title": "Demo upper cabinets"})
    client.put(f"/tasks/{task['id']}", headers=tenant.headers, json={"status": "completed"})

    history = client.get(f"/tasks/{task['id']}/history", headers=tenant.headers).json()["data"]
    transitions = [(h["old_status"], h["new_status"]) for h in history]
    assert sorted(transitions, key=str) == sorted(
        [(None, "pending"), ("pending", "in_progress"), ("in_progress", "completed")], key=str
    )
    noted = next(h for h in history if h["new_status"] == "in_progress")
    assert noted["notes"] == "Crew on site"
    assert all(h["changed_by"] == tenant.user_id for h in history)


def test_restore_only_brings_back_deleted_tasks(client, tenant):
    job = _job(client, tenant)
    task = _task(client, tenant, job["id"])

    live = client.post(f"/tasks/{task['id']}/restore", headers=tenant.headers)
    assert live.status_code == 404
    assert live.json()["error"] == "Task not found or already active"

    assert client.delete(f"/tasks/{task['id']}", headers=tenant.headers).status_code == 200
    assert client.get(f"/tasks/{task['id']}", headers=tenant.headers).status_code == 404

    restored = client.post(f"/tasks/{task['id']}/restore", headers=tenant.headers)
    assert restored.status_code == 200, restored.text
    assert restored.json()["data"]["id"] == task["id"]
    assert client.get(f"/tasks/{task['id']}", headers=tenant.headers).status_code == 200


def test_task_filters_statistics_and_user_listing(client, tenant, make_user):
    worker = make_user(tenant, "tiler@acme-builders.com")
    job = _job(client, tenant)
    _task(client, tenant, job["id"], title="Grout", assigned_to=worker.user_id)
    _task(client, tenant, job["id"], title="Set tile", assigned_to=worker.user_id, due_date="2026-06-01")
    _task(client, tenant, job["id"], title="Seal tile", assigned_to=worker.user_id, due_date="2026-05-20")
    _task(client, tenant, job["id"], title="Order tile", status="completed", priority="low")

    search = client.get("/tasks", headers=tenant.headers, params={"search": "TILE"}).json()["data"]
    assert search["total"] == 3
    assert search["limit"] == 20

    low = client.get("/tasks", headers=tenant.headers, params={"priority": "low"}).json()["data"]
    assert [t["title"] for t in low["items"]] == ["Order tile"]

    mine = client.get(f"/tasks/user/{worker.user_id}", headers=tenant.headers).json()["data"]
    assert [t["title"] for t in mine] == ["Seal tile", "Set tile", "Grout"]

    stats = client.get("/tasks/statistics", headers=tenant.headers).json()["data"]
    assert stats == {"total": 4, "by_status": {"pending": 3, "completed": 1}}


def test_assignee_must_belong_to_company(client, tenant, other_tenant, make_user):
    outsider = make_user(other_tenant, "plumber@birch-construction.com")
    job = _job(client, tenant)

    resp = client.post(
        "/tasks",
        headers=tenant.headers,
        json={"job_id": job["id"], "title": "Fix sink", "assigned_to": outsider.user_id},
    )
    assert resp.status_code == 400
