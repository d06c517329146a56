from datetime import datetime, timedelta, timezone


def _create_job(client, tenant, **fields):
    body = {"name": "Job A"}
    body.update(fields)
    resp = client.post("/jobs", headers=tenant.headers, json=body)
    assert resp.status_code == 201, f"job create failed: {resp.status_code} {resp.text}"
    return resp.json()["data"]


def test_jobs_create_list_get_and_cross_company_isolation(client, tenant, other_tenant):
    created = _create_job(client, tenant, job_number="J-100", priority="high")
    job_id = created["id"]
    assert created["company_id"] == tenant.company_id
    assert created["status"] == "draft"
    assert created["created_by"] == tenant.user_id
    assert created["worker_ids"] == []

    listing = client.get("/jobs", headers=tenant.headers)
    assert listing.status_code == 200
    data = listing.json()["data"]
    assert data["total"] == 1
    assert [row["id"] for row in data["items"]] == [job_id]

    own = client.get(f"/jobs/{job_id}", headers=tenant.headers)
    assert own.status_code == 200
    assert own.json()["data"]["job_number"] == "J-100"

    foreign = client.get(f"/jobs/{job_id}", headers=other_tenant.headers)
    assert foreign.status_code == 404
    assert foreign.json() == {"success": False, "error": "Job not found"}

    assert client.put(f"/jobs/{job_id}", headers=other_tenant.headers, json={"name": "Hijack"}).status_code == 404
    assert client.delete(f"/jobs/{job_id}", headers=other_tenant.headers).status_code == 404
    assert client.get("/jobs", headers=other_tenant.headers).json()["data"]["total"] == 0


def test_jobs_second_page(client, tenant):
    ids = {_create_job(client, tenant, name=f"Job {i}")["id"] for i in range(10)}

    first = client.get("/jobs", headers=tenant.headers, params={"page": 1, "limit": 5}).json()["data"]
    second = client.get("/jobs", headers=tenant.headers, params={"page": 2, "limit": 5}).json()["data"]

    assert second["total"] == 10
    assert second["page"] == 2
    assert second["limit"] == 5
    assert len(second["items"]) == 5

    first_ids = [row["id"] for row in first["items"]]
    second_ids = [row["id"] for row in second["items"]]
    assert set(first_ids).isdisjoint(second_ids)
    assert set(first_ids) | set(second_ids) == ids


def test_jobs_short_page_and_limit_clamp(client, tenant):
    for i in range(3):
        _create_job(client, tenant, name=f"Job {i}")

    past_end = client.get("/jobs", headers=tenant.headers, params={"page": 5, "limit": 5}).json()["data"]
    assert past_end["items"] == []
    assert past_end["total"] == 3

    clamped = client.get("/jobs", headers=tenant.headers, params={"limit": 500}).json()["data"]
    assert clamped["limit"] == 100
    assert len(clamped["items"]) == 3


def test_absurd_page_number_is_an_empty_page(client, tenant):
    _create_job(client, tenant)

    resp = client.get("/jobs", headers=tenant.headers, params={"page": "10000000000000000000", "limit": 5})
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["items"] == []
    assert data["total"] == 1
    assert data["page"] == 1_000_000

    mobile = client.get("/mobile/jobs", headers=tenant.headers, params={"page": "10000000000000000000"})
    assert mobile.status_code == 200
    assert mobile.json()["data"]["has_more"] is False


def test_jobs_filters(client, tenant):
    _create_job(client, tenant, name="Roof repair", status="in_progress", job_type="roofing")
    _create_job(client, tenant, name="Basement dig", description="Excavate and REPAIR drainage")
    _create_job(client, tenant, name="Paint fence", status="in_progress")

    search = client.get("/jobs", headers=tenant.headers, params={"search": "repair"}).json()["data"]
    assert {row["name"] for row in search["items"]} == {"Roof repair", "Basement dig"}

    combined = client.get(
        "/jobs", headers=tenant.headers, params={"status": "in_progress", "job_type": "roofing"}
    ).json()["data"]
    assert [row["name"] for row in combined["items"]] == ["Roof repair"]

    bad = client.get("/jobs", headers=tenant.headers, params={"status": "exploded"})
    assert bad.status_code == 400


def test_job_update_without_fields_returns_current_row(client, tenant):
    job = _create_job(client, tenant, description="Keep me")

    resp = client.put(f"/jobs/{job['id']}", headers=tenant.headers, json={})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["name"] == "Job A"
    assert data["description"] == "Keep me"


def test_job_update_clears_explicit_null(client, tenant):
    job = _create_job(client, tenant, description="Temporary")

    resp = client.put(f"/jobs/{job['id']}", headers=tenant.headers, json={"description": None})
    assert resp.status_code == 200
    assert resp.json()["data"]["description"] is None
    assert resp.json()["data"]["name"] == "Job A"


def test_job_date_validation(client, tenant):
    bad = client.post(
        "/jobs",
        headers=tenant.headers,
        json={"name": "Backwards", "start_date": "2026-05-10", "end_date": "2026-05-01"},
    )
    assert bad.status_code == 400
    assert bad.json()["error"] == "End date must be after start date"

    job = _create_job(client, tenant, start_date="2026-05-10")
    update = client.put(f"/jobs/{job['id']}", headers=tenant.headers, json={"end_date": "2026-05-09"})
    assert update.status_code == 400


def test_job_site_must_belong_to_company(client, tenant, other_tenant):
    site = client.post("/sites", headers=other_tenant.headers, json={"name": "Elsewhere"}).json()["data"]

    resp = client.post("/jobs", headers=tenant.headers, json={"name": "Trespass", "site_id": site["id"]})
    assert resp.status_code == 400
    assert "Site" in resp.json()["error"]


def test_completed_date_follows_status(client, tenant):
    job = _create_job(client, tenant)

    done = client.put(f"/jobs/{job['id']}", headers=tenant.headers, json={"status": "completed"}).json()["data"]
    assert done["completed_date"] is not None
    stamped = datetime.fromisoformat(done["completed_date"]).replace(tzinfo=None)
    assert abs(datetime.now(timezone.utc).replace(tzinfo=None) - stamped) < timedelta(minutes=5)

    reopened = client.put(f"/jobs/{job['id']}", headers=tenant.headers, json={"status": "in_progress"}).json()["data"]
    assert reopened["completed_date"] is None


def test_archive_and_unarchive(client, tenant):
    job = _create_job(client, tenant, status="planned")

    not_archived = client.post(f"/jobs/{job['id']}/unarchive", headers=tenant.headers)
    assert not_archived.status_code == 400

    archived = client.post(f"/jobs/{job['id']}/archive", headers=tenant.headers)
    assert archived.json()["data"]["status"] == "archived"
    assert client.post(f"/jobs/{job['id']}/archive", headers=tenant.headers).status_code == 400

    restored = client.post(f"/jobs/{job['id']}/unarchive", headers=tenant.headers)
    assert restored.json()["data"]["status"] == "draft"


def test_assign_workers_and_managers(client, tenant, other_tenant, make_user):
    job = _create_job(client, tenant)
    worker = make_user(tenant, "carpenter@acme-builders.com")
    foreman = make_user(tenant, "foreman@acme-builders.com", role="foreman")
    outsider = make_user(other_tenant, "spy@birch-construction.com")

    resp = client.put(f"/jobs/{job['id']}/workers", headers=tenant.headers, json={"user_ids": [worker.user_id]})
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["worker_ids"] == [worker.user_id]

    resp = client.put(f"/jobs/{job['id']}/managers", headers=tenant.headers, json={"user_ids": [foreman.user_id]})
    assert resp.json()["data"]["manager_ids"] == [foreman.user_id]

    rejected = client.put(
        f"/jobs/{job['id']}/workers",
        headers=tenant.headers,
        json={"user_ids": [worker.user_id, outsider.user_id]},
    )
    assert rejected.status_code == 400
    assert client.get(f"/jobs/{job['id']}", headers=tenant.headers).json()["data"]["worker_ids"] == [worker.user_id]

    cleared = client.put(f"/jobs/{job['id']}/workers", headers=tenant.headers, json={"user_ids": []})
    assert cleared.json()["data"]["worker_ids"] == []


def test_delete_statistics_and_site_listing(client, tenant):
    site = client.post("/sites", headers=tenant.headers, json={"name": "Harbor"}).json()["data"]
    keep = _create_job(client, tenant, site_id=site["id"], status="in_progress")
    drop = _create_job(client, tenant, site_id=site["id"])

    assert client.delete(f"/jobs/{drop['id']}", headers=tenant.headers).status_code == 200
    assert client.get(f"/jobs/{drop['id']}", headers=tenant.headers).status_code == 404
    assert client.delete(f"/jobs/{drop['id']}", headers=tenant.headers).status_code == 404

    for_site = client.get(f"/jobs/site/{site['id']}", headers=tenant.headers).json()["data"]
    assert [row["id"] for row in for_site] == [keep["id"]]

    stats = client.get("/jobs/statistics", headers=tenant.headers).json()["data"]
    assert stats == {"total": 1, "by_status": {"in_progress": 1}}


def test_workers_cannot_create_jobs(client, tenant, make_user):
    worker = make_user(tenant, "laborer@acme-builders.com")
    resp = client.post("/jobs", headers=worker.headers, json={"name": "Unauthorized"})
    assert resp.status_code == 403
