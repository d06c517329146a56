def _site(client, tenant, name="Quarry"):
    return client.post("/sites", headers=tenant.headers, json={"name": name}).json()["data"]


def _job(client, tenant, name="Blasting"):
    return client.post("/jobs", headers=tenant.headers, json={"name": name}).json()["data"]


def _report(client, tenant, **fields):
    body = {"incident_date": "2026-04-02T10:30:00", "description": "Slip near trench"}
    body.update(fields)
    resp = client.post("/safety", headers=tenant.headers, json=body)
    assert resp.status_code == 201, f"incident create failed: {resp.status_code} {resp.text}"
    return resp.json()["data"]


def test_incident_needs_job_or_site(client, tenant):
    resp = client.post(
        "/safety",
        headers=tenant.headers,
        json={"incident_date": "2026-04-02T10:30:00", "description": "Floating incident"},
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Either job_id or site_id is required"


def test_incidents_are_owned_through_job_or_site(client, tenant, other_tenant):
    by_site = _report(client, tenant, site_id=_site(client, tenant)["id"])
    by_job = _report(client, tenant, job_id=_job(client, tenant)["id"], severity="major")
    assert by_site["reported_by"] == tenant.user_id

    listing = client.get("/safety", headers=tenant.headers).json()["data"]
    assert {i["id"] for i in listing["items"]} == {by_site["id"], by_job["id"]}
    assert listing["limit"] == 20

    for incident in (by_site, by_job):
        assert client.get(f"/safety/{incident['id']}", headers=other_tenant.headers).status_code == 404
        resp = client.put(f"/safety/{incident['id']}", headers=other_tenant.headers, json={"status": "closed"})
        assert resp.status_code == 404
    assert client.get("/safety", headers=other_tenant.headers).json()["data"]["total"] == 0

    foreign_site = _site(client, other_tenant, name="Elsewhere")
    resp = client.post(
        "/safety",
        headers=tenant.headers,
        json={"incident_date": "2026-04-02T10:30:00", "description": "x", "site_id": foreign_site["id"]},
    )
    assert resp.status_code == 400


def test_incident_update_delete_and_statistics(client, tenant):
    site = _site(client, tenant)
    first = _report(client, tenant, site_id=site["id"])
    _report(client, tenant, site_id=site["id"], severity="critical", incident_date="2026-04-05T08:00:00")

    updated = client.put(f"/safety/{first['id']}", headers=tenant.headers, json={"status": "investigating"})
    assert updated.status_code == 200
    assert updated.json()["data"]["status"] == "investigating"

    orphan = client.put(f"/safety/{first['id']}", headers=tenant.headers, json={"site_id": None})
    assert orphan.status_code == 400

    stats = client.get("/safety/statistics", headers=tenant.headers).json()["data"]
    assert stats["total"] == 2
    assert stats["by_status"] == {"investigating": 1, "open": 1}
    assert stats["by_severity"] == {"minor": 1, "critical": 1}

    listing = client.get("/safety", headers=tenant.headers).json()["data"]
    assert [i["severity"] for i in listing["items"]] == ["critical", "minor"]

    ranged = client.get(
        "/safety", headers=tenant.headers, params={"start_date": "2026-04-04T00:00:00"}
    ).json()["data"]
    assert [i["severity"] for i in ranged["items"]] == ["critical"]

    assert client.delete(f"/safety/{first['id']}", headers=tenant.headers).status_code == 200
    assert client.get(f"/safety/{first['id']}", headers=tenant.headers).status_code == 404
