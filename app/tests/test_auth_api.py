import pytest


def test_register_creates_company_and_admin(client):
    resp = client.post(
        "/auth/register",
        json={
            "company_name": "Granite Works",
            "email": "Boss@Granite-Works.com",
            "password": "Sup3r-Secret-pw",
            "first_name": "Ada",
        },
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["success"] is True
    data = body["data"]
    assert data["token"]
    assert data["user"]["role"] == "company_admin"
    assert data["user"]["email"] == "boss@granite-works.com"
    assert data["user"]["company_id"] == data["company"]["id"]
    assert data["company"]["name"] == "Granite Works"
    assert "password_hash" not in data["user"]


def test_register_duplicate_email_conflicts(client, tenant):
    resp = client.post(
        "/auth/register",
        json={"company_name": "Copycat", "email": "OWNER@acme-builders.com", "password": "Sup3r-Secret-pw"},
    )
    assert resp.status_code == 409
    assert resp.json() == {"success": False, "error": "Email already registered"}


def test_register_validation_error_is_400_envelope(client):
    resp = client.post(
        "/auth/register",
        json={"company_name": "Granite Works", "email": "not-an-email", "password": "Sup3r-Secret-pw"},
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert "email" in body["error"]


def test_login_and_me(client, tenant):
    resp = client.post("/auth/login", json={"email": tenant.email, "password": "Sup3r-Secret-pw"})
    assert resp.status_code == 200, resp.text
    token = resp.json()["data"]["token"]

    me = client.get(
        "/auth/me",
        headers={"Authorization": f"Bearer {token}", "X-Company-Id": str(tenant.company_id)},
    )
    assert me.status_code == 200, me.text
    data = me.json()["data"]
    assert data["user"]["id"] == tenant.user_id
    assert data["company"]["name"] == "Acme Builders"


def test_login_rejects_bad_credentials(client, tenant):
    wrong = client.post("/auth/login", json={"email": tenant.email, "password": "nope-nope-nope"})
    assert wrong.status_code == 401
    assert wrong.json()["error"] == "Invalid email or password"

    unknown = client.post("/auth/login", json={"email": "ghost@acme-builders.com", "password": "whatever1"})
    assert unknown.status_code == 401
    assert unknown.json()["error"] == "Invalid email or password"


def test_login_rejects_inactive_user(client, tenant, make_user):
    worker = make_user(tenant, "mason@acme-builders.com", password="Brick-by-brick-1")

    resp = client.put(f"/users/{worker.user_id}", headers=tenant.headers, json={"is_active": False})
    assert resp.status_code == 200, resp.text

    login = client.post("/auth/login", json={"email": worker.email, "password": "Brick-by-brick-1"})
    assert login.status_code == 401
    assert login.json()["error"] == "Account is inactive. Please contact your administrator"


def test_missing_authorization_header_401(client, tenant):
    resp = client.get("/jobs", headers={"X-Company-Id": str(tenant.company_id)})
    assert resp.status_code == 401
    assert resp.json()["success"] is False


def test_wrong_scheme_401(client, tenant):
    resp = client.get(
        "/jobs",
        headers={"Authorization": f"Basic {tenant.token}", "X-Company-Id": str(tenant.company_id)},
    )
    assert resp.status_code == 401


def test_garbled_bearer_token_401(client, tenant):
    resp = client.get(
        "/jobs",
        headers={"Authorization": "Bearer not-a-real-token", "X-Company-Id": str(tenant.company_id)},
    )
    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid or expired token"


def test_missing_company_header_403(client, tenant):
    resp = client.get("/jobs", headers={"Authorization": f"Bearer {tenant.token}"})
    assert resp.status_code == 403
    assert "X-Company-Id" in resp.json()["error"]


def test_company_header_mismatch_403(client, tenant, other_tenant):
    resp = client.get(
        "/jobs",
        headers={"Authorization": f"Bearer {tenant.token}", "X-Company-Id": str(other_tenant.company_id)},
    )
    assert resp.status_code == 403
    assert resp.json()["error"] == "Company mismatch"


def test_dev_token_endpoint(client, tenant):
    resp = client.post("/auth/token", json={"user_id": str(tenant.user_id), "company_id": tenant.company_id})
    assert resp.status_code == 200
    token = resp.json()["access_token"]

    jobs = client.get(
        "/jobs",
        headers={"Authorization": f"Bearer {token}", "X-Company-Id": str(tenant.company_id)},
    )
    assert jobs.status_code == 200


@pytest.mark.parametrize("env", [None, "", "production", "staging"])
def test_dev_token_endpoint_is_closed_outside_dev(client, tenant, monkeypatch, env):
    if env is None:
        monkeypatch.delenv("ENV", raising=False)
    else:
        monkeypatch.setenv("ENV", env)

    resp = client.post("/auth/token", json={"user_id": str(tenant.user_id), "company_id": tenant.company_id})
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Not Found"}


def test_dev_token_without_role_is_least_privileged(client, tenant):
    resp = client.post("/auth/token", json={"user_id": str(tenant.user_id), "company_id": tenant.company_id})
    headers = {"Authorization": f"Bearer {resp.json()['access_token']}", "X-Company-Id": str(tenant.company_id)}

    listing = client.get("/users", headers=headers)
    assert listing.status_code == 200
    create = client.post("/jobs", headers=headers, json={"name": "Minted"})
    assert create.status_code == 403


def test_dev_token_requires_numeric_user_id(client):
    resp = client.post("/auth/token", json={"user_id": "dev-user", "company_id": 1})
    assert resp.status_code == 400


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"
