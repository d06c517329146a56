import random

from app import database
from app.schemas.user import UserCreate
from app.services import users_service
from app.services.passwords import generate_temporary_password


def test_create_user_returns_temporary_password_once(client, tenant):
    resp = client.post(
        "/users",
        headers=tenant.headers,
        json={"email": "Welder@Acme-Builders.com", "role": "worker", "hourly_rate": "42.50"},
    )
    assert resp.status_code == 201, resp.text
    created = resp.json()["data"]
    assert created["email"] == "welder@acme-builders.com"
    temporary = created["temporary_password"]
    assert len(temporary) == 12

    fetched = client.get(f"/users/{created['id']}", headers=tenant.headers).json()["data"]
    assert "temporary_password" not in fetched
    assert "password_hash" not in fetched

    login = client.post("/auth/login", json={"email": "welder@acme-builders.com", "password": temporary})
    assert login.status_code == 200
    assert login.json()["data"]["user"]["role"] == "worker"


def test_create_user_with_password_has_no_temporary_password(client, tenant):
    resp = client.post(
        "/users",
        headers=tenant.headers,
        json={"email": "pm@acme-builders.com", "role": "project_manager", "password": "Blueprints-99"},
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["temporary_password"] is None


def test_temporary_password_uses_the_given_random_source(tenant):
    db = database.SessionLocal()
    try:
        user = users_service.create_user(
            db,
            tenant.company_id,
            UserCreate(email="seeded@acme-builders.com"),
            rng=random.Random(7),
        )
    finally:
        db.close()

    assert user["temporary_password"] == generate_temporary_password(random.Random(7))


def test_duplicate_email_conflicts(client, tenant, other_tenant):
    body = {"email": "crane@acme-builders.com", "role": "worker"}
    assert client.post("/users", headers=tenant.headers, json=body).status_code == 201

    again = client.post("/users", headers=other_tenant.headers, json=body)
    assert again.status_code == 409
    assert again.json()["error"] == "Email already exists"

    owner_email = client.post("/users", headers=tenant.headers, json={"email": tenant.email})
    assert owner_email.status_code == 409


def test_update_rechecks_email_uniqueness(client, tenant, make_user):
    first = make_user(tenant, "first@acme-builders.com")
    make_user(tenant, "second@acme-builders.com")

    clash = client.put(f"/users/{first.user_id}", headers=tenant.headers, json={"email": "second@acme-builders.com"})
    assert clash.status_code == 409

    same = client.put(f"/users/{first.user_id}", headers=tenant.headers, json={"email": "first@acme-builders.com"})
    assert same.status_code == 200

    phone = client.put(f"/users/{first.user_id}", headers=tenant.headers, json={"phone": "555-0100"})
    assert phone.json()["data"]["phone"] == "555-0100"


def test_list_filters(client, tenant, make_user):
    make_user(tenant, "ana.rivera@acme-builders.com")
    make_user(tenant, "bo.chen@acme-builders.com", role="foreman")

    workers = client.get("/users", headers=tenant.headers, params={"role": "worker"}).json()["data"]
    assert [u["email"] for u in workers["items"]] == ["ana.rivera@acme-builders.com"]

    search = client.get("/users", headers=tenant.headers, params={"search": "CHEN"}).json()["data"]
    assert [u["email"] for u in search["items"]] == ["bo.chen@acme-builders.com"]

    everyone = client.get("/users", headers=tenant.headers).json()["data"]
    assert everyone["total"] == 3


def test_delete_rules(client, tenant, other_tenant, make_user):
    worker = make_user(tenant, "temp@acme-builders.com")

    self_delete = client.delete(f"/users/{tenant.user_id}", headers=tenant.headers)
    assert self_delete.status_code == 400

    foreign = client.delete(f"/users/{worker.user_id}", headers=other_tenant.headers)
    assert foreign.status_code == 404

    not_admin = client.delete(f"/users/{tenant.user_id}", headers=worker.headers)
    assert not_admin.status_code == 403

    assert client.delete(f"/users/{worker.user_id}", headers=tenant.headers).status_code == 200
    assert client.get(f"/users/{worker.user_id}", headers=tenant.headers).status_code == 404


def test_super_admin_cannot_be_deleted(client, tenant, make_user):
    root = make_user(tenant, "root@acme-builders.com", role="super_admin")

    resp = client.delete(f"/users/{root.user_id}", headers=tenant.headers)
    assert resp.status_code == 403
    assert resp.json()["error"] == "Cannot delete super admin users"
