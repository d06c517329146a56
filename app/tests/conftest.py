import os
_default_test_secret = "test-jwt-secret-for-pytest-only-0000000000000000"
if len(os.environ.get("JWT_SECRET", "")) < 32:
    os.environ["JWT_SECRET"] = _default_test_secret
os.environ.setdefault("ENV", "test")

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url

TEST_DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./sitework_test.db")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from app import database  # noqa: E402
from app import models  # noqa: E402,F401
from app.main import app  # noqa: E402

DEFAULT_PASSWORD = "Sup3r-Secret-pw"


@dataclass
class Tenant:
    company_id: int
    user_id: int
    email: str
    token: str

    @property
    def headers(self) -> dict:
        return {"X-Company-Id": str(self.company_id), "Authorization": f"Bearer {self.token}"}


def _is_postgres(database_url: str) -> bool:
    return make_url(database_url).drivername.startswith("postgresql")


def _ensure_database_exists(database_url: str) -> None:
    url = make_url(database_url)

    if not url.drivername.startswith("postgresql"):
        return

    db_name = url.database
    admin_url = url.set(database="postgres")
    admin_engine = create_engine(admin_url, isolation_level="AUTOCOMMIT")

    try:
        with admin_engine.connect() as conn:
            exists = conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": db_name},
            ).scalar()
            if not exists:
                safe_db_name = db_name.replace('"', '""')
                conn.execute(text(f'CREATE DATABASE "{safe_db_name}"'))
    finally:
        admin_engine.dispose()


def _clear_tables() -> None:
    with database.engine.begin() as conn:
        for table in reversed(database.Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(scope="session", autouse=True)
def _prepare_test_database():
    database.configure_database()

    if _is_postgres(TEST_DATABASE_URL):
        _ensure_database_exists(TEST_DATABASE_URL)
        env = os.environ.copy()
        env["DATABASE_URL"] = TEST_DATABASE_URL
        subprocess.run(
            ["alembic", "upgrade", "head"],
            check=True,
            cwd=Path(__file__).resolve().parents[2],
            env=env,
        )
    else:
        database.Base.metadata.drop_all(database.engine)
        database.Base.metadata.create_all(database.engine)

    yield

    if not _is_postgres(TEST_DATABASE_URL):
        database.Base.metadata.drop_all(database.engine)
    database.engine.dispose()


@pytest.fixture(scope="function", autouse=True)
def _clear_tables_between_tests():
    _clear_tables()
    yield
    _clear_tables()


@pytest.fixture(scope="session")
def client() -> TestClient:
    return TestClient(app)


def register_tenant(client: TestClient, company_name: str, email: str) -> Tenant:
    resp = client.post(
        "/auth/register",
        json={
            "company_name": company_name,
            "email": email,
            "password": DEFAULT_PASSWORD,
            "first_name": "Owner",
            "last_name": company_name.split()[0],
        },
    )
    assert resp.status_code == 201, f"register failed: {resp.status_code} {resp.text}"
    data = resp.json()["data"]
    return Tenant(
        company_id=data["company"]["id"],
        user_id=data["user"]["id"],
        email=data["user"]["email"],
        token=data["token"],
    )


def login(client: TestClient, email: str, password: str) -> dict:
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, f"login failed: {resp.status_code} {resp.text}"
    return resp.json()["data"]


def add_user(
    client: TestClient,
    tenant: Tenant,
    email: str,
    role: str = "worker",
    password: Optional[str] = None,
) -> Tenant:
    """Create a user in ``tenant`` and sign them in."""
    body = {"email": email, "role": role, "first_name": "Field", "last_name": "Hand"}
    if password:
        body["password"] = password
    resp = client.post("/users", headers=tenant.headers, json=body)
    assert resp.status_code == 201, f"user create failed: {resp.status_code} {resp.text}"
    created = resp.json()["data"]

    session = login(client, email, password or created["temporary_password"])
    return Tenant(
        company_id=tenant.company_id,
        user_id=created["id"],
        email=created["email"],
        token=session["token"],
    )


@pytest.fixture
def tenant(client) -> Tenant:
    return register_tenant(client, "Acme Builders", "owner@acme-builders.com")


@pytest.fixture
def other_tenant(client) -> Tenant:
    return register_tenant(client, "Birch Construction", "owner@birch-construction.com")


@pytest.fixture
def make_user(client):
    def _make(tenant: Tenant, email: str, role: str = "worker", password: Optional[str] = None) -> Tenant:
        return add_user(client, tenant, email, role=role, password=password)

    return _make
