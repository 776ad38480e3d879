from __future__ import annotations

import os
import sys
from collections.abc import Callable, Iterator
from copy import deepcopy
from pathlib import Path
from typing import Any

os.environ["DATABASE_URL"] = "sqlite+pysqlite://"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
for _name in ("AUDIT_LOG_BUCKET", "SMTP_HOST", "SMTP_USER", "SMTP_PASSWORD", "ENABLE_TRACING"):
    os.environ.pop(_name, None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from registry.api.deps import get_db_session
from registry.main import app
from registry.models import Base, User, UserRole, UserStatus
from registry.services.credentials import hash_password

DATABASE_URL = "sqlite+pysqlite://"

ADMIN_PASSWORD = "changeme"
EMPLOYEE_PASSWORD = "employee-pass"
CLIENT_PASSWORD = "client-pass"

SAMPLE_PROFILE: dict[str, Any] = {
    "clientId": "C100",
    "shareholderName": {"name1": "Asha Rao"},
    "panNumber": "abcde1234f",
    "emailId": "asha@example.com",
    "shareHoldings": [
        {"companyName": "Acme Ltd", "isinNumber": "in000000001", "quantity": 100, "faceValue": 10},
    ],
}

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db_session() -> Iterator[Session]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    session.add_all(
        [
            User(
                username="admin",
                name="Admin",
                email="admin@registry.local",
                hashed_password=hash_password(ADMIN_PASSWORD, rounds=4),
                role=UserRole.ADMIN,
            ),
            User(
                username="employee",
                name="Employee",
                email="employee@registry.local",
                hashed_password=hash_password(EMPLOYEE_PASSWORD, rounds=4),
                role=UserRole.EMPLOYEE,
            ),
            User(
                username="client1",
                name="Client",
                email="client@registry.local",
                hashed_password=hash_password(CLIENT_PASSWORD, rounds=4),
                role=UserRole.CLIENT,
            ),
            User(
                username="former",
                name="Former Employee",
                email="former@registry.local",
                hashed_password=hash_password(EMPLOYEE_PASSWORD, rounds=4),
                role=UserRole.EMPLOYEE,
                status=UserStatus.DISABLED,
            ),
        ]
    )
    session.commit()

    yield session
    session.close()


@pytest.fixture()
def client(db_session: Session) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        try:
            yield db_session
        finally:
            db_session.rollback()

    app.dependency_overrides[get_db_session] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db_session, None)


def _bearer(client: TestClient, username: str, password: str) -> dict[str, str]:
    response = client.post("/api/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture()
def auth_headers(client: TestClient) -> dict[str, str]:
    return _bearer(client, "admin", ADMIN_PASSWORD)


@pytest.fixture()
def employee_headers(client: TestClient) -> dict[str, str]:
    return _bearer(client, "employee", EMPLOYEE_PASSWORD)


@pytest.fixture()
def client_headers(client: TestClient) -> dict[str, str]:
    return _bearer(client, "client1", CLIENT_PASSWORD)


@pytest.fixture()
def profile_payload() -> Callable[..., dict[str, Any]]:
    def _build(**overrides: Any) -> dict[str, Any]:
        payload = deepcopy(SAMPLE_PROFILE)
        payload.update(overrides)
        return payload

    return _build
