import os

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.setdefault("APP_ENV", "test")

from datetime import timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.db.session import SessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Base  # noqa: E402
from app.services import cache, rate_limit  # noqa: E402
from app.services.sessions import InMemorySessionStore, SessionManager  # noqa: E402

DEFAULT_PASSWORD = "s3cret-pass"


@pytest.fixture(autouse=True)
def clean_state():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    cache.clear_all()
    rate_limit.reset_all()
    yield
    cache.clear_all()


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def session_manager():
    return SessionManager(InMemorySessionStore(), max_age=timedelta(days=30))


@pytest.fixture
def api_client(session_manager):
    app.state.session_manager = session_manager
    with TestClient(app) as client:
        yield client


@pytest.fixture
def new_client(api_client):
    """Extra cookie jars against the same running app, one per logged-in account."""
    clients: list[TestClient] = []

    def _factory() -> TestClient:
        client = TestClient(app)
        clients.append(client)
        return client

    yield _factory
    for client in clients:
        client.close()


def register_practitioner(client: TestClient, username: str = "drlopez", **overrides) -> dict:
    payload = {
        "username": username,
        "password": DEFAULT_PASSWORD,
        "email": f"{username}@example.com",
        "full_name": f"Dr {username.title()}",
        "kind": "practitioner",
        "specialty": "Clinical psychology",
    }
    payload.update(overrides)
    res = client.post("/register", json=payload)
    assert res.status_code == 201, res.text
    return res.json()


def register_client(client: TestClient, invite_code: str, username: str = "maria", **overrides) -> dict:
    payload = {
        "username": username,
        "password": DEFAULT_PASSWORD,
        "email": f"{username}@example.com",
        "full_name": f"{username.title()} Lopez",
        "kind": "client",
        "invite_code": invite_code,
    }
    payload.update(overrides)
    res = client.post("/register", json=payload)
    assert res.status_code == 201, res.text
    return res.json()


def create_patient(client: TestClient, name: str = "Maria Lopez", email: str = "maria.lopez@example.com") -> dict:
    res = client.post("/patients", json={"name": name, "email": email})
    assert res.status_code == 201, res.text
    return res.json()


def create_appointment(
    client: TestClient,
    patient_id: int,
    date_time: str = "2026-11-02T10:00:00+00:00",
    duration_minutes: int = 50,
) -> dict:
    res = client.post(
        "/appointments",
        json={"patient_id": patient_id, "date_time": date_time, "duration_minutes": duration_minutes},
    )
    assert res.status_code == 201, res.text
    return res.json()


@pytest.fixture
def practitioner(api_client):
    """Practitioner registered (and logged in) on ``api_client``."""
    return register_practitioner(api_client)


@pytest.fixture
def linked_client(practitioner, new_client):
    """A client account linked to ``practitioner``, logged in on its own client."""
    client = new_client()
    account = register_client(client, practitioner["invite_code"])
    return client, account
