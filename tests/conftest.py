import pytest
from fastapi.testclient import TestClient

from telehealth.config import Settings
from telehealth.database import Database
from telehealth.main import create_app
from telehealth.models import User
from telehealth.utils import hash_password

PASSWORD = "secret123"


@pytest.fixture
def settings():
    return Settings(SECRET_KEY="test-secret-key", DATABASE_URL="sqlite://", LOG_LEVEL="WARNING", DEBUG=True)


@pytest.fixture
def db(settings):
    database = Database(settings.DATABASE_URL)
    database.create_db_and_tables()
    yield database
    database.dispose()


@pytest.fixture
def client(settings, db):
    app = create_app(settings, database=db)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    """Insert a user directly; admins cannot self-register."""

    def _make(email, role="patient", **fields):
        with db.session() as session:
            user = User(name=fields.pop("name", email.split("@")[0].title()), email=email, password_hash=hash_password(PASSWORD), role=role, **fields)
            session.add(user)
            session.commit()
            session.refresh(user)
            return user.id

    return _make


@pytest.fixture
def login(client):
    def _login(email, password=PASSWORD):
        resp = client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.json()
        return {"Authorization": f"Bearer {resp.json()['data']['token']}"}

    return _login


@pytest.fixture
def actors(make_user, login):
    """A patient, a second patient, a doctor and an admin with auth headers."""
    ids = {
        "patient": make_user("patient@example.com"),
        "other": make_user("other@example.com"),
        "doctor": make_user("doctor@example.com", role="doctor", specialization="Cardiology", license_number="NMC-1", consultation_fee=1500.0),
        "admin": make_user("admin@example.com", role="admin"),
    }
    headers = {
        "patient": login("patient@example.com"),
        "other": login("other@example.com"),
        "doctor": login("doctor@example.com"),
        "admin": login("admin@example.com"),
    }
    return ids, headers
