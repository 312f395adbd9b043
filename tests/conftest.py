import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.database import Database
from app.main import create_app
from app.services.storage import LocalMediaStore
from app.services.users import create_user, identity_for
from app.utils.constants import Plan, Role

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
MP4_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 32


@pytest.fixture
def settings(tmp_path):
    return Settings(
        ENV="test",
        LOG_LEVEL="DEBUG",
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        AUTO_CREATE_TABLES=True,
        UPLOADS_DIR=str(tmp_path / "uploads"),
        JWT_SECRET="test-secret",
        CORS_ORIGINS="http://testserver",
        SCHEDULER_ENABLED=False,
    )


@pytest.fixture
def database(settings):
    database = Database(settings.DATABASE_URL)
    database.connect()
    database.create_all()
    yield database
    database.disconnect()


@pytest.fixture
def db(database):
    session = database.new_session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(settings):
    return LocalMediaStore(settings.UPLOADS_DIR)


@pytest.fixture
def make_client(db):
    """Create a CLIENT user plus tenant and return the tenant row."""
    counter = {"n": 0}

    def _make(plan=Plan.BASIC, **kwargs):
        counter["n"] += 1
        user = create_user(
            db,
            email=kwargs.pop("email", f"client{counter['n']}@example.com"),
            password=kwargs.pop("password", "secret123"),
            name=kwargs.pop("name", f"Client {counter['n']}"),
            role=Role.CLIENT,
            plan=plan,
            **kwargs,
        )
        return user.client

    return _make


# ---------- HTTP ----------


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


class Accounts:
    """Seeds users through the app's own database and hands out auth headers."""

    def __init__(self, app):
        self.app = app
        self._n = 0

    def _headers(self, user) -> dict:
        token = self.app.state.token_service.issue(identity_for(user))
        return {"Authorization": f"Bearer {token}"}

    def admin(self, email="admin@example.com", password="adminpass"):
        with self.app.state.database.session() as db:
            user = create_user(db, email=email, password=password, name="Admin", role=Role.ADMIN)
            return user.id, self._headers(user)

    def tenant(self, plan=Plan.BASIC, password="secret123"):
        self._n += 1
        with self.app.state.database.session() as db:
            user = create_user(
                db,
                email=f"tenant{self._n}@example.com",
                password=password,
                name=f"Tenant {self._n}",
                role=Role.CLIENT,
                plan=plan,
            )
            return user.client.id, user.id, self._headers(user)


@pytest.fixture
def accounts(client, app):
    # depends on client so the lifespan has created the tables
    return Accounts(app)


@pytest.fixture
def admin_headers(accounts):
    return accounts.admin()[1]
