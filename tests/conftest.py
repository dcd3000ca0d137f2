import pytest
from fastapi.testclient import TestClient

from drive_api.core.config import Settings
from drive_api.application import create_app
from drive_api.models.user import User
from drive_api.services.storage_client import StorageClient
from object_store.main import create_app as create_object_store


class RecordingMailer:
    def __init__(self):
        self.sent = []

    def send(self, to, subject, html):
        self.sent.append({"to": to, "subject": subject, "html": html})


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite:///{tmp_path / 'minidrive.db'}",
        SECRET_KEY="test-secret",
        FRONTEND_URL="http://frontend.test",
        MAX_UPLOAD_SIZE_BYTES=1000,
        SMTP_HOST=None,
    )


@pytest.fixture
def store_client(tmp_path):
    app = create_object_store(tmp_path / "objects")
    return TestClient(app, base_url="http://objects.test")


@pytest.fixture
def storage(store_client):
    return StorageClient(store_client, folder="minidrive")


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def client(settings, storage, mailer):
    app = create_app(settings, storage=storage, mailer=mailer)
    with TestClient(app) as c:
        yield c


def signup(client, username, email=None, password="secret123"):
    email = email or f"{username}@example.com"
    resp = client.post(
        "/auth/signup",
        json={
            "username": username,
            "email": email,
            "password": password,
            "confirmPassword": password,
        },
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return {
        "id": body["user"]["id"],
        "email": body["user"]["email"],
        "headers": {"Authorization": f"Bearer {body['token']}"},
    }


def make_admin(client, user_id):
    db = client.app.state.session_factory()
    try:
        user = db.query(User).filter(User.id == user_id).first()
        user.role = "admin"
        db.commit()
    finally:
        db.close()


def intercept_next_commit(client, monkeypatch, hook):
    """Call ``hook(session_factory)`` right before the next request commit."""
    factory = client.app.state.session_factory
    state = {"done": False}

    def session_factory():
        db = factory()
        commit = db.commit

        def intercepted_commit():
            if not state["done"]:
                state["done"] = True
                hook(factory)
            commit()

        db.commit = intercepted_commit
        return db

    monkeypatch.setattr(client.app.state, "session_factory", session_factory)


def upload(client, owner, name="notes.txt", content=b"hello world", content_type="text/plain"):
    resp = client.post(
        "/files/upload",
        files={"file": (name, content, content_type)},
        headers=owner["headers"],
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["file"]


@pytest.fixture
def alice(client):
    return signup(client, "alice")


@pytest.fixture
def bob(client):
    return signup(client, "bob")


@pytest.fixture
def carol(client):
    return signup(client, "carol")
