import pytest
from fastapi.testclient import TestClient

from gis_backend.config.app_config import DEFAULT_CONFIG_PATH, load_app_config
from gis_backend.main import create_app

ADMIN_TOKEN = "test-admin-token"

# Smallest byte strings that look like the declared type; content is not inspected.
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 32


@pytest.fixture
def upload_root(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def make_config(tmp_path, upload_root):
    def _make(auth_mode="off", **sections):
        overrides = {
            "database": {"url": f"sqlite:///{tmp_path / 'test.db'}"},
            "uploads": {"root": str(upload_root)},
            "auth": {
                "mode": auth_mode,
                "username": "admin",
                "password": "gisjaya",
                "token": ADMIN_TOKEN,
            },
        }
        for name, values in sections.items():
            overrides.setdefault(name, {}).update(values)
        return load_app_config(DEFAULT_CONFIG_PATH).with_overrides(overrides)

    return _make


@pytest.fixture
def make_client(make_config):
    clients = []

    def _make(auth_mode="off", **sections):
        app = create_app(make_config(auth_mode=auth_mode, **sections))
        c = TestClient(app)
        clients.append(c)
        return c

    yield _make

    for c in clients:
        c.close()
        c.app.state.engine.dispose()


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def app(client):
    return client.app


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def asset_file(app, public_path):
    """Absolute file path of a /uploads/... value."""
    return app.state.assets.resolve(public_path)
