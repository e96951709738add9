import pytest
from fastapi.testclient import TestClient

from daytally.api_service.core.identity import Identity, MemoryIdentityProvider
from daytally.api_service.core.sessions import SessionRegistry
from daytally.api_service.core.store import MemoryStore
from daytally.api_service.main import create_app
from daytally.ledger.service import LedgerService


class CountingStore(MemoryStore):
    """MemoryStore that records every call made against it."""

    def __init__(self):
        super().__init__()
        self.calls = []

    def read(self, path, token=None):
        self.calls.append(("read", path))
        return super().read(path, token)

    def write(self, path, value, token=None):
        self.calls.append(("write", path))
        super().write(path, value, token)

    def delete(self, path, token=None):
        self.calls.append(("delete", path))
        super().delete(path, token)

    @property
    def writes(self):
        return [c for c in self.calls if c[0] == "write"]


@pytest.fixture
def store():
    return CountingStore()


@pytest.fixture
def ledger_service(store):
    return LedgerService(store)


@pytest.fixture
def session():
    registry = SessionRegistry()
    return registry.open(Identity(uid="user-1", email="ada@example.com", id_token="provider-token"))


@pytest.fixture
def identity_provider():
    return MemoryIdentityProvider()


@pytest.fixture
def app(store, identity_provider):
    return create_app(store=store, identity=identity_provider)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers(client):
    response = client.post(
        "/api/v1/auth/signup",
        json={"email": "ada@example.com", "password": "secret123", "confirm_password": "secret123"},
    )
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
