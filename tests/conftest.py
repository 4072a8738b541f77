"""
Shared test fixtures
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from app.services.backends import create_local_backend
from app.services.wedding_store import WeddingStore
from app.utils import security
from main import app
from tests.inmemory_backend import InMemoryRemoteBackend

TEST_PASSCODE = "letmein"


def run(coro):
    """Drive a store coroutine from a synchronous test"""
    return asyncio.run(coro)


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'test_invitations.db'}"


@pytest.fixture
def local_backend(database_url):
    return create_local_backend(database_url)


@pytest.fixture
def local_store(local_backend):
    """Local demo mode store, ready after start()"""
    store = WeddingStore(local_backend, admin_passcode=TEST_PASSCODE)
    store.start()
    yield store
    store.close()


@pytest.fixture
def remote_backend():
    return InMemoryRemoteBackend()


@pytest.fixture
def remote_store(remote_backend):
    """Cloud mode store that has received its first snapshots"""
    store = WeddingStore(remote_backend, admin_passcode=TEST_PASSCODE)
    store.start()
    remote_backend.push_settings()
    remote_backend.push_invitees()
    yield store
    store.close()


def make_client(store):
    # lifespan is not run; the store fixture stands in for startup
    app.state.store = store
    security.rate_limiter.clear()
    return TestClient(app)


@pytest.fixture
def client(local_store):
    yield make_client(local_store)
    del app.state.store


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {TEST_PASSCODE}"}
