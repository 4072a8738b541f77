"""
Tests for the Firestore and local storage backends
"""

from unittest.mock import MagicMock

import pytest
from google.api_core.exceptions import ServiceUnavailable
from sqlalchemy.exc import OperationalError

from app.core.config import Settings
from app.services.backends import (
    INVITEES_KEY,
    SETTINGS_KEY,
    BackendKind,
    BackendWriteError,
    LocalBackend,
    RemoteBackend,
    create_backend,
)
from app.services.firebase_client import get_firestore_client
from tests.conftest import run

def record(guest_id, name):
    return {"id": guest_id, "slug": name.lower(), "name": name, "viewed": False}

# -------- local backend --------

def test_local_subscribe_delivers_once(local_backend):
    settings_seen, invitees_seen = [], []

    unsubscribe_settings = local_backend.subscribe_settings(settings_seen.append)
    unsubscribe_invitees = local_backend.subscribe_invitees(invitees_seen.append)

    assert settings_seen == [None]
    assert invitees_seen == [[]]
    unsubscribe_settings()
    unsubscribe_invitees()

def test_local_settings_merge(local_backend):
    run(local_backend.upsert_settings({"coupleName": "Anna & James"}))
    run(local_backend.upsert_settings({"venueName": "Grand Ballroom"}))

    assert local_backend.read(SETTINGS_KEY) == {
        "coupleName": "Anna & James",
        "venueName": "Grand Ballroom",
    }

def test_local_batch_prepends_in_order(local_backend):
    run(local_backend.upsert_invitee(record("1", "Anna")))
    run(local_backend.batch_upsert_invitees([record("2", "Bob"), record("3", "Cara")]))

    assert [r["id"] for r in local_backend.read(INVITEES_KEY)] == ["2", "3", "1"]

def test_local_upsert_replaces_same_id(local_backend):
    run(local_backend.upsert_invitee(record("1", "Anna")))
    run(local_backend.upsert_invitee({**record("1", "Anna"), "title": "Mrs"}))

    stored = local_backend.read(INVITEES_KEY)
    assert len(stored) == 1
    assert stored[0]["title"] == "Mrs"

def test_local_patch_and_remove(local_backend):
    run(local_backend.batch_upsert_invitees([record("1", "Anna"), record("2", "Bob")]))

    run(local_backend.patch_invitee("2", {"rsvpStatus": "declined"}))
    run(local_backend.patch_invitee("2", {}))
    stored = {r["id"]: r for r in local_backend.read(INVITEES_KEY)}
    assert stored["2"]["rsvpStatus"] == "declined"
    assert "rsvpStatus" not in stored["1"]

    run(local_backend.remove_invitee("1"))
    assert [r["id"] for r in local_backend.read(INVITEES_KEY)] == ["2"]

def test_local_write_failure_is_reported():
    session = MagicMock()
    session.get.side_effect = OperationalError("SELECT", {}, Exception("disk I/O error"))
    backend = LocalBackend(lambda: session)

    with pytest.raises(BackendWriteError):
        run(backend.upsert_settings({"coupleName": "A & B"}))
    session.rollback.assert_called_once()
    session.close.assert_called_once()

# -------- remote backend --------

@pytest.fixture
def firestore():
    return MagicMock()

def test_remote_batch_commits_once(firestore):
    backend = RemoteBackend(firestore)
    batch = firestore.batch.return_value

    run(backend.batch_upsert_invitees([record("1", "Anna"), record("2", "Bob")]))

    assert batch.set.call_count == 2
    batch.commit.assert_called_once()
    firestore.collection.assert_any_call("invitees")

def test_remote_settings_upsert_merges(firestore):
    backend = RemoteBackend(firestore)
    run(backend.upsert_settings({"coupleName": "Anna & James"}))

    firestore.collection.assert_any_call("general")
    settings_doc = firestore.collection.return_value.document.return_value
    settings_doc.set.assert_called_once_with({"coupleName": "Anna & James"}, merge=True)

def test_remote_patch_skips_empty_partial(firestore):
    backend = RemoteBackend(firestore)
    doc = firestore.collection.return_value.document.return_value

    run(backend.patch_invitee("1", {}))
    doc.update.assert_not_called()

    run(backend.patch_invitee("1", {"title": "Mr"}))
    doc.update.assert_called_once_with({"title": "Mr"})

def test_remote_errors_become_backend_write_errors(firestore):
    backend = RemoteBackend(firestore)
    firestore.collection.return_value.document.return_value.delete.side_effect = ServiceUnavailable("offline")

    with pytest.raises(BackendWriteError):
        run(backend.remove_invitee("1"))

def test_remote_failed_batch_does_not_commit(firestore):
    backend = RemoteBackend(firestore)
    batch = firestore.batch.return_value
    batch.commit.side_effect = ServiceUnavailable("offline")

    with pytest.raises(BackendWriteError):
        run(backend.batch_upsert_invitees([record("1", "Anna")]))

def test_remote_settings_listener_reports_missing_document(firestore):
    backend = RemoteBackend(firestore)
    settings_ref = firestore.collection.return_value.document.return_value
    seen = []

    unsubscribe = backend.subscribe_settings(seen.append)
    on_snapshot = settings_ref.on_snapshot.call_args[0][0]

    on_snapshot([], [], None)
    missing = MagicMock(exists=False)
    on_snapshot([missing], [], None)
    present = MagicMock(exists=True)
    present.to_dict.return_value = {"coupleName": "Anna & James"}
    on_snapshot([present], [], None)

    assert seen == [None, None, {"coupleName": "Anna & James"}]
    unsubscribe()
    settings_ref.on_snapshot.return_value.unsubscribe.assert_called_once()

def test_remote_invitees_listener_orders_by_name(firestore):
    backend = RemoteBackend(firestore)
    ordered = firestore.collection.return_value.order_by.return_value
    seen = []

    backend.subscribe_invitees(seen.append)
    firestore.collection.return_value.order_by.assert_called_once_with("name")

    doc = MagicMock()
    doc.to_dict.return_value = record("1", "Anna")
    on_snapshot = ordered.on_snapshot.call_args[0][0]
    on_snapshot([doc], [], None)

    assert seen == [[record("1", "Anna")]]

def test_remote_seed_settings_writes_document(firestore):
    backend = RemoteBackend(firestore)
    backend.seed_settings({"coupleName": "Anna & James"})
    firestore.collection.return_value.document.return_value.set.assert_called_once_with({"coupleName": "Anna & James"})

# -------- selection --------

def test_create_backend_defaults_to_local(database_url):
    config = Settings(DATABASE_URL=database_url, USE_FIREBASE=False)
    backend = create_backend(config)
    assert backend.kind == BackendKind.LOCAL
    assert not backend.pushes_snapshots

def test_create_backend_without_credentials_stays_local(database_url):
    config = Settings(
        DATABASE_URL=database_url,
        USE_FIREBASE=True,
        FIREBASE_CREDENTIALS_JSON=None,
        FIREBASE_CREDENTIALS_B64=None,
        FIREBASE_CREDENTIALS_FILE=None,
    )
    assert create_backend(config).kind == BackendKind.LOCAL

def test_create_backend_remote_when_configured(database_url, monkeypatch):
    client = MagicMock()
    seen_configs = []

    def fake_client(config):
        seen_configs.append(config)
        return client

    monkeypatch.setattr("app.services.backends.get_firestore_client", fake_client)
    config = Settings(DATABASE_URL=database_url, USE_FIREBASE=True, FIREBASE_CREDENTIALS_JSON="{}")

    backend = create_backend(config)

    assert backend.kind == BackendKind.REMOTE
    assert seen_configs == [config]
    assert backend.pushes_snapshots

def test_firestore_client_uses_given_config(monkeypatch):
    fake_admin = MagicMock()
    fake_admin._apps = {}
    fake_credentials = MagicMock()
    fake_firestore = MagicMock()
    monkeypatch.setattr("app.services.firebase_client.firebase_admin", fake_admin)
    monkeypatch.setattr("app.services.firebase_client.credentials", fake_credentials)
    monkeypatch.setattr("app.services.firebase_client.firestore", fake_firestore)
    monkeypatch.setattr("app.services.firebase_client.settings.USE_FIREBASE", False)
    config = Settings(USE_FIREBASE=True, FIREBASE_CREDENTIALS_JSON='{"project_id": "demo"}')

    client = get_firestore_client(config)

    assert client is fake_firestore.client.return_value
    fake_credentials.Certificate.assert_called_once_with({"project_id": "demo"})
    fake_admin.initialize_app.assert_called_once()
