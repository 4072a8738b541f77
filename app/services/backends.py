"""
Storage backends abstracting cloud mode (Firestore) vs local demo mode (SQLAlchemy).
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool

from app.core.config import Settings
from app.core.db import Base, build_engine, make_session_factory
from app.models import KeyValueEntry
from app.services.firebase_client import firebase_configured, get_firestore_client

logger = logging.getLogger(__name__)

SETTINGS_COLLECTION = "general"
SETTINGS_DOCUMENT = "settings"
INVITEES_COLLECTION = "invitees"

SETTINGS_KEY = "wedding_settings"
INVITEES_KEY = "wedding_invitees"

SettingsCallback = Callable[[Optional[Dict[str, Any]]], None]
InviteesCallback = Callable[[List[Dict[str, Any]]], None]
Unsubscribe = Callable[[], None]


class BackendWriteError(Exception):
    """A write against the active storage backend failed"""


class BackendKind(str, Enum):
    REMOTE = "remote"
    LOCAL = "local"


class StorageBackend(Protocol):
    kind: BackendKind
    pushes_snapshots: bool

    def subscribe_settings(self, callback: SettingsCallback) -> Unsubscribe: ...

    def subscribe_invitees(self, callback: InviteesCallback) -> Unsubscribe: ...

    def seed_settings(self, document: Dict[str, Any]) -> None: ...

    async def upsert_settings(self, partial: Dict[str, Any]) -> None: ...

    async def upsert_invitee(self, record: Dict[str, Any]) -> None: ...

    async def batch_upsert_invitees(self, records: List[Dict[str, Any]]) -> None: ...

    async def patch_invitee(self, invitee_id: str, partial: Dict[str, Any]) -> None: ...

    async def remove_invitee(self, invitee_id: str) -> None: ...


def _noop() -> None:
    return None


# -------- Remote (Firestore) --------

class RemoteBackend:
    """Firestore documents: general/settings and invitees/{id}.

    Listeners run on the Firestore watch thread and always receive the
    full current snapshot.
    """

    kind = BackendKind.REMOTE
    pushes_snapshots = True

    def __init__(self, client):
        self._fs = client

    def _settings_ref(self):
        return self._fs.collection(SETTINGS_COLLECTION).document(SETTINGS_DOCUMENT)

    def _invitees_ref(self):
        return self._fs.collection(INVITEES_COLLECTION)

    @staticmethod
    async def _run(fn, *args, **kwargs):
        try:
            return await run_in_threadpool(fn, *args, **kwargs)
        except (GoogleAPIError, GoogleAuthError) as exc:
            raise BackendWriteError(str(exc)) from exc

    def subscribe_settings(self, callback: SettingsCallback) -> Unsubscribe:
        def on_snapshot(docs, changes, read_time):
            snapshot = docs[0] if docs else None
            if snapshot is not None and snapshot.exists:
                callback(snapshot.to_dict())
            else:
                callback(None)

        watch = self._settings_ref().on_snapshot(on_snapshot)
        return watch.unsubscribe

    def subscribe_invitees(self, callback: InviteesCallback) -> Unsubscribe:
        def on_snapshot(docs, changes, read_time):
            callback([d.to_dict() for d in docs])

        watch = self._invitees_ref().order_by("name").on_snapshot(on_snapshot)
        return watch.unsubscribe

    def seed_settings(self, document: Dict[str, Any]) -> None:
        # runs on the Firestore watch thread, outside the event loop
        try:
            self._settings_ref().set(document)
        except (GoogleAPIError, GoogleAuthError) as exc:
            raise BackendWriteError(str(exc)) from exc

    async def upsert_settings(self, partial: Dict[str, Any]) -> None:
        await self._run(self._settings_ref().set, partial, merge=True)

    async def upsert_invitee(self, record: Dict[str, Any]) -> None:
        await self._run(self._invitees_ref().document(record["id"]).set, record)

    async def batch_upsert_invitees(self, records: List[Dict[str, Any]]) -> None:
        def commit():
            batch = self._fs.batch()
            for record in records:
                batch.set(self._invitees_ref().document(record["id"]), record)
            batch.commit()

        await self._run(commit)

    async def patch_invitee(self, invitee_id: str, partial: Dict[str, Any]) -> None:
        if not partial:
            return
        await self._run(self._invitees_ref().document(invitee_id).update, partial)

    async def remove_invitee(self, invitee_id: str) -> None:
        await self._run(self._invitees_ref().document(invitee_id).delete)


# -------- Local (SQLAlchemy key-value) --------

class LocalBackend:
    """Two key-value rows, each holding one whole JSON document.

    Every write rewrites the full entry. Nothing is pushed: subscribers get
    the persisted value once, synchronously.
    """

    kind = BackendKind.LOCAL
    pushes_snapshots = False

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self):
        db: Session = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise BackendWriteError(str(exc)) from exc
        finally:
            db.close()

    @staticmethod
    def _load(db: Session, key: str) -> Any:
        entry = db.get(KeyValueEntry, key)
        return json.loads(entry.value) if entry else None

    @staticmethod
    def _save(db: Session, key: str, value: Any) -> None:
        entry = db.get(KeyValueEntry, key)
        payload = json.dumps(value)
        if entry is None:
            db.add(KeyValueEntry(key=key, value=payload))
        else:
            entry.value = payload

    def read(self, key: str) -> Any:
        with self._session() as db:
            return self._load(db, key)

    def subscribe_settings(self, callback: SettingsCallback) -> Unsubscribe:
        callback(self.read(SETTINGS_KEY))
        return _noop

    def subscribe_invitees(self, callback: InviteesCallback) -> Unsubscribe:
        callback(self.read(INVITEES_KEY) or [])
        return _noop

    def seed_settings(self, document: Dict[str, Any]) -> None:
        with self._session() as db:
            self._save(db, SETTINGS_KEY, document)

    async def upsert_settings(self, partial: Dict[str, Any]) -> None:
        with self._session() as db:
            current = self._load(db, SETTINGS_KEY) or {}
            current.update(partial)
            self._save(db, SETTINGS_KEY, current)

    async def upsert_invitee(self, record: Dict[str, Any]) -> None:
        await self.batch_upsert_invitees([record])

    async def batch_upsert_invitees(self, records: List[Dict[str, Any]]) -> None:
        incoming = {r["id"] for r in records}
        with self._session() as db:
            current = self._load(db, INVITEES_KEY) or []
            # newest first
            remaining = [r for r in current if r["id"] not in incoming]
            self._save(db, INVITEES_KEY, list(records) + remaining)

    async def patch_invitee(self, invitee_id: str, partial: Dict[str, Any]) -> None:
        if not partial:
            return
        with self._session() as db:
            current = self._load(db, INVITEES_KEY) or []
            updated = [
                {**r, **partial} if r["id"] == invitee_id else r
                for r in current
            ]
            self._save(db, INVITEES_KEY, updated)

    async def remove_invitee(self, invitee_id: str) -> None:
        with self._session() as db:
            current = self._load(db, INVITEES_KEY) or []
            self._save(db, INVITEES_KEY, [r for r in current if r["id"] != invitee_id])


def create_local_backend(database_url: str) -> LocalBackend:
    engine = build_engine(database_url)
    Base.metadata.create_all(bind=engine)
    logger.info("Local storage tables ready at %s", database_url)
    return LocalBackend(make_session_factory(engine))


def create_backend(config: Settings) -> StorageBackend:
    """Pick the backend once, from configuration, for the whole process."""
    if firebase_configured(config):
        logger.info("Initializing in cloud mode (Firebase)")
        return RemoteBackend(get_firestore_client(config))

    if config.USE_FIREBASE:
        logger.warning("USE_FIREBASE is set but no credentials were found")
    logger.warning("Initializing in local demo mode; other devices will not see changes")
    return create_local_backend(config.DATABASE_URL)
