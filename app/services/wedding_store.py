"""
Wedding state store: in-memory mirror of settings and guests over the active backend
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError

from app.schemas.invitee import Invitee, InviteeCreate, RsvpStatus
from app.schemas.settings import DEFAULT_SETTINGS, WeddingSettings
from app.services.backends import BackendWriteError, StorageBackend
from app.services.identifiers import new_id, slugify, unique_slug

logger = logging.getLogger(__name__)

# Top-level paths the HTTP surface already uses
RESERVED_SLUGS = frozenset({"admin", "health", "settings", "template", "invitees", "ws"})

Listener = Callable[[str], None]


class LoadState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


@dataclass
class MutationResult:
    """Outcome of a store mutation; failures carry a user-facing warning."""
    ok: bool = True
    found: bool = True
    warning: Optional[str] = None
    invitees: List[Invitee] = field(default_factory=list)

    @property
    def invitee(self) -> Optional[Invitee]:
        return self.invitees[0] if self.invitees else None


class WeddingStore:
    """Single source of truth the application reads from.

    Cloud mode writes through to Firestore and waits for the snapshot push
    to update the mirror. Local mode updates the mirror itself and the
    backend persists the change right away.
    """

    def __init__(
        self,
        backend: StorageBackend,
        admin_passcode: str = "wedding",
        reserved_slugs: Iterable[str] = RESERVED_SLUGS,
    ):
        self.backend = backend
        self._admin_passcode = admin_passcode
        self._reserved_slugs = frozenset(reserved_slugs)
        self._lock = threading.RLock()
        self._ready = threading.Event()
        self._state = LoadState.UNINITIALIZED
        self._settings: WeddingSettings = DEFAULT_SETTINGS
        self._invitees: List[Invitee] = []
        self._unsubscribers: List[Callable[[], None]] = []
        self._listeners: List[Listener] = []

    # -------- lifecycle --------

    def start(self) -> None:
        if self._state != LoadState.UNINITIALIZED:
            return
        self._state = LoadState.LOADING
        logger.info("Wedding store loading from %s backend", self.backend.kind.value)
        self._unsubscribers.append(self.backend.subscribe_settings(self._on_settings_snapshot))
        self._unsubscribers.append(self.backend.subscribe_invitees(self._on_invitees_snapshot))

    def close(self) -> None:
        while self._unsubscribers:
            unsubscribe = self._unsubscribers.pop()
            unsubscribe()
        self._listeners.clear()
        logger.info("Wedding store closed")

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == LoadState.READY

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._ready.wait(timeout)

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns the matching unregister callable."""
        self._listeners.append(listener)

        def unregister():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unregister

    def _notify(self, topic: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(topic)
            except Exception:
                logger.exception("Store listener failed for %s update", topic)

    # -------- snapshot handling --------

    def _on_settings_snapshot(self, document: Optional[Dict[str, Any]]) -> None:
        if document is None:
            with self._lock:
                self._settings = DEFAULT_SETTINGS
            self._seed_settings()
        else:
            try:
                parsed = WeddingSettings.model_validate(document)
            except ValidationError as exc:
                logger.error("Ignoring malformed settings snapshot: %s", exc)
                return
            with self._lock:
                self._settings = parsed
        self._notify("settings")

    def _seed_settings(self) -> None:
        try:
            self.backend.seed_settings(DEFAULT_SETTINGS.to_document())
            logger.info("Seeded default wedding settings")
        except BackendWriteError as exc:
            logger.error("Failed to seed default settings: %s", exc)

    def _on_invitees_snapshot(self, documents: List[Dict[str, Any]]) -> None:
        parsed: List[Invitee] = []
        for document in documents:
            try:
                parsed.append(Invitee.model_validate(document))
            except ValidationError as exc:
                logger.warning("Skipping malformed invitee %s: %s", document.get("id"), exc)

        with self._lock:
            self._invitees = parsed
            first_snapshot = self._state != LoadState.READY
            self._state = LoadState.READY
        self._ready.set()
        if first_snapshot:
            logger.info("Wedding store ready with %d invitees", len(parsed))
        self._notify("invitees")

    # -------- reads --------

    @property
    def settings(self) -> WeddingSettings:
        with self._lock:
            return self._settings

    @property
    def invitees(self) -> List[Invitee]:
        with self._lock:
            return list(self._invitees)

    def login(self, passcode: str) -> bool:
        return passcode == self._admin_passcode

    def get_invitee(self, identifier: str) -> Optional[Invitee]:
        with self._lock:
            return next(
                (inv for inv in self._invitees if inv.id == identifier or inv.slug == identifier),
                None,
            )

    def search(self, query: Optional[str]) -> List[Invitee]:
        invitees = self.invitees
        if not query:
            return invitees
        needle = query.lower()
        return [inv for inv in invitees if needle in inv.name.lower()]

    def rsvp_summary(self) -> Dict[str, int]:
        summary = {status.value: 0 for status in RsvpStatus}
        headcount = 0
        invitees = self.invitees
        for inv in invitees:
            status = inv.effective_status
            summary[status.value] += 1
            if status == RsvpStatus.ATTENDING:
                headcount += inv.guest_count or 0
        summary["total"] = len(invitees)
        summary["headcount"] = headcount
        return summary

    # -------- mutations --------

    def _build_invitees(self, entries: Iterable[InviteeCreate]) -> List[Invitee]:
        with self._lock:
            taken_slugs = {inv.slug for inv in self._invitees} | self._reserved_slugs
            taken_ids = {inv.id for inv in self._invitees}

        created = []
        for entry in entries:
            slug = unique_slug(slugify(entry.name), taken_slugs)
            taken_slugs.add(slug)

            invitee_id = new_id()
            while invitee_id in taken_ids:
                invitee_id = new_id()
            taken_ids.add(invitee_id)

            # message stays unset so the page falls back to the default text
            created.append(Invitee(
                id=invitee_id,
                slug=slug,
                name=entry.name,
                title=entry.title,
                viewed=False,
                rsvp_status=RsvpStatus.PENDING,
                guest_count=0,
                dietary_restrictions="",
            ))
        return created

    async def add_invitee(self, name: str, title: Optional[str] = None) -> MutationResult:
        created = self._build_invitees([InviteeCreate(name=name, title=title)])
        return await self._commit_new(created, batch=False)

    async def add_batch_invitees(self, entries: Iterable[InviteeCreate]) -> MutationResult:
        created = self._build_invitees(entries)
        if not created:
            return MutationResult()
        return await self._commit_new(created, batch=True)

    async def _commit_new(self, created: List[Invitee], batch: bool) -> MutationResult:
        if not self.backend.pushes_snapshots:
            with self._lock:
                self._invitees = created + self._invitees
            self._notify("invitees")

        documents = [inv.to_document() for inv in created]
        try:
            if batch:
                await self.backend.batch_upsert_invitees(documents)
            else:
                await self.backend.upsert_invitee(documents[0])
        except BackendWriteError as exc:
            if batch:
                logger.error("Failed to batch add %d guests: %s", len(created), exc)
                return MutationResult(ok=False, warning="Failed to save batch guests to database.")
            logger.error("Failed to add invitee %s: %s", created[0].slug, exc)
            return MutationResult(ok=False, warning="Failed to add guest to database.")

        logger.info("Added %d invitee(s)", len(created))
        return MutationResult(invitees=created)

    async def update_invitee(self, invitee_id: str, partial: Dict[str, Any]) -> MutationResult:
        """Apply only the given document fields; an empty partial changes nothing."""
        with self._lock:
            current = next((inv for inv in self._invitees if inv.id == invitee_id), None)
        if current is None:
            return MutationResult(ok=False, found=False, warning="Guest not found.")
        if not partial:
            return MutationResult(invitees=[current])

        updated = current.merged(partial)
        if not self.backend.pushes_snapshots:
            with self._lock:
                self._invitees = [updated if inv.id == invitee_id else inv for inv in self._invitees]
            self._notify("invitees")

        try:
            await self.backend.patch_invitee(invitee_id, partial)
        except BackendWriteError as exc:
            logger.error("Failed to update invitee %s: %s", invitee_id, exc)
            return MutationResult(ok=False, warning="Failed to update guest in database.", invitees=[updated])
        return MutationResult(invitees=[updated])

    async def delete_invitee(self, invitee_id: str) -> MutationResult:
        with self._lock:
            current = next((inv for inv in self._invitees if inv.id == invitee_id), None)
        if current is None:
            return MutationResult(ok=False, found=False, warning="Guest not found.")

        if not self.backend.pushes_snapshots:
            with self._lock:
                self._invitees = [inv for inv in self._invitees if inv.id != invitee_id]
            self._notify("invitees")

        try:
            await self.backend.remove_invitee(invitee_id)
        except BackendWriteError as exc:
            logger.error("Failed to delete invitee %s: %s", invitee_id, exc)
            return MutationResult(ok=False, warning="Failed to delete guest from database.")
        logger.info("Deleted invitee %s", current.slug)
        return MutationResult(invitees=[current])

    async def update_settings(self, partial: Dict[str, Any]) -> MutationResult:
        """Optimistic: the mirror changes first and is not rolled back on failure."""
        with self._lock:
            self._settings = self._settings.merged(partial)
            document = self._settings.to_document()
        self._notify("settings")

        try:
            await self.backend.upsert_settings(document)
        except BackendWriteError as exc:
            logger.error("Failed to save settings: %s", exc)
            return MutationResult(
                ok=False,
                warning="Failed to save settings to database. If you are uploading an image, it might be too large even after compression.",
            )
        return MutationResult()
