"""Signed-in user's wallet, kept in memory and mirrored to the document store."""

from __future__ import annotations

import dataclasses
import logging
import time
from threading import RLock
from typing import Any, Callable, Sequence

from fintrack.auth.session import Session
from fintrack.providers.document_store import DocumentStore, DocumentStoreError
from fintrack.wallet.models import EDITABLE_FIELDS, EntryDraft, ValidationIssue, WalletEntry
from fintrack.wallet.validation import WalletValidationError, validate_entry

LOGGER = logging.getLogger(__name__)

WALLET_COLLECTION = "wallets"


class WalletEntryNotFound(LookupError):
    def __init__(self, entry_id: str) -> None:
        self.entry_id = entry_id
        super().__init__(f"Wallet entry not found: {entry_id}")


class WalletStore:
    """Add/edit/remove wallet entries for the session's user.

    Every mutation writes the whole wallet back with a merge ``set``. When the
    write fails the in-memory list is restored and the error re-raised, so a
    caller never sees a change that was not persisted.
    """

    def __init__(
        self,
        documents: DocumentStore,
        session: Session,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.documents = documents
        self.session = session
        self._clock = clock
        self._entries: list[WalletEntry] = []
        self._issued_ids: set[str] = set()
        self._lock = RLock()
        self.load_error: str | None = None
        session.subscribe(self._on_user_changed)

    @property
    def entries(self) -> list[WalletEntry]:
        with self._lock:
            return list(self._entries)

    def _on_user_changed(self, user_id: str | None) -> None:
        with self._lock:
            self._entries = []
            self._issued_ids = set()
            self.load_error = None
            if user_id is not None:
                self._entries = self._load(user_id)
                self._issued_ids = {entry.id for entry in self._entries}

    def _load(self, user_id: str) -> list[WalletEntry]:
        try:
            doc = self.documents.get(WALLET_COLLECTION, user_id)
        except DocumentStoreError as error:
            LOGGER.error("failed to load wallet: user_id=%s code=%s", user_id, error.code)
            self.load_error = error.message
            return []
        rows = (doc or {}).get("wallet") or []
        entries: list[WalletEntry] = []
        for idx, row in enumerate(rows if isinstance(rows, list) else []):
            try:
                entries.append(WalletEntry.from_document(row))
            except (KeyError, TypeError, ValueError):
                LOGGER.warning("skipping malformed wallet row: user_id=%s row=%s", user_id, idx)
        return entries

    def reload(self) -> list[WalletEntry]:
        user_id = self.session.require_user()
        self._on_user_changed(user_id)
        return self.entries

    def _next_id(self) -> str:
        candidate = int(self._clock() * 1000)
        while str(candidate) in self._issued_ids:
            candidate += 1
        entry_id = str(candidate)
        self._issued_ids.add(entry_id)
        return entry_id

    def _require_loaded(self, user_id: str) -> None:
        """Retry a failed load; a wallet that could not be read is never written over."""
        if self.load_error is None:
            return
        self._on_user_changed(user_id)
        if self.load_error is not None:
            raise DocumentStoreError(
                "NOT_LOADED",
                f"Wallet could not be loaded: {self.load_error}",
                WALLET_COLLECTION,
                user_id,
            )

    def _commit(self, user_id: str, updated: list[WalletEntry]) -> None:
        previous = self._entries
        self._entries = updated
        try:
            self.documents.set(
                WALLET_COLLECTION,
                user_id,
                {"wallet": [entry.to_document() for entry in updated]},
                merge=True,
            )
        except DocumentStoreError:
            self._entries = previous
            LOGGER.error("failed to save wallet, change rolled back: user_id=%s", user_id)
            raise

    def add_entry(self, draft: EntryDraft) -> WalletEntry:
        return self.add_entries([draft])[0]

    def add_entries(self, drafts: Sequence[EntryDraft]) -> list[WalletEntry]:
        """Validate every draft first; nothing is added unless all are valid."""
        user_id = self.session.require_user()
        with self._lock:
            self._require_loaded(user_id)
            issues: list[ValidationIssue] = []
            for row, draft in enumerate(drafts, start=1):
                issues.extend(validate_entry(draft.with_id("pending"), row=row if len(drafts) > 1 else None))
            if issues:
                raise WalletValidationError(issues)
            created = [draft.with_id(self._next_id()) for draft in drafts]
            # newest first
            self._commit(user_id, list(reversed(created)) + self._entries)
            return created

    def edit_entry(self, entry_id: str, changes: dict[str, Any]) -> WalletEntry:
        user_id = self.session.require_user()
        unknown = sorted(set(changes) - EDITABLE_FIELDS)
        if unknown:
            raise WalletValidationError(
                [
                    ValidationIssue(field=name, code="unknown_field", message=f"Field cannot be edited: {name}")
                    for name in unknown
                ]
            )
        with self._lock:
            self._require_loaded(user_id)
            index = next((i for i, entry in enumerate(self._entries) if entry.id == entry_id), None)
            if index is None:
                raise WalletEntryNotFound(entry_id)
            edited = dataclasses.replace(self._entries[index], **changes)
            issues = validate_entry(edited)
            if issues:
                raise WalletValidationError(issues)
            updated = list(self._entries)
            updated[index] = edited
            self._commit(user_id, updated)
            return edited

    def remove_entry(self, entry_id: str) -> bool:
        user_id = self.session.require_user()
        with self._lock:
            self._require_loaded(user_id)
            updated = [entry for entry in self._entries if entry.id != entry_id]
            if len(updated) == len(self._entries):
                return False
            self._commit(user_id, updated)
            return True
