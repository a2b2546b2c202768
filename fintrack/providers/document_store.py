"""Per-user document stores (collection + key -> JSON document)."""

from __future__ import annotations

import copy
import json
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Any, Protocol

KEY_PATTERN = re.compile(r"^[A-Za-z0-9_\-]{1,128}$")


@dataclass
class DocumentStoreError(Exception):
    code: str
    message: str
    collection: str | None = None
    key: str | None = None

    def __str__(self) -> str:
        return self.message


class DocumentStore(Protocol):
    def get(self, collection: str, key: str) -> dict[str, Any] | None: ...

    def set(self, collection: str, key: str, document: dict[str, Any], merge: bool = False) -> None: ...


def _check_key(collection: str, key: str) -> None:
    for part in (collection, key):
        if not KEY_PATTERN.match(part):
            raise DocumentStoreError("INVALID_KEY", f"Invalid document path segment: {part!r}", collection, key)


class InMemoryDocumentStore:
    """Dict-backed store; documents are deep-copied in and out."""

    def __init__(self) -> None:
        self._docs: dict[tuple[str, str], dict[str, Any]] = {}
        self._lock = Lock()

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        _check_key(collection, key)
        with self._lock:
            doc = self._docs.get((collection, key))
            return copy.deepcopy(doc) if doc is not None else None

    def set(self, collection: str, key: str, document: dict[str, Any], merge: bool = False) -> None:
        _check_key(collection, key)
        with self._lock:
            current = self._docs.get((collection, key)) if merge else None
            merged = {**current, **document} if current else dict(document)
            self._docs[(collection, key)] = copy.deepcopy(merged)


class JsonFileDocumentStore:
    """One JSON file per document under ``<root>/<collection>/<key>.json``."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self._lock = Lock()

    def _path(self, collection: str, key: str) -> Path:
        _check_key(collection, key)
        return self.root / collection / f"{key}.json"

    def _read(self, path: Path, collection: str, key: str) -> dict[str, Any] | None:
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as error:
            raise DocumentStoreError("READ_FAILED", f"Could not read document {collection}/{key}.", collection, key) from error
        if not isinstance(data, dict):
            raise DocumentStoreError("BAD_DOCUMENT", f"Document {collection}/{key} is not an object.", collection, key)
        return data

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        path = self._path(collection, key)
        with self._lock:
            return self._read(path, collection, key)

    def set(self, collection: str, key: str, document: dict[str, Any], merge: bool = False) -> None:
        path = self._path(collection, key)
        with self._lock:
            current = self._read(path, collection, key) if merge else None
            payload = {**current, **document} if current else dict(document)
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{key}.", suffix=".tmp")
            except OSError as error:
                raise DocumentStoreError("WRITE_FAILED", f"Could not save document {collection}/{key}.", collection, key) from error
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2, ensure_ascii=False)
                os.replace(tmp_name, path)
            except OSError as error:
                raise DocumentStoreError("WRITE_FAILED", f"Could not save document {collection}/{key}.", collection, key) from error
            finally:
                if os.path.exists(tmp_name):
                    os.remove(tmp_name)
