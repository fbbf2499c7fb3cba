from __future__ import annotations

import json
import os
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any

from .api_models import Router
from .objects import ApiModel, Deployment, Pod, Service
from .settings import settings
from .store import AlreadyExists, NotFound, StoreError

KINDS: dict[str, type[ApiModel]] = {
    "Router": Router,
    "Deployment": Deployment,
    "Service": Service,
    "Pod": Pod,
}


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _resolve_db_path(path: str) -> str:
    """Return a file path usable by sqlite.

    If the configured path is a directory (a bind mount created before the
    file existed), the DB file is placed inside it.
    """
    p = os.path.abspath(path)
    if os.path.isdir(p):
        p = os.path.join(p, "routerop.db")

    parent = os.path.dirname(p)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)
    return p


def _model_for(kind: str) -> type[ApiModel]:
    try:
        return KINDS[kind]
    except KeyError:
        raise StoreError(f"Unknown kind '{kind}'.") from None


class SqliteStore:
    """Reference object store on a single sqlite file.

    Objects are kept as JSON bodies keyed by (kind, namespace, name). Deleting
    an object also deletes everything whose owner references point at it,
    the way the platform's garbage collector would.
    """

    def __init__(self, path: str | None = None) -> None:
        self.path = _resolve_db_path(path or settings.db_path)
        self.init_db()

    def connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist."""
        with self.connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS objects (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  kind TEXT NOT NULL,
                  namespace TEXT NOT NULL,
                  name TEXT NOT NULL,
                  uid TEXT NOT NULL,
                  labels TEXT NOT NULL,
                  body TEXT NOT NULL,
                  created_at TEXT NOT NULL,
                  updated_at TEXT NOT NULL,
                  UNIQUE(kind, namespace, name)
                );

                CREATE TABLE IF NOT EXISTS events (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  ts TEXT NOT NULL,
                  level TEXT NOT NULL,
                  router TEXT,
                  namespace TEXT,
                  message TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_objects_kind_ns ON objects(kind, namespace);
                CREATE INDEX IF NOT EXISTS idx_events_ts ON events(ts);
                """
            )

    def log_event(self, level: str, message: str, router: str | None = None, namespace: str | None = None) -> None:
        if not settings.record_events:
            return
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO events (ts, level, router, namespace, message) VALUES (?, ?, ?, ?, ?)",
                (utc_now(), level.upper(), router, namespace, message),
            )

    def latest_events(self, limit: int = 100) -> list[dict[str, Any]]:
        with self.connect() as conn:
            rows = conn.execute("SELECT * FROM events ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
            return [dict(r) for r in rows]

    def create(self, obj: Any) -> None:
        _model_for(obj.kind)
        meta = obj.metadata
        if not meta.uid:
            meta.uid = uuid.uuid4().hex
        now = utc_now()
        try:
            with self.connect() as conn:
                conn.execute(
                    """
                    INSERT INTO objects (kind, namespace, name, uid, labels, body, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (obj.kind, meta.namespace, meta.name, meta.uid, json.dumps(meta.labels), obj.model_dump_json(by_alias=True), now, now),
                )
        except sqlite3.IntegrityError:
            raise AlreadyExists(f"{obj.kind} '{meta.namespace}/{meta.name}' already exists.") from None
        except sqlite3.Error as e:
            raise StoreError(f"create {obj.kind} '{meta.namespace}/{meta.name}': {e}") from e

    def fetch(self, kind: str, namespace: str, name: str) -> Any:
        cls = _model_for(kind)
        try:
            with self.connect() as conn:
                row = conn.execute(
                    "SELECT body FROM objects WHERE kind=? AND namespace=? AND name=?",
                    (kind, namespace, name),
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"fetch {kind} '{namespace}/{name}': {e}") from e
        if row is None:
            raise NotFound(f"{kind} '{namespace}/{name}' not found.")
        return cls.model_validate_json(row["body"])

    def update(self, obj: Any) -> None:
        _model_for(obj.kind)
        meta = obj.metadata
        try:
            with self.connect() as conn:
                row = conn.execute(
                    "SELECT uid FROM objects WHERE kind=? AND namespace=? AND name=?",
                    (obj.kind, meta.namespace, meta.name),
                ).fetchone()
                if row is None:
                    raise NotFound(f"{obj.kind} '{meta.namespace}/{meta.name}' not found.")
                # The uid is assigned once, on create.
                meta.uid = row["uid"]
                conn.execute(
                    """
                    UPDATE objects SET labels=?, body=?, updated_at=?
                    WHERE kind=? AND namespace=? AND name=?
                    """,
                    (json.dumps(meta.labels), obj.model_dump_json(by_alias=True), utc_now(), obj.kind, meta.namespace, meta.name),
                )
        except sqlite3.Error as e:
            raise StoreError(f"update {obj.kind} '{meta.namespace}/{meta.name}': {e}") from e

    def list(self, kind: str, namespace: str, labels: dict[str, str]) -> list[Any]:
        cls = _model_for(kind)
        try:
            with self.connect() as conn:
                rows = conn.execute(
                    "SELECT labels, body FROM objects WHERE kind=? AND namespace=? ORDER BY id",
                    (kind, namespace),
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"list {kind} in '{namespace}': {e}") from e
        out: list[Any] = []
        for r in rows:
            have = json.loads(r["labels"])
            if all(have.get(k) == v for k, v in labels.items()):
                out.append(cls.model_validate_json(r["body"]))
        return out

    def delete(self, kind: str, namespace: str, name: str) -> None:
        """Delete an object and, recursively, every object it owns."""
        obj = self.fetch(kind, namespace, name)
        owned: list[tuple[str, str]] = []
        with self.connect() as conn:
            rows = conn.execute("SELECT kind, name, body FROM objects WHERE namespace=?", (namespace,)).fetchall()
            for r in rows:
                refs = json.loads(r["body"]).get("metadata", {}).get("ownerReferences", [])
                if any(ref.get("uid") == obj.metadata.uid for ref in refs):
                    owned.append((r["kind"], r["name"]))
            conn.execute("DELETE FROM objects WHERE kind=? AND namespace=? AND name=?", (kind, namespace, name))
        for child_kind, child_name in owned:
            self.delete(child_kind, namespace, child_name)
