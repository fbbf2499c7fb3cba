"""The platform primitives the reconciler is written against."""
from __future__ import annotations

from typing import Any, Protocol


class StoreError(Exception):
    """A store call failed; the current reconciliation pass cannot continue."""


class AlreadyExists(StoreError):
    pass


class NotFound(StoreError):
    pass


class ObjectStore(Protocol):
    def create(self, obj: Any) -> None:
        """Persist a new object. Raises AlreadyExists if kind/namespace/name is taken."""
        ...

    def fetch(self, kind: str, namespace: str, name: str) -> Any:
        ...

    def update(self, obj: Any) -> None:
        ...

    def list(self, kind: str, namespace: str, labels: dict[str, str]) -> list[Any]:
        """Objects of ``kind`` in ``namespace`` carrying every label in ``labels``, oldest first."""
        ...

    def log_event(self, level: str, message: str, router: str | None = None, namespace: str | None = None) -> None:
        ...
