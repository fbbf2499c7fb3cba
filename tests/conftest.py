import sys

import pytest

# Ensure project root is importable (so `import main` works reliably across environments)
import os as _os
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from routerop.api_models import Router  # noqa: E402
from routerop.db import SqliteStore  # noqa: E402


class CountingStore(SqliteStore):
    """SqliteStore that remembers every update it was asked to make."""

    def __init__(self, path):
        super().__init__(path)
        self.updates = []

    def update(self, obj):
        self.updates.append((obj.kind, obj.metadata.name))
        super().update(obj)

    def updates_of(self, kind):
        return [u for u in self.updates if u[0] == kind]


class FailingStore(CountingStore):
    """Raises StoreError from the named method once armed."""

    def __init__(self, path, method, error):
        super().__init__(path)
        self.method = method
        self.error = error

    def _maybe_fail(self, name):
        if name == self.method:
            raise self.error

    def create(self, obj):
        self._maybe_fail("create")
        super().create(obj)

    def fetch(self, kind, namespace, name):
        self._maybe_fail("fetch")
        return super().fetch(kind, namespace, name)

    def update(self, obj):
        self._maybe_fail("update")
        super().update(obj)

    def list(self, kind, namespace, labels):
        self._maybe_fail("list")
        return super().list(kind, namespace, labels)


@pytest.fixture
def store(tmp_path):
    return CountingStore(str(tmp_path / "test.db"))


def make_router(name="r1", namespace="ns1", **spec):
    return Router.model_validate({"metadata": {"name": name, "namespace": namespace}, "spec": spec})


@pytest.fixture
def router(store):
    r = make_router(size=3)
    store.create(r)
    return r
