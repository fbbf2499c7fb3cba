import pytest
from conftest import make_router

from routerop.db import SqliteStore
from routerop.objects import ObjectMeta, OwnerReference, Pod, Service
from routerop.store import AlreadyExists, NotFound, StoreError


def test_create_assigns_uid_and_rejects_duplicates(store):
    r = make_router()
    store.create(r)
    assert r.metadata.uid

    with pytest.raises(AlreadyExists):
        store.create(make_router())


def test_fetch_missing_raises_not_found(store):
    with pytest.raises(NotFound):
        store.fetch("Router", "ns1", "nope")


def test_update_missing_raises_not_found(store):
    with pytest.raises(NotFound):
        store.update(make_router())


def test_update_keeps_uid(store):
    r = make_router()
    store.create(r)
    uid = r.metadata.uid

    changed = make_router(size=4)
    store.update(changed)
    stored = store.fetch("Router", "ns1", "r1")
    assert stored.metadata.uid == uid
    assert stored.spec.size == 4


def test_unknown_kind(store):
    with pytest.raises(StoreError):
        store.fetch("ConfigMap", "ns1", "x")


def test_list_filters_by_namespace_and_labels(store):
    for name, ns, app in [("p1", "ns1", "r1"), ("p2", "ns2", "r1"), ("p3", "ns1", "r2"), ("p4", "ns1", "r1")]:
        store.create(Pod(metadata=ObjectMeta(name=name, namespace=ns, labels={"application": app})))

    pods = store.list("Pod", "ns1", {"application": "r1"})
    assert [p.metadata.name for p in pods] == ["p1", "p4"]


def test_delete_cascades_to_owned_objects(store):
    r = make_router()
    store.create(r)
    owner = OwnerReference(api_version=r.api_version, kind="Router", name="r1", uid=r.metadata.uid)
    store.create(Service(metadata=ObjectMeta(name="r1", namespace="ns1", owner_references=[owner])))
    store.create(Service(metadata=ObjectMeta(name="unrelated", namespace="ns1")))

    store.delete("Router", "ns1", "r1")

    with pytest.raises(NotFound):
        store.fetch("Service", "ns1", "r1")
    assert store.fetch("Service", "ns1", "unrelated").metadata.name == "unrelated"


def test_events_newest_first(store):
    store.log_event("info", "first", router="r1", namespace="ns1")
    store.log_event("ERROR", "second")

    rows = store.latest_events(limit=10)
    assert [(r["level"], r["message"]) for r in rows] == [("ERROR", "second"), ("INFO", "first")]
    assert rows[1]["router"] == "r1"


def test_directory_path_gets_db_file(tmp_path):
    s = SqliteStore(str(tmp_path))
    assert s.path == str(tmp_path / "routerop.db")
