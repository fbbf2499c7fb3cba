import importlib.util
import os

import pytest
from fastapi.testclient import TestClient

from routerop.objects import ObjectMeta, Pod
from routerop.resources import labels_for_router
from routerop.settings import settings


def _import_main_module(project_root):
    """Import main.py as a module without requiring it to be installed as a package."""
    main_path = os.path.join(project_root, "main.py")
    spec = importlib.util.spec_from_file_location("router_operator_main", main_path)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)  # type: ignore[attr-defined]
    return mod


@pytest.fixture
def client(store):
    project_root = os.path.dirname(os.path.dirname(__file__))
    main = _import_main_module(project_root)
    main.app.dependency_overrides[main.get_store] = lambda: store
    with TestClient(main.app) as c:
        yield c


def _router_body(**spec):
    return {"metadata": {"name": "ignored"}, "spec": spec}


def test_healthz(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "healthy"}


def test_apply_router_reconciles(client, store):
    r = client.put("/routers/ns1/r1", json=_router_body(size=2))
    assert r.status_code == 200
    body = r.json()
    assert body["deployment_created"] is True
    assert body["service_created"] is True
    assert body["changed"] is True

    assert store.fetch("Deployment", "ns1", "r1").replicas == 2
    router = client.get("/routers/ns1/r1").json()
    assert router["metadata"]["name"] == "r1"
    assert router["spec"]["size"] == 2

    # Same spec again: nothing to do.
    r = client.put("/routers/ns1/r1", json=_router_body(size=2))
    assert r.json()["changed"] is False


def test_apply_keeps_status(client, store):
    store.create(Pod(metadata=ObjectMeta(name="r1-x", namespace="ns1", labels=labels_for_router("r1"))))
    client.put("/routers/ns1/r1", json=_router_body())
    assert client.get("/routers/ns1/r1").json()["status"]["nodes"] == ["r1-x"]

    body = _router_body(size=1)
    body["status"] = {"nodes": ["bogus"]}
    r = client.put("/routers/ns1/r1", json=body)
    assert r.json()["status_updated"] is False
    assert client.get("/routers/ns1/r1").json()["status"]["nodes"] == ["r1-x"]


def test_config_preview(client):
    client.put("/routers/ns1/r1", json=_router_body(addresses=[{"prefix": "orders", "distribution": "closest"}]))
    r = client.get("/routers/ns1/r1/config")
    assert r.status_code == 200
    assert r.text.startswith("router {\n")
    assert "address {\n    prefix: orders\n    distribution: closest\n}\n" in r.text


def test_missing_router(client):
    assert client.get("/routers/ns1/nope").status_code == 404
    assert client.get("/routers/ns1/nope/config").status_code == 404
    assert client.delete("/routers/ns1/nope").status_code == 404


def test_delete_router_collects_owned_resources(client, store):
    client.put("/routers/ns1/r1", json=_router_body())
    r = client.delete("/routers/ns1/r1")
    assert r.status_code == 200
    assert r.json()["changed"] is False

    assert store.list("Deployment", "ns1", {}) == []
    assert store.list("Service", "ns1", {}) == []


def test_notifications(client, store):
    payload = {"kind": "Router", "object": {"metadata": {"name": "r2", "namespace": "ns1"}, "spec": {"size": 1}}}
    r = client.post("/notifications", json=payload)
    assert r.status_code == 200
    svc = store.fetch("Service", "ns1", "r2")
    assert svc.metadata.annotations[settings.cert_annotation] == "r2-cert"

    r = client.post("/notifications", json={"kind": "Broker", "object": {}})
    assert r.status_code == 422


def test_failed_pass_reports_502(client, store):
    # Pods exist for a router that was never stored: the status write fails.
    store.create(Pod(metadata=ObjectMeta(name="r3-a", namespace="ns1", labels=labels_for_router("r3"))))
    payload = {"kind": "Router", "object": {"metadata": {"name": "r3", "namespace": "ns1"}}}
    r = client.post("/notifications", json=payload)

    assert r.status_code == 502
    assert r.json()["detail"].startswith("failed to update router status")
    events = client.get("/events", params={"limit": 5}).json()
    assert events[0]["level"] == "ERROR"
    assert events[0]["router"] == "r3"
