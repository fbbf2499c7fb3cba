"""HTTP entry point for pushing Router notifications into the reconciler.

The platform's watch delivers changes here; each request runs one
reconciliation pass against the configured store and reports what it wrote.
Failed passes answer 502 and are expected to be redelivered.
"""
from __future__ import annotations

from dataclasses import asdict
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import PlainTextResponse

from routerop.api_models import Router, RouterEvent, parse_notification
from routerop.db import SqliteStore
from routerop.defaults import set_router_defaults
from routerop.reconciler import ReconcileError, handle
from routerop.routerconfig import config_for_router
from routerop.settings import settings
from routerop.store import NotFound

app = FastAPI(title="Router Operator")


@lru_cache
def get_store() -> SqliteStore:
    return SqliteStore(settings.db_path)


def _deliver(store: SqliteStore, event: RouterEvent) -> dict[str, Any]:
    meta = event.object.metadata
    try:
        result = handle(event, store)
    except ReconcileError as e:
        store.log_event("ERROR", str(e), router=meta.name, namespace=meta.namespace)
        raise HTTPException(status_code=502, detail=str(e))
    return {"router": meta.name, "namespace": meta.namespace, "changed": result.changed, **asdict(result)}


def _fetch_router(store: SqliteStore, namespace: str, name: str) -> Router:
    try:
        return store.fetch("Router", namespace, name)
    except NotFound:
        raise HTTPException(status_code=404, detail=f"Router '{namespace}/{name}' not found.")


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "healthy"}


@app.put("/routers/{namespace}/{name}")
def apply_router(namespace: str, name: str, router: Router, store: SqliteStore = Depends(get_store)) -> dict[str, Any]:
    """Create or replace a Router's spec, then reconcile it."""
    router.metadata.name = name
    router.metadata.namespace = namespace
    try:
        current = store.fetch("Router", namespace, name)
    except NotFound:
        router.status.nodes = []
        store.create(router)
    else:
        # Status is written by the reconciler only.
        router.status = current.status
        store.update(router)
    store.log_event("INFO", "Router applied", router=name, namespace=namespace)
    return _deliver(store, RouterEvent(object=store.fetch("Router", namespace, name)))


@app.post("/notifications")
def notify(payload: dict[str, Any], store: SqliteStore = Depends(get_store)) -> dict[str, Any]:
    try:
        event = parse_notification(payload)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _deliver(store, event)


@app.delete("/routers/{namespace}/{name}")
def delete_router(namespace: str, name: str, store: SqliteStore = Depends(get_store)) -> dict[str, Any]:
    router = _fetch_router(store, namespace, name)
    out = _deliver(store, RouterEvent(deleted=True, object=router))
    store.delete("Router", namespace, name)
    store.log_event("INFO", "Router deleted", router=name, namespace=namespace)
    return out


@app.get("/routers/{namespace}/{name}")
def get_router(namespace: str, name: str, store: SqliteStore = Depends(get_store)) -> dict[str, Any]:
    return _fetch_router(store, namespace, name).model_dump(by_alias=True)


@app.get("/routers/{namespace}/{name}/config", response_class=PlainTextResponse)
def get_router_config(namespace: str, name: str, store: SqliteStore = Depends(get_store)) -> str:
    router = _fetch_router(store, namespace, name)
    set_router_defaults(router)
    return config_for_router(router.spec)


@app.get("/events")
def events(limit: int = Query(settings.events_limit, ge=1, le=1000), store: SqliteStore = Depends(get_store)) -> list[dict[str, Any]]:
    return store.latest_events(limit)
