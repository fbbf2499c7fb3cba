from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from .api_models import Notification, Router, RouterEvent
from .defaults import set_router_defaults
from .objects import Container, Deployment, Service
from .resources import deployment_for_router, labels_for_router, service_for_router
from .routerconfig import config_for_router
from .settings import settings
from .store import AlreadyExists, ObjectStore, StoreError


class ReconcileError(Exception):
    """A store call failed; the pass stopped at ``step``.

    Nothing applied earlier in the pass is rolled back. The next delivery of
    the notification starts over and converges from whatever is there.
    """

    def __init__(self, step: str, cause: Exception):
        super().__init__(f"failed to {step}: {cause}")
        self.step = step


@dataclass
class PassResult:
    """What one reconciliation pass wrote to the store."""

    deployment_created: bool = False
    deployment_updated: bool = False
    service_created: bool = False
    service_updated: bool = False
    status_updated: bool = False

    @property
    def changed(self) -> bool:
        return any(
            (
                self.deployment_created,
                self.deployment_updated,
                self.service_created,
                self.service_updated,
                self.status_updated,
            )
        )


def _call(step: str, fn: Callable[..., Any], *args: Any) -> Any:
    try:
        return fn(*args)
    except StoreError as e:
        raise ReconcileError(step, e) from e


def _create_if_absent(store: ObjectStore, obj: Any, step: str) -> bool:
    """Returns False when the object was already there."""
    try:
        store.create(obj)
    except AlreadyExists:
        return False
    except StoreError as e:
        raise ReconcileError(step, e) from e
    return True


def check_container(desired: Container, actual: Container) -> bool:
    """True when ``actual`` matches ``desired`` on every tracked field.

    The image is left alone once the deployment exists.
    """
    if desired.env != actual.env:
        return False
    if desired.ports != actual.ports:
        return False
    if desired.volume_mounts != actual.volume_mounts:
        return False
    return True


def converge_deployment(store: ObjectStore, desired: Deployment, result: PassResult) -> Deployment:
    meta = desired.metadata
    if _create_if_absent(store, desired, "create deployment"):
        result.deployment_created = True
        store.log_event("INFO", "Created deployment", router=meta.name, namespace=meta.namespace)

    actual: Deployment = _call("get deployment", store.fetch, "Deployment", meta.namespace, meta.name)

    update = False
    # Only an explicit size is enforced; otherwise replicas stay as scaled.
    if desired.replicas and actual.replicas != desired.replicas:
        actual.replicas = desired.replicas
        update = True
    if len(actual.containers) != 1 or not check_container(desired.containers[0], actual.containers[0]):
        actual.containers = list(desired.containers)
        actual.volumes = list(desired.volumes)
        update = True

    if update:
        _call("update deployment", store.update, actual)
        result.deployment_updated = True
        store.log_event("INFO", f"Updated deployment (replicas={actual.replicas})", router=meta.name, namespace=meta.namespace)
    return actual


def check_service(desired: Service, actual: Service) -> bool:
    """Copy the tracked fields onto ``actual`` if any of them drifted.

    Returns True when ``actual`` was changed and has to be written back.
    """
    key = settings.cert_annotation
    want_cert = desired.metadata.annotations.get(key)
    drifted = (
        actual.metadata.annotations.get(key) != want_cert
        or actual.selector != desired.selector
        or actual.ports != desired.ports
    )
    if not drifted:
        return False

    if want_cert is None:
        actual.metadata.annotations.pop(key, None)
    else:
        actual.metadata.annotations[key] = want_cert
    actual.selector = dict(desired.selector)
    actual.ports = list(desired.ports)
    return True


def converge_service(store: ObjectStore, desired: Service, result: PassResult) -> Service:
    meta = desired.metadata
    if _create_if_absent(store, desired, "create service"):
        result.service_created = True
        store.log_event("INFO", "Created service", router=meta.name, namespace=meta.namespace)

    actual: Service = _call("get service", store.fetch, "Service", meta.namespace, meta.name)
    if check_service(desired, actual):
        _call("update service", store.update, actual)
        result.service_updated = True
        store.log_event("INFO", "Updated service", router=meta.name, namespace=meta.namespace)
    return actual


def converge_status(store: ObjectStore, router: Router, result: PassResult) -> None:
    """Record the names of the router's pods, in listing order, on its status."""
    meta = router.metadata
    pods = _call("list pods", store.list, "Pod", meta.namespace, labels_for_router(meta.name))
    names = [p.metadata.name for p in pods]
    if names == router.status.nodes:
        return
    router.status.nodes = names
    _call("update router status", store.update, router)
    result.status_updated = True
    store.log_event("INFO", f"Router nodes: {', '.join(names) or '-'}", router=meta.name, namespace=meta.namespace)


def reconcile_router(store: ObjectStore, router: Router) -> PassResult:
    """Converge the deployment, the service and the status of one router.

    Defaults are applied to a copy; ``router`` itself only gets its status
    overwritten.
    """
    result = PassResult()

    defaulted = router.model_copy(deep=True)
    request_cert = set_router_defaults(defaulted)
    config = config_for_router(defaulted.spec)

    # Order matters: the service annotation depends on the defaulting above
    # and the pod listing on the deployment's selector.
    converge_deployment(store, deployment_for_router(defaulted, config), result)
    converge_service(store, service_for_router(defaulted, request_cert), result)
    converge_status(store, router, result)
    return result


def handle(event: Notification, store: ObjectStore) -> PassResult:
    """Run one reconciliation pass for a change notification.

    Delete notifications are ignored: owned resources carry an owner
    reference and are collected by the platform.
    """
    if isinstance(event, RouterEvent):
        if event.deleted:
            return PassResult()
        return reconcile_router(store, event.object)
    raise TypeError(f"Unsupported notification: {type(event).__name__}")
