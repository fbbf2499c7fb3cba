from __future__ import annotations

from .api_models import Listener, Router
from .defaults import cert_secret_name
from .objects import (
    Container,
    ContainerPort,
    Deployment,
    EnvVar,
    ObjectMeta,
    OwnerReference,
    SecretVolume,
    Service,
    ServicePort,
    VolumeMount,
)
from .routerconfig import cert_dir
from .settings import settings

CONTAINER_NAME = "router"


def labels_for_router(name: str) -> dict[str, str]:
    """Labels put on every resource owned by router ``name``; also its pod selector."""
    return {"application": name, "router_cr": name}


def as_owner(router: Router) -> OwnerReference:
    return OwnerReference(
        api_version=router.api_version,
        kind=router.kind,
        name=router.metadata.name,
        uid=router.metadata.uid,
        controller=True,
    )


def _meta_for(router: Router) -> ObjectMeta:
    return ObjectMeta(
        name=router.metadata.name,
        namespace=router.metadata.namespace,
        labels=labels_for_router(router.metadata.name),
        owner_references=[as_owner(router)],
    )


def name_for_listener(listener: Listener) -> str:
    # Must be unique across client and inter-router listeners; not checked here.
    return listener.name or f"port-{listener.port}"


def _all_listeners(router: Router) -> list[Listener]:
    return router.spec.listeners + router.spec.inter_router_listeners


def container_ports_for_router(router: Router) -> list[ContainerPort]:
    return [ContainerPort(name=name_for_listener(l), container_port=l.port) for l in _all_listeners(router)]


def service_ports_for_router(router: Router) -> list[ServicePort]:
    return [
        ServicePort(name=name_for_listener(l), protocol="TCP", port=l.port, target_port=l.port)
        for l in _all_listeners(router)
    ]


def _profile_secrets(router: Router) -> list[tuple[str, str]]:
    """(profile name, secret name) pairs in declaration order."""
    pairs: list[tuple[str, str]] = []
    for p in router.spec.ssl_profiles:
        if p.credentials:
            pairs.append((p.name, p.credentials))
        if p.ca_cert and p.ca_cert != p.credentials:
            pairs.append((p.name, p.ca_cert))
    return pairs


def volume_mounts_for_router(router: Router) -> list[VolumeMount]:
    return [VolumeMount(name=secret, mount_path=cert_dir(profile, secret)) for profile, secret in _profile_secrets(router)]


def volumes_for_router(router: Router) -> list[SecretVolume]:
    volumes: list[SecretVolume] = []
    seen: set[str] = set()
    for _, secret in _profile_secrets(router):
        if secret in seen:
            continue
        seen.add(secret)
        volumes.append(SecretVolume(name=secret, secret_name=secret))
    return volumes


def container_for_router(router: Router, config: str) -> Container:
    return Container(
        name=CONTAINER_NAME,
        image=settings.router_image,
        env=[
            EnvVar(name="QDROUTERD_CONF", value=config),
            EnvVar(name="QDROUTERD_AUTO_MESH_DISCOVERY", value=settings.auto_mesh_discovery),
            EnvVar(name="APPLICATION_NAME", value=router.metadata.name),
            EnvVar(name="POD_NAMESPACE", field_ref="metadata.namespace"),
            EnvVar(name="POD_IP", field_ref="status.podIP"),
        ],
        ports=container_ports_for_router(router),
        volume_mounts=volume_mounts_for_router(router),
    )


def deployment_for_router(router: Router, config: str) -> Deployment:
    ls = labels_for_router(router.metadata.name)
    return Deployment(
        metadata=_meta_for(router),
        replicas=router.spec.size or None,
        selector=dict(ls),
        template_labels=dict(ls),
        containers=[container_for_router(router, config)],
        volumes=volumes_for_router(router),
    )


def service_for_router(router: Router, request_cert: bool) -> Service:
    meta = _meta_for(router)
    if request_cert:
        meta.annotations[settings.cert_annotation] = cert_secret_name(router.metadata.name)
    return Service(
        metadata=meta,
        selector=labels_for_router(router.metadata.name),
        ports=service_ports_for_router(router),
    )
