from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from .objects import ApiModel, ObjectMeta

DEFAULT_PROFILE = "default"


class Listener(ApiModel):
    name: str = ""
    host: str = ""
    port: int = Field(..., ge=1, le=65535)
    route_container: bool = False
    http: bool = False
    cost: int = 0
    ssl_profile: str = ""


class Connector(ApiModel):
    name: str = ""
    host: str
    port: int = Field(..., ge=1, le=65535)
    route_container: bool = False
    cost: int = 0
    ssl_profile: str = ""


class SslProfile(ApiModel):
    name: str = ""
    credentials: str = Field("", description="Secret holding tls.crt / tls.key")
    ca_cert: str = Field("", description="Secret holding ca.crt")
    require_client_certs: bool = False
    ciphers: str = ""
    protocols: str = ""


class Address(ApiModel):
    prefix: str = ""
    pattern: str = ""
    distribution: str = ""
    waypoint: bool = False
    ingress_phase: int | None = None
    egress_phase: int | None = None


class LinkRoute(ApiModel):
    prefix: str = ""
    pattern: str = ""
    direction: str = ""
    container_id: str = ""
    connection: str = ""
    add_external_prefix: str = ""
    remove_external_prefix: str = ""


class AutoLink(ApiModel):
    address: str = ""
    direction: str = ""
    container_id: str = ""
    connection: str = ""
    external_prefix: str = ""
    phase: int | None = None


class RouterSpec(ApiModel):
    # 0 leaves the replica count under external control.
    size: int = Field(0, ge=0)
    console: bool = False
    addresses: list[Address] = Field(default_factory=list)
    auto_links: list[AutoLink] = Field(default_factory=list)
    link_routes: list[LinkRoute] = Field(default_factory=list)
    connectors: list[Connector] = Field(default_factory=list)
    inter_router_connectors: list[Connector] = Field(default_factory=list)
    listeners: list[Listener] = Field(default_factory=list)
    inter_router_listeners: list[Listener] = Field(default_factory=list)
    ssl_profiles: list[SslProfile] = Field(default_factory=list)


class RouterStatus(ApiModel):
    nodes: list[str] = Field(default_factory=list)


class Router(ApiModel):
    api_version: str = "routerop.io/v1alpha1"
    kind: str = "Router"
    metadata: ObjectMeta
    spec: RouterSpec = Field(default_factory=RouterSpec)
    status: RouterStatus = Field(default_factory=RouterStatus)


class RouterEvent(ApiModel):
    """Router created or changed (or deleted, when ``deleted`` is set)."""

    kind: Literal["Router"] = "Router"
    deleted: bool = False
    object: Router


# Every notification variant the controller understands, keyed by ``kind``.
Notification = RouterEvent
NOTIFICATION_KINDS: dict[str, type[ApiModel]] = {"Router": RouterEvent}


def parse_notification(payload: dict[str, Any]) -> Notification:
    kind = payload.get("kind")
    cls = NOTIFICATION_KINDS.get(str(kind))
    if cls is None:
        raise ValueError(f"Unsupported notification kind: {kind!r}")
    return cls.model_validate(payload)
