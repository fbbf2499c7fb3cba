"""Compile a RouterSpec into the router's configuration document.

The document is a sequence of ``entity { key: value }`` blocks. The router
matches addresses and link routes in declaration order, so every list is
emitted exactly in the order it appears in the spec. Unset optional
attributes are left out rather than written with a placeholder.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from .api_models import Address, AutoLink, Connector, LinkRoute, Listener, RouterSpec, SslProfile
from .settings import settings

INDENT = "    "
WILDCARD_HOST = "0.0.0.0"


def _fmt(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ConfigWriter:
    """Ordered line buffer with one open block at a time."""

    def __init__(self) -> None:
        self._lines: list[str] = []

    @contextmanager
    def block(self, entity: str) -> Iterator[ConfigWriter]:
        self._lines.append(f"{entity} {{")
        yield self
        self._lines.append("}")
        self._lines.append("")

    def attr(self, key: str, value: object) -> None:
        self._lines.append(f"{INDENT}{key}: {_fmt(value)}")

    def attr_if(self, key: str, value: object) -> None:
        # Empty strings, zero and False mean "not set".
        if value:
            self.attr(key, value)

    def attr_if_set(self, key: str, value: object | None) -> None:
        # For optional integers where 0 is meaningful.
        if value is not None:
            self.attr(key, value)

    def render(self) -> str:
        return "\n".join(self._lines).rstrip("\n") + "\n"


def _router(w: ConfigWriter) -> None:
    with w.block("router"):
        w.attr("mode", "interior")
        w.attr("id", "${HOSTNAME}")


def _listener(w: ConfigWriter, l: Listener) -> None:
    with w.block("listener"):
        w.attr_if("name", l.name)
        w.attr("host", l.host or WILDCARD_HOST)
        w.attr_if("port", l.port)
        w.attr("role", "route-container" if l.route_container else "normal")
        if l.http:
            w.attr("http", True)
            w.attr("httpRootDir", settings.console_dir)
        w.attr_if("sslProfile", l.ssl_profile)


def _inter_router_listener(w: ConfigWriter, l: Listener) -> None:
    with w.block("listener"):
        w.attr_if("name", l.name)
        w.attr("role", "inter-router")
        w.attr("host", l.host or WILDCARD_HOST)
        w.attr_if("port", l.port)
        w.attr_if("cost", l.cost)
        w.attr_if("sslProfile", l.ssl_profile)


def cert_dir(profile_name: str, secret: str) -> str:
    """Where the secret ``secret`` is mounted for profile ``profile_name``."""
    return f"{settings.cert_mount_root}/{profile_name}/{secret}"


def _ssl_profile(w: ConfigWriter, p: SslProfile) -> None:
    with w.block("sslProfile"):
        w.attr("name", p.name)
        if p.credentials:
            w.attr("certFile", f"{cert_dir(p.name, p.credentials)}/tls.crt")
            w.attr("privateKeyFile", f"{cert_dir(p.name, p.credentials)}/tls.key")
        if p.ca_cert:
            w.attr("caCertFile", f"{cert_dir(p.name, p.ca_cert)}/ca.crt")
        elif p.require_client_certs:
            w.attr("caCertFile", settings.service_ca_file)
        w.attr_if("ciphers", p.ciphers)
        w.attr_if("protocols", p.protocols)


def _address(w: ConfigWriter, a: Address) -> None:
    with w.block("address"):
        w.attr_if("prefix", a.prefix)
        w.attr_if("pattern", a.pattern)
        w.attr_if("distribution", a.distribution)
        w.attr_if("waypoint", a.waypoint)
        w.attr_if_set("ingressPhase", a.ingress_phase)
        w.attr_if_set("egressPhase", a.egress_phase)


def _link_route(w: ConfigWriter, lr: LinkRoute) -> None:
    with w.block("linkRoute"):
        w.attr_if("prefix", lr.prefix)
        w.attr_if("pattern", lr.pattern)
        w.attr_if("direction", lr.direction)
        w.attr_if("connection", lr.connection)
        w.attr_if("containerId", lr.container_id)
        w.attr_if("addExternalPrefix", lr.add_external_prefix)
        w.attr_if("removeExternalPrefix", lr.remove_external_prefix)


def _auto_link(w: ConfigWriter, al: AutoLink) -> None:
    with w.block("autoLink"):
        w.attr_if("addr", al.address)
        w.attr_if("direction", al.direction)
        w.attr_if("containerId", al.container_id)
        w.attr_if("connection", al.connection)
        w.attr_if("externalPrefix", al.external_prefix)
        w.attr_if_set("phase", al.phase)


def _connector(w: ConfigWriter, c: Connector, inter_router: bool = False) -> None:
    with w.block("connector"):
        w.attr_if("name", c.name)
        w.attr_if("host", c.host)
        w.attr_if("port", c.port)
        if inter_router:
            w.attr("role", "inter-router")
        elif c.route_container:
            w.attr("role", "route-container")
        w.attr_if("cost", c.cost)
        w.attr_if("sslProfile", c.ssl_profile)


def config_for_router(spec: RouterSpec) -> str:
    """Render ``spec`` (already defaulted) as the router configuration text."""
    w = ConfigWriter()
    _router(w)
    for l in spec.listeners:
        _listener(w, l)
    for l in spec.inter_router_listeners:
        _inter_router_listener(w, l)
    for p in spec.ssl_profiles:
        _ssl_profile(w, p)
    for a in spec.addresses:
        _address(w, a)
    for lr in spec.link_routes:
        _link_route(w, lr)
    for al in spec.auto_links:
        _auto_link(w, al)
    for c in spec.connectors:
        _connector(w, c)
    for c in spec.inter_router_connectors:
        _connector(w, c, inter_router=True)
    return w.render()
