from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Reference store
    db_path: str = os.getenv("ROUTEROP_DB_PATH", "routerop.db")
    events_limit: int = _env_int("ROUTEROP_EVENTS_LIMIT", 100)

    # Router container
    router_image: str = os.getenv("ROUTEROP_ROUTER_IMAGE", "amq-interconnect/amq-interconnect-1.2-openshift:latest")
    auto_mesh_discovery: str = os.getenv("ROUTEROP_AUTO_MESH_DISCOVERY", "QUERY")
    cert_mount_root: str = os.getenv("ROUTEROP_CERT_MOUNT_ROOT", "/etc/qpid-dispatch-certs")
    console_dir: str = os.getenv("ROUTEROP_CONSOLE_DIR", "/usr/share/qpid-dispatch/console")
    service_ca_file: str = os.getenv(
        "ROUTEROP_SERVICE_CA_FILE", "/var/run/secrets/kubernetes.io/serviceaccount/ca.crt"
    )

    # Asks the platform to issue a serving certificate into the named secret.
    cert_annotation: str = os.getenv("ROUTEROP_CERT_ANNOTATION", "service.alpha.openshift.io/serving-cert-secret-name")

    # Store writes are recorded as events; turn off for very chatty clusters.
    record_events: bool = _env_bool("ROUTEROP_RECORD_EVENTS", True)


settings = Settings()
