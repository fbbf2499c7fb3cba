from __future__ import annotations

from .api_models import DEFAULT_PROFILE, Listener, Router, SslProfile

AMQP_PORT = 5672
AMQPS_PORT = 5671
CONSOLE_PORT = 8672
INTER_ROUTER_PORT = 55672


def cert_secret_name(router_name: str) -> str:
    return f"{router_name}-cert"


def is_default_profile_defined(router: Router) -> bool:
    return any(p.name == DEFAULT_PROFILE for p in router.spec.ssl_profiles)


def is_default_profile_used(router: Router) -> bool:
    listeners = router.spec.listeners + router.spec.inter_router_listeners
    return any(l.ssl_profile == DEFAULT_PROFILE for l in listeners)


def set_router_defaults(router: Router) -> bool:
    """Fill unset parts of ``router.spec`` in place.

    Returns True when a serving certificate has to be requested for the
    router's Service. Running it again on an already defaulted spec changes
    nothing.
    """
    spec = router.spec
    request_cert = False

    if not spec.listeners:
        spec.listeners = [
            Listener(port=AMQP_PORT),
            Listener(port=AMQPS_PORT, ssl_profile=DEFAULT_PROFILE),
            Listener(port=CONSOLE_PORT, http=True, ssl_profile=DEFAULT_PROFILE),
        ]
    if not spec.inter_router_listeners:
        spec.inter_router_listeners = [Listener(port=INTER_ROUTER_PORT)]

    secret = cert_secret_name(router.metadata.name)
    if not is_default_profile_defined(router) and is_default_profile_used(router):
        spec.ssl_profiles.append(SslProfile(name=DEFAULT_PROFILE, credentials=secret))
        request_cert = True

    for profile in spec.ssl_profiles:
        if not profile.credentials:
            profile.credentials = secret
            request_cert = True
    return request_cert
