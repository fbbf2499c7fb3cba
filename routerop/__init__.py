"""Router operator reconciliation core.

Converges a declared router topology (listeners, connectors, addresses,
link routes, TLS profiles, replica count) onto a cluster:
 - fills policy defaults and decides whether a serving certificate is needed
 - compiles the spec into the router's line-oriented configuration document
 - synthesizes the desired Deployment and Service
 - patches observed resources only where tracked fields drifted
 - reports running pod names back onto the Router status

Watching, scheduling and certificate issuance belong to the platform.
"""
