"""Platform objects the reconciler reads and writes.

Only the fields the controller owns (or reads back for drift detection) are
modelled; everything else on the live object belongs to someone else.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OwnerReference(ApiModel):
    api_version: str
    kind: str
    name: str
    uid: str
    controller: bool = True


class ObjectMeta(ApiModel):
    name: str
    namespace: str = "default"
    uid: str = ""
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    owner_references: list[OwnerReference] = Field(default_factory=list)


class EnvVar(ApiModel):
    """Either a literal value or a downward-API field path resolved at pod start."""

    name: str
    value: str | None = None
    field_ref: str | None = None


class ContainerPort(ApiModel):
    name: str
    container_port: int


class VolumeMount(ApiModel):
    name: str
    mount_path: str


class Container(ApiModel):
    name: str
    image: str
    env: list[EnvVar] = Field(default_factory=list)
    ports: list[ContainerPort] = Field(default_factory=list)
    volume_mounts: list[VolumeMount] = Field(default_factory=list)


class SecretVolume(ApiModel):
    name: str
    secret_name: str


class Deployment(ApiModel):
    api_version: str = "apps/v1"
    kind: str = "Deployment"
    metadata: ObjectMeta
    # None leaves the replica count to whoever scales the deployment.
    replicas: int | None = None
    selector: dict[str, str] = Field(default_factory=dict)
    template_labels: dict[str, str] = Field(default_factory=dict)
    containers: list[Container] = Field(default_factory=list)
    volumes: list[SecretVolume] = Field(default_factory=list)


class ServicePort(ApiModel):
    name: str
    protocol: str = "TCP"
    port: int
    target_port: int


class Service(ApiModel):
    api_version: str = "v1"
    kind: str = "Service"
    metadata: ObjectMeta
    selector: dict[str, str] = Field(default_factory=dict)
    ports: list[ServicePort] = Field(default_factory=list)


class Pod(ApiModel):
    api_version: str = "v1"
    kind: str = "Pod"
    metadata: ObjectMeta
    phase: str = "Pending"
