from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_FLAVOR_NAME = "Unknown"


class Credential(BaseModel):
    """Application credential for one cloud endpoint."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    endpoint: str
    application_credential_id: str = Field("", alias="id")
    application_credential_secret: str = Field("", alias="secret", repr=False)
    owner_id: Optional[str] = None

    @property
    def base_url(self) -> str:
        return self.endpoint.rstrip("/")

    @property
    def is_complete(self) -> bool:
        return bool(self.application_credential_id and self.application_credential_secret)


# --- wire DTOs, one shape per endpoint ---


class FlavorRef(BaseModel):
    id: str = ""


class AddressPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    addr: str = ""
    type: str = Field("", alias="OS-EXT-IPS:type")


class ServerPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = ""
    status: str = ""
    flavor: FlavorRef = Field(default_factory=FlavorRef)
    addresses: Dict[str, List[AddressPayload]] = Field(default_factory=dict)
    power_state: int = Field(0, alias="OS-EXT-STS:power_state")
    availability_zone: str = Field("", alias="OS-EXT-AZ:availability_zone")
    created: str = ""
    updated: str = ""


class ServerListEnvelope(BaseModel):
    servers: List[ServerPayload] = Field(default_factory=list)


class ServerEnvelope(BaseModel):
    server: ServerPayload


class FlavorPayload(BaseModel):
    id: str
    name: str = ""
    vcpus: int = 0
    ram: int = 0
    disk: int = 0


class FlavorEnvelope(BaseModel):
    flavor: FlavorPayload


# --- public descriptors ---


@dataclass(frozen=True)
class FlavorDescriptor:
    id: str
    name: str
    vcpus: int
    ram: int
    disk: int

    @classmethod
    def placeholder(cls, flavor_id: str) -> "FlavorDescriptor":
        return cls(id=flavor_id, name=UNKNOWN_FLAVOR_NAME, vcpus=0, ram=0, disk=0)


@dataclass(frozen=True)
class AddressEntry:
    ip: str
    type: str


@dataclass(frozen=True)
class InstanceDescriptor:
    id: str
    name: str
    status: str
    flavor: FlavorDescriptor
    addresses: Mapping[str, Tuple[AddressEntry, ...]] = field(default_factory=dict)
    power_state: int = 0
    availability_zone: str = ""
    created: str = ""
    updated: str = ""


@dataclass(frozen=True)
class HealthResult:
    healthy: bool
    status: str
    message: str
    checked_at: datetime
    response_time_ms: int


@dataclass(frozen=True)
class RuntimeStatus:
    instance_id: str
    status: str
    power_state: int
    last_checked: datetime


@dataclass(frozen=True)
class MonitoringSnapshot:
    instance_id: str
    cpu_usage: float
    memory_usage: float
    disk_usage: float
    network_in_bytes: int
    network_out_bytes: int
    last_updated: datetime


def to_flavor_descriptor(payload: FlavorPayload) -> FlavorDescriptor:
    return FlavorDescriptor(
        id=payload.id,
        name=payload.name,
        vcpus=payload.vcpus,
        ram=payload.ram,
        disk=payload.disk,
    )


def to_instance_descriptor(payload: ServerPayload, flavor: FlavorDescriptor) -> InstanceDescriptor:
    addresses = {
        network: tuple(AddressEntry(ip=a.addr, type=a.type) for a in entries)
        for network, entries in payload.addresses.items()
    }
    return InstanceDescriptor(
        id=payload.id,
        name=payload.name,
        status=payload.status,
        flavor=flavor,
        addresses=addresses,
        power_state=payload.power_state,
        availability_zone=payload.availability_zone,
        created=payload.created,
        updated=payload.updated,
    )
