from __future__ import annotations

import json
from typing import Iterable, List, Optional

from pydantic import BaseModel

from nova_cloudctl.openstack.models import InstanceDescriptor


class VirtualMachineRecord(BaseModel):
    """Row shape handed to whatever store owns synced instances."""

    instance_id: str
    name: str
    owner_id: Optional[str] = None
    status: str
    flavor_id: str
    flavor_name: str
    vcpus: int
    ram: int
    disk: int
    ip_addresses: str
    availability_zone: str


def serialize_addresses(instance: InstanceDescriptor) -> str:
    # provider key names, so the text reads like the compute API's own payload
    data = {
        network: [{"addr": a.ip, "OS-EXT-IPS:type": a.type} for a in entries]
        for network, entries in instance.addresses.items()
    }
    return json.dumps(data)


def project_instance(instance: InstanceDescriptor, owner_id: str | None = None) -> VirtualMachineRecord:
    return VirtualMachineRecord(
        instance_id=instance.id,
        name=instance.name,
        owner_id=owner_id,
        status=instance.status,
        flavor_id=instance.flavor.id,
        flavor_name=instance.flavor.name,
        vcpus=instance.flavor.vcpus,
        ram=instance.flavor.ram,
        disk=instance.flavor.disk,
        ip_addresses=serialize_addresses(instance),
        availability_zone=instance.availability_zone,
    )


def project_instances(instances: Iterable[InstanceDescriptor], owner_id: str | None = None) -> List[VirtualMachineRecord]:
    return [project_instance(i, owner_id) for i in instances]
