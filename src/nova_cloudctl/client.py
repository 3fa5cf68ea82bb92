from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from nova_cloudctl.openstack import compute, probe
from nova_cloudctl.openstack.connection import build_transport
from nova_cloudctl.openstack.identity import authenticate
from nova_cloudctl.openstack.models import (
    Credential,
    FlavorDescriptor,
    HealthResult,
    InstanceDescriptor,
    MonitoringSnapshot,
    RuntimeStatus,
)
from nova_cloudctl.openstack.monitoring import MetricsSource, SimulatedMetricsSource
from nova_cloudctl.sync.projection import VirtualMachineRecord, project_instances

logger = logging.getLogger(__name__)


class CloudControlClient:
    """
    Facade over keystone and nova for one or more clouds.

    The HTTP client is the only state: it is either injected or built once
    here and reused by every call. Each operation authenticates afresh and
    runs its requests one after another.
    """

    def __init__(
        self,
        http: Optional[httpx.Client] = None,
        timeout: Optional[float] = None,
        strict_flavors: bool = False,
        metrics: Optional[MetricsSource] = None,
    ):
        self._owns_http = http is None
        self.http = http if http is not None else build_transport(timeout)
        self.strict_flavors = strict_flavors
        self.metrics = metrics if metrics is not None else SimulatedMetricsSource()

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> "CloudControlClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def authenticate(self, credential: Credential) -> str:
        return authenticate(self.http, credential)

    def list_instances(self, credential: Credential) -> List[InstanceDescriptor]:
        token = self.authenticate(credential)
        instances = compute.list_instances(self.http, credential, token, strict_flavors=self.strict_flavors)
        logger.debug("Listed %d instances from %s", len(instances), credential.base_url)
        return instances

    def get_instance(self, credential: Credential, instance_id: str) -> InstanceDescriptor:
        token = self.authenticate(credential)
        return compute.get_instance(self.http, credential, token, instance_id, strict_flavors=self.strict_flavors)

    def get_flavor(self, credential: Credential, flavor_id: str) -> FlavorDescriptor:
        token = self.authenticate(credential)
        return compute.get_flavor(self.http, credential, token, flavor_id)

    def get_runtime_status(self, credential: Credential, instance_id: str) -> RuntimeStatus:
        token = self.authenticate(credential)
        return compute.get_runtime_status(self.http, credential, token, instance_id)

    def check_health(self, credential: Credential, instance_id: str) -> HealthResult:
        return probe.check_health(self.http, credential, instance_id, strict_flavors=self.strict_flavors)

    def ensure_active(self, credential: Credential, instance_id: str) -> InstanceDescriptor:
        return probe.ensure_active(self.http, credential, instance_id, strict_flavors=self.strict_flavors)

    def monitor(self, instance_id: str) -> MonitoringSnapshot:
        return self.metrics.collect(instance_id)

    def sync_instances(self, credential: Credential) -> List[VirtualMachineRecord]:
        return project_instances(self.list_instances(credential), owner_id=credential.owner_id)
