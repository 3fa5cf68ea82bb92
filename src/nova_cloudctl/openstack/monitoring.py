from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol

from nova_cloudctl.openstack.models import MonitoringSnapshot


class MetricsSource(Protocol):
    """Anything that can report usage for one instance (Ceilometer, Prometheus, ...)."""

    def collect(self, instance_id: str) -> MonitoringSnapshot: ...


class SimulatedMetricsSource:
    """
    Fixed illustrative readings. No telemetry backend is queried; only
    last_updated changes between calls.
    """

    cpu_usage = 75.5
    memory_usage = 82.3
    disk_usage = 45.8
    network_in_bytes = 1024000
    network_out_bytes = 2048000

    def collect(self, instance_id: str) -> MonitoringSnapshot:
        return MonitoringSnapshot(
            instance_id=instance_id,
            cpu_usage=self.cpu_usage,
            memory_usage=self.memory_usage,
            disk_usage=self.disk_usage,
            network_in_bytes=self.network_in_bytes,
            network_out_bytes=self.network_out_bytes,
            last_updated=datetime.now(timezone.utc),
        )
