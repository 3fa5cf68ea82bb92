from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

import httpx

from nova_cloudctl.errors import CloudControlError, InstanceNotActive
from nova_cloudctl.openstack.compute import get_instance
from nova_cloudctl.openstack.identity import authenticate
from nova_cloudctl.openstack.models import Credential, HealthResult, InstanceDescriptor

logger = logging.getLogger(__name__)

ACTIVE = "ACTIVE"
ERROR = "ERROR"


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _failed(message: str, started: float) -> HealthResult:
    return HealthResult(
        healthy=False,
        status=ERROR,
        message=message,
        checked_at=datetime.now(timezone.utc),
        response_time_ms=_elapsed_ms(started),
    )


def check_health(
    http: httpx.Client,
    credential: Credential,
    instance_id: str,
    strict_flavors: bool = False,
) -> HealthResult:
    """
    Read-only health check. Failures come back as an unhealthy result,
    never as an exception.
    """
    started = time.monotonic()

    try:
        token = authenticate(http, credential)
    except CloudControlError as e:
        logger.info("Health check for %s: authentication failed: %s", instance_id, e)
        return _failed(f"authentication failed: {e}", started)

    try:
        instance = get_instance(http, credential, token, instance_id, strict_flavors=strict_flavors)
    except CloudControlError as e:
        logger.info("Health check for %s: lookup failed: %s", instance_id, e)
        return _failed(f"instance lookup failed: {e}", started)

    healthy = instance.status == ACTIVE
    if healthy:
        message = "instance is running normally"
    else:
        message = f"instance status is abnormal: {instance.status}"

    return HealthResult(
        healthy=healthy,
        status=instance.status,
        message=message,
        checked_at=datetime.now(timezone.utc),
        response_time_ms=_elapsed_ms(started),
    )


def ensure_active(
    http: httpx.Client,
    credential: Credential,
    instance_id: str,
    strict_flavors: bool = False,
) -> InstanceDescriptor:
    token = authenticate(http, credential)
    instance = get_instance(http, credential, token, instance_id, strict_flavors=strict_flavors)
    if instance.status != ACTIVE:
        raise InstanceNotActive(instance_id, instance.status)
    return instance
