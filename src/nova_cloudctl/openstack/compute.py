from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from nova_cloudctl.errors import (
    CloudControlError,
    ConfigurationError,
    ResourceNotFound,
    ResponseParseError,
    TransportError,
    UpstreamError,
)
from nova_cloudctl.openstack.models import (
    Credential,
    FlavorDescriptor,
    FlavorEnvelope,
    InstanceDescriptor,
    RuntimeStatus,
    ServerEnvelope,
    ServerListEnvelope,
    ServerPayload,
    to_flavor_descriptor,
    to_instance_descriptor,
)

logger = logging.getLogger(__name__)

COMPUTE_PREFIX = "/compute/v2.1"

EnvelopeT = TypeVar("EnvelopeT", bound=BaseModel)


def _get(http: httpx.Client, url: str, token: str, what: str) -> httpx.Response:
    logger.debug("GET %s", url)
    try:
        resp = http.get(url, headers={"X-Auth-Token": token, "Accept": "application/json"})
    except httpx.RequestError as e:
        raise TransportError(f"{what} request failed: {e}", cause=e) from e

    if resp.status_code == 404:
        raise ResourceNotFound(f"{what} not found: HTTP 404", status_code=404, body=resp.text)
    if resp.status_code != 200:
        raise UpstreamError(
            f"{what} failed: HTTP {resp.status_code}, body: {resp.text}",
            status_code=resp.status_code,
            body=resp.text,
        )
    return resp


def _parse(resp: httpx.Response, envelope: Type[EnvelopeT], what: str) -> EnvelopeT:
    try:
        return envelope.model_validate_json(resp.content)
    except ValidationError as e:
        raise ResponseParseError(f"cannot parse {what} response: {e}", cause=e) from e


def get_flavor(http: httpx.Client, credential: Credential, token: str, flavor_id: str) -> FlavorDescriptor:
    url = f"{credential.base_url}{COMPUTE_PREFIX}/flavors/{quote(flavor_id, safe='')}"
    resp = _get(http, url, token, f"flavor {flavor_id}")
    return to_flavor_descriptor(_parse(resp, FlavorEnvelope, "flavor").flavor)


def resolve_flavor(
    http: httpx.Client,
    credential: Credential,
    token: str,
    flavor_id: str,
    strict: bool = False,
) -> FlavorDescriptor:
    """
    Look up a flavor, falling back to an "Unknown" zero-sized placeholder on
    any failure unless strict is set.
    """
    try:
        return get_flavor(http, credential, token, flavor_id)
    except CloudControlError as e:
        if strict:
            raise
        logger.warning("Flavor %s lookup failed, using placeholder: %s", flavor_id, e)
        return FlavorDescriptor.placeholder(flavor_id)


def _enrich(
    http: httpx.Client,
    credential: Credential,
    token: str,
    server: ServerPayload,
    strict: bool,
) -> InstanceDescriptor:
    flavor = resolve_flavor(http, credential, token, server.flavor.id, strict=strict)
    return to_instance_descriptor(server, flavor)


def list_instances(
    http: httpx.Client,
    credential: Credential,
    token: str,
    strict_flavors: bool = False,
) -> List[InstanceDescriptor]:
    url = f"{credential.base_url}{COMPUTE_PREFIX}/servers/detail"
    resp = _get(http, url, token, "server list")
    envelope = _parse(resp, ServerListEnvelope, "server list")

    # one flavor lookup per server, in response order
    return [_enrich(http, credential, token, s, strict_flavors) for s in envelope.servers]


def _fetch_server(http: httpx.Client, credential: Credential, token: str, instance_id: str) -> ServerPayload:
    if not instance_id:
        raise ConfigurationError("instance id is required")
    url = f"{credential.base_url}{COMPUTE_PREFIX}/servers/{quote(instance_id, safe='')}"
    resp = _get(http, url, token, f"server {instance_id}")
    return _parse(resp, ServerEnvelope, "server").server


def get_instance(
    http: httpx.Client,
    credential: Credential,
    token: str,
    instance_id: str,
    strict_flavors: bool = False,
) -> InstanceDescriptor:
    server = _fetch_server(http, credential, token, instance_id)
    return _enrich(http, credential, token, server, strict_flavors)


def get_runtime_status(http: httpx.Client, credential: Credential, token: str, instance_id: str) -> RuntimeStatus:
    server = _fetch_server(http, credential, token, instance_id)
    return RuntimeStatus(
        instance_id=instance_id,
        status=server.status,
        power_state=server.power_state,
        last_checked=datetime.now(timezone.utc),
    )
