from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping

import httpx
import yaml
from pydantic import ValidationError

from nova_cloudctl.errors import ConfigurationError
from nova_cloudctl.openstack.models import Credential

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
TIMEOUT_ENV = "NOVA_CLOUDCTL_TIMEOUT"

# auth_url suffixes that point at keystone rather than the cloud's base URL
_IDENTITY_SUFFIXES = ("/identity/v3", "/identity", "/v3")


def request_timeout() -> float:
    raw = os.environ.get(TIMEOUT_ENV)
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{TIMEOUT_ENV} must be a number of seconds, got {raw!r}", cause=e) from e


def build_transport(timeout: float | None = None) -> httpx.Client:
    """
    Create the one HTTP client a CloudControlClient reuses for all its calls.
    """
    return httpx.Client(timeout=httpx.Timeout(timeout if timeout is not None else request_timeout()))


def base_endpoint(auth_url: str) -> str:
    url = auth_url.rstrip("/")
    for suffix in _IDENTITY_SUFFIXES:
        if url.endswith(suffix):
            return url[: -len(suffix)]
    return url


def credential_from_mapping(data: Mapping[str, Any]) -> Credential:
    try:
        return Credential.model_validate(dict(data))
    except ValidationError as e:
        raise ConfigurationError(f"invalid credential: {e}", cause=e) from e


def credential_from_env(environ: Mapping[str, str] | None = None) -> Credential:
    """
    Same variables the `openstack` CLI uses for v3applicationcredential auth.
    """
    env = os.environ if environ is None else environ
    auth_url = env.get("OS_AUTH_URL")
    if not auth_url:
        raise ConfigurationError("OS_AUTH_URL is not set")
    return Credential(
        endpoint=base_endpoint(auth_url),
        application_credential_id=env.get("OS_APPLICATION_CREDENTIAL_ID", ""),
        application_credential_secret=env.get("OS_APPLICATION_CREDENTIAL_SECRET", ""),
        owner_id=env.get("OS_PROJECT_ID"),
    )


def credential_from_file(path: Path) -> Credential:
    try:
        data = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"cannot read credentials file {path}: {e}", cause=e) from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"credentials file {path} must contain a mapping")
    return credential_from_mapping(data)


def credential_from_cloud(cloud: str | None = None) -> Credential:
    """
    Resolve a clouds.yaml entry (or OS_* env vars) through openstacksdk's config
    loader and keep only what application-credential auth needs.
    """
    from openstack import config as os_config
    from openstack import exceptions as os_exceptions

    try:
        region = os_config.get_cloud_region(cloud=cloud)
    except os_exceptions.ConfigException as e:
        raise ConfigurationError(f"cannot load cloud {cloud!r}: {e}", cause=e) from e

    auth = region.config.get("auth") or {}
    auth_url = auth.get("auth_url")
    if not auth_url:
        raise ConfigurationError(f"cloud {cloud!r} has no auth_url")

    logger.debug("Loaded cloud %s from clouds.yaml", cloud)
    return Credential(
        endpoint=base_endpoint(auth_url),
        application_credential_id=auth.get("application_credential_id") or "",
        application_credential_secret=auth.get("application_credential_secret") or "",
        owner_id=auth.get("project_id"),
    )
