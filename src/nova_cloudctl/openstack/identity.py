from __future__ import annotations

import logging

import httpx

from nova_cloudctl.errors import AuthenticationError, ConfigurationError, TransportError
from nova_cloudctl.openstack.models import Credential

logger = logging.getLogger(__name__)

TOKEN_HEADER = "X-Subject-Token"


def token_url(credential: Credential) -> str:
    return f"{credential.base_url}/identity/v3/auth/tokens"


def auth_payload(credential: Credential) -> dict:
    return {
        "auth": {
            "identity": {
                "methods": ["application_credential"],
                "application_credential": {
                    "id": credential.application_credential_id,
                    "secret": credential.application_credential_secret,
                },
            }
        }
    }


def authenticate(http: httpx.Client, credential: Credential) -> str:
    """
    Exchange an application credential for a keystone token.

    Tokens are not cached; callers ask for a fresh one per operation.
    """
    if not credential.is_complete:
        raise ConfigurationError("application credential id and secret are required")

    url = token_url(credential)
    logger.debug("POST %s", url)
    try:
        resp = http.post(
            url,
            json=auth_payload(credential),
            headers={"Content-Type": "application/json"},
        )
    except httpx.RequestError as e:
        raise TransportError(f"authentication request failed: {e}", cause=e) from e

    if resp.status_code != 201:
        raise AuthenticationError(
            f"authentication failed: HTTP {resp.status_code}",
            status_code=resp.status_code,
        )

    token = resp.headers.get(TOKEN_HEADER)
    if not token:
        raise AuthenticationError(
            f"authentication response carried no {TOKEN_HEADER} header",
            status_code=resp.status_code,
        )
    return token
