"""
Error hierarchy for the cloud control client.

Every failure raised by the client is a CloudControlError subclass carrying a
human-readable message and, where one exists, the underlying cause.
"""

from __future__ import annotations


class CloudControlError(Exception):
    """Base class for all client errors."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class ConfigurationError(CloudControlError):
    """Missing or unusable configuration (credentials, instance id, config file)."""


class TransportError(CloudControlError):
    """The request did not produce a usable HTTP response (connect failure, timeout, undecodable body, redirect loop)."""


class AuthenticationError(CloudControlError):
    """Keystone refused the credential or did not hand back a token."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.status_code = status_code


class ResponseParseError(CloudControlError):
    """The response body was not the JSON envelope we expected."""


class UpstreamError(CloudControlError):
    """A resource call answered with something other than HTTP 200."""

    def __init__(self, message: str, status_code: int, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ResourceNotFound(UpstreamError):
    """A resource call answered HTTP 404."""


class InstanceNotActive(CloudControlError):
    """The instance exists but is not in ACTIVE state."""

    def __init__(self, instance_id: str, status: str):
        super().__init__(f"instance {instance_id} is not active: {status}")
        self.instance_id = instance_id
        self.status = status
