"""Unit tests for application-credential authentication."""

import json

import httpx
import pytest

from nova_cloudctl.errors import AuthenticationError, ConfigurationError, TransportError
from nova_cloudctl.openstack.identity import authenticate
from nova_cloudctl.openstack.models import Credential


class TestAuthenticate:
    def test_returns_subject_token(self, http, cloud, credential):
        """A 201 with X-Subject-Token: abc yields "abc"."""
        assert authenticate(http, credential) == "abc"

    def test_posts_application_credential_payload(self, http, cloud, credential):
        authenticate(http, credential)

        (request,) = cloud.requests
        assert request.method == "POST"
        assert str(request.url) == "http://cloud.test/identity/v3/auth/tokens"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {
            "auth": {
                "identity": {
                    "methods": ["application_credential"],
                    "application_credential": {"id": "cred-id", "secret": "cred-secret"},
                }
            }
        }

    @pytest.mark.parametrize(
        "cred_id,secret",
        [("cred-id", ""), ("", "cred-secret"), ("", "")],
    )
    def test_incomplete_credential_issues_no_request(self, http, cloud, cred_id, secret):
        cred = Credential(
            endpoint="http://cloud.test",
            application_credential_id=cred_id,
            application_credential_secret=secret,
        )
        with pytest.raises(ConfigurationError):
            authenticate(http, cred)
        assert cloud.requests == []

    @pytest.mark.parametrize("status", [200, 401, 403, 500])
    def test_non_201_is_authentication_error(self, http, cloud, credential, status):
        cloud.auth_status = status
        with pytest.raises(AuthenticationError) as exc_info:
            authenticate(http, credential)
        assert exc_info.value.status_code == status
        assert str(status) in str(exc_info.value)

    def test_missing_token_header_is_authentication_error(self, http, cloud, credential):
        cloud.token = ""
        with pytest.raises(AuthenticationError, match="X-Subject-Token"):
            authenticate(http, credential)

    def test_transport_failure_keeps_cause(self, credential):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        with httpx.Client(transport=httpx.MockTransport(refuse)) as http:
            with pytest.raises(TransportError) as exc_info:
                authenticate(http, credential)

        assert isinstance(exc_info.value.cause, httpx.ConnectError)
        assert exc_info.value.__cause__ is exc_info.value.cause

    def test_undecodable_body_is_transport_error(self, http, cloud, credential):
        cloud.auth_broken = True

        with pytest.raises(TransportError) as exc_info:
            authenticate(http, credential)

        assert isinstance(exc_info.value.cause, httpx.DecodingError)
