"""Unit tests for the health probe and the ACTIVE gate."""

import httpx
import pytest
from conftest import flavor_json, server_json

from nova_cloudctl.client import CloudControlClient
from nova_cloudctl.errors import InstanceNotActive
from nova_cloudctl.openstack.models import Credential


def _serve(cloud, status):
    cloud.add("GET", "/compute/v2.1/servers/srv-1", body={"server": server_json("srv-1", status=status)})
    cloud.add("GET", "/compute/v2.1/flavors/m1.small", body={"flavor": flavor_json()})


class TestCheckHealth:
    def test_active_instance_is_healthy(self, client, cloud, credential):
        _serve(cloud, "ACTIVE")

        res = client.check_health(credential, "srv-1")

        assert res.healthy is True
        assert res.status == "ACTIVE"
        assert res.response_time_ms >= 0
        assert res.checked_at.tzinfo is not None

    def test_stopped_instance_is_unhealthy_with_status_in_message(self, client, cloud, credential):
        _serve(cloud, "STOPPED")

        res = client.check_health(credential, "srv-1")

        assert res.healthy is False
        assert res.status == "STOPPED"
        assert "STOPPED" in res.message

    def test_auth_failure_becomes_negative_result(self, client, cloud, credential):
        cloud.auth_status = 401

        res = client.check_health(credential, "srv-1")

        assert res.healthy is False
        assert res.status == "ERROR"
        assert res.message.startswith("authentication failed")
        assert "401" in res.message

    def test_missing_secret_becomes_negative_result(self, client, cloud):
        cred = Credential(endpoint="http://cloud.test", application_credential_id="cred-id")

        res = client.check_health(cred, "srv-1")

        assert res.healthy is False
        assert res.message.startswith("authentication failed")
        assert cloud.requests == []

    def test_lookup_failure_becomes_negative_result(self, client, cloud, credential):
        res = client.check_health(credential, "does-not-exist")

        assert res.healthy is False
        assert res.status == "ERROR"
        assert res.message.startswith("instance lookup failed")

    def test_transport_failure_becomes_negative_result(self, credential):
        def timeout(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with httpx.Client(transport=httpx.MockTransport(timeout)) as http:
            res = CloudControlClient(http=http).check_health(credential, "srv-1")

        assert res.healthy is False
        assert "timed out" in res.message

    def test_undecodable_auth_body_becomes_negative_result(self, client, cloud, credential):
        cloud.auth_broken = True

        res = client.check_health(credential, "srv-1")

        assert res.healthy is False
        assert res.status == "ERROR"
        assert res.message.startswith("authentication failed")

    def test_undecodable_server_body_becomes_negative_result(self, client, cloud, credential):
        cloud.add("GET", "/compute/v2.1/servers/srv-1", broken=True)

        res = client.check_health(credential, "srv-1")

        assert res.healthy is False
        assert res.status == "ERROR"
        assert res.message.startswith("instance lookup failed")

    def test_redirect_loop_becomes_negative_result(self, credential):
        def loop(request):
            return httpx.Response(302, headers={"Location": str(request.url)})

        with httpx.Client(transport=httpx.MockTransport(loop), follow_redirects=True) as http:
            res = CloudControlClient(http=http).check_health(credential, "srv-1")

        assert res.healthy is False
        assert res.message.startswith("authentication failed")


class TestEnsureActive:
    def test_returns_active_instance(self, client, cloud, credential):
        _serve(cloud, "ACTIVE")
        assert client.ensure_active(credential, "srv-1").id == "srv-1"

    def test_rejects_inactive_instance(self, client, cloud, credential):
        _serve(cloud, "SHUTOFF")

        with pytest.raises(InstanceNotActive) as exc_info:
            client.ensure_active(credential, "srv-1")

        assert exc_info.value.status == "SHUTOFF"
