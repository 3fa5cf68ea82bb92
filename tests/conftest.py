"""Shared fixtures: a fake keystone + nova served through httpx.MockTransport."""

import json

import httpx
import pytest

from nova_cloudctl.client import CloudControlClient
from nova_cloudctl.openstack.models import Credential

ENDPOINT = "http://cloud.test"


def server_json(server_id="srv-1", name="worker-1", status="ACTIVE", flavor_id="m1.small"):
    return {
        "id": server_id,
        "name": name,
        "status": status,
        "flavor": {"id": flavor_id},
        "addresses": {
            "private": [
                {"addr": "10.0.0.5", "OS-EXT-IPS:type": "fixed", "version": 4},
                {"addr": "172.24.4.10", "OS-EXT-IPS:type": "floating", "version": 4},
            ]
        },
        "OS-EXT-STS:power_state": 1,
        "OS-EXT-AZ:availability_zone": "nova",
        "created": "2024-05-01T10:00:00Z",
        "updated": "2024-05-02T11:30:00Z",
    }


def broken_gzip(status=200, headers=None):
    """A response claiming gzip encoding whose body is not gzip."""
    return httpx.Response(
        status,
        headers={"Content-Encoding": "gzip", **(headers or {})},
        stream=httpx.ByteStream(b"not gzip"),
    )


def flavor_json(flavor_id="m1.small", name="m1.small", vcpus=1, ram=2048, disk=20):
    return {"id": flavor_id, "name": name, "vcpus": vcpus, "ram": ram, "disk": disk}


class FakeCloud:
    """Routes requests by (method, path); records every request it sees."""

    def __init__(self, token="abc"):
        self.token = token
        self.auth_status = 201
        self.auth_broken = False
        self.routes = {}
        self.requests = []

    def add(self, method, path, status=200, body=None, raw=None, broken=False):
        self.routes[(method, path)] = (status, body, raw, broken)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path == "/identity/v3/auth/tokens":
            headers = {"X-Subject-Token": self.token} if self.token else {}
            if self.auth_broken:
                return broken_gzip(self.auth_status, headers)
            return httpx.Response(self.auth_status, headers=headers, json={"token": {}})

        if request.headers.get("X-Auth-Token") != self.token:
            return httpx.Response(401, json={"error": "unauthorized"})

        status, body, raw, broken = self.routes.get((request.method, path), (404, {"itemNotFound": {}}, None, False))
        if broken:
            return broken_gzip(status)
        if raw is not None:
            return httpx.Response(status, content=raw)
        return httpx.Response(status, content=json.dumps(body).encode())

    def paths(self):
        return [(r.method, r.url.path) for r in self.requests]


@pytest.fixture
def credential():
    return Credential(
        endpoint=ENDPOINT + "/",
        application_credential_id="cred-id",
        application_credential_secret="cred-secret",
        owner_id="participant-7",
    )


@pytest.fixture
def cloud():
    return FakeCloud()


@pytest.fixture
def http(cloud):
    with httpx.Client(transport=httpx.MockTransport(cloud.handler)) as client:
        yield client


@pytest.fixture
def client(http):
    return CloudControlClient(http=http)
