"""Tests for the VMS client registry."""

from dataclasses import dataclass

import pytest

from vms_client_core import Record, Resource, ResourceDescriptor, VMSClient
from vms_client_core.auth import ApiTokenAuthorizer, AuthorizerRegistry, BearerTokenAuthorizer
from vms_client_core.errors import ValidationError
from vms_client_core.resources import TaskResource, VersionResource
from vms_client_core.testing import RouteTable, make_config


@pytest.mark.unit
def test_client_registers_builtin_resources(client):
    """Built-in resources are reachable as attributes and by resource type."""
    assert isinstance(client.versions, VersionResource)
    assert isinstance(client.vtasks, TaskResource)
    assert client.quotas.path == "quotas"
    assert client["Quota"] is client.quotas
    assert client["VTask"] is client.vtasks


@pytest.mark.unit
def test_client_validates_config_on_construction(registry):
    """Missing credentials fail at construction time."""
    with pytest.raises(ValidationError, match="username/password or api token"):
        VMSClient(make_config(username=None, password=None), authorizers=registry)


@pytest.mark.unit
def test_client_requires_host(registry):
    """A configuration without host is rejected."""
    with pytest.raises(ValidationError, match="host"):
        VMSClient(make_config(host=""), authorizers=registry)


@pytest.mark.unit
def test_client_picks_authorizer_kind(registry):
    """An API token wins over username/password."""
    token_client = VMSClient(make_config(api_token="tkn"), authorizers=registry)
    bearer_client = VMSClient(make_config(), authorizers=registry)

    assert isinstance(token_client.authorizer, ApiTokenAuthorizer)
    assert isinstance(bearer_client.authorizer, BearerTokenAuthorizer)


@pytest.mark.unit
def test_clients_with_equal_configs_share_authorizer():
    """Two independently built configurations resolve to the same cached authorizer."""
    registry = AuthorizerRegistry()

    first = VMSClient(make_config(), authorizers=registry)
    second = VMSClient(make_config(), authorizers=registry)

    assert first.authorizer is second.authorizer
    assert len(registry) == 1


@pytest.mark.unit
async def test_register_custom_resource(client, routes):
    """Collaborators can register extra descriptors and subclasses."""

    class Dns(Resource):
        async def names(self):
            return [r["name"] for r in await self.list()]

    routes.add("GET", "/api/v5/dns", [{"id": 1, "name": "dns1"}])
    dns = client.register(ResourceDescriptor("dns", "Dns"), Dns, name="dns")

    assert client.dns is dns
    assert await dns.names() == ["dns1"]


@pytest.mark.unit
async def test_client_fill_uses_configured_fill_fn(routes, registry):
    """fill() projects records with config.fill_fn when one is set."""
    calls = []

    def fill_fn(record, target):
        calls.append((dict(record), target))
        return "filled"

    client = VMSClient(make_config(fill_fn=fill_fn), authorizers=registry, transport=routes.transport())
    assert client.fill(Record({"id": 1}), object) == "filled"
    assert calls == [({"id": 1}, object)]
    await client.aclose()


@pytest.mark.unit
def test_client_fill_defaults_to_dataclass_projection(client):
    """Without fill_fn, records project onto dataclasses ignoring unknown keys."""

    @dataclass
    class Quota:
        id: int
        name: str

    quota = client.fill(Record({"id": 3, "name": "q3", "hard_limit": 10}), Quota)

    assert quota == Quota(id=3, name="q3")


@pytest.mark.unit
async def test_client_async_context_manager(registry):
    """The client closes its session when used as an async context manager."""
    routes = RouteTable().with_token_auth()
    routes.add("GET", "/api/v5/quotas", [])

    async with VMSClient(make_config(), authorizers=registry, transport=routes.transport()) as client:
        assert await client.quotas.list() == []

    assert client.session._client.is_closed
