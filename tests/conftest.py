"""Pytest configuration and shared fixtures for vms-client-core tests."""

import pytest

from vms_client_core import VMSClient
from vms_client_core.auth import AuthorizerRegistry
from vms_client_core.testing import RouteTable, make_config


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Auto-cleanup: Clear VMS_* and test-related environment variables before each test.

    This prevents test pollution when testing settings resolution.
    """
    import os

    test_prefixes = ("VMS_", "TEST_")

    for key in list(os.environ.keys()):
        if any(key.startswith(prefix) for prefix in test_prefixes):
            monkeypatch.delenv(key, raising=False)

    yield


@pytest.fixture
def routes():
    """Route table answering the token endpoints."""
    return RouteTable().with_token_auth()


@pytest.fixture
def registry():
    """Fresh authorizer registry so cached tokens never leak between tests."""
    return AuthorizerRegistry()


@pytest.fixture
async def client(routes, registry):
    """Client wired to the ``routes`` mock transport."""
    vms = VMSClient(make_config(), authorizers=registry, transport=routes.transport())
    yield vms
    await vms.aclose()
