"""Testing utilities for code built on the VMS client.

``RouteTable`` is a tiny method+path router that produces an
``httpx.MockTransport``; ``make_config`` builds a ready-to-use configuration.

Example:
    ```python
    from vms_client_core import VMSClient
    from vms_client_core.auth import AuthorizerRegistry
    from vms_client_core.testing import RouteTable, make_config

    routes = RouteTable().with_token_auth()
    routes.add("GET", "/api/v5/quotas", [{"id": 1, "name": "q1"}])

    client = VMSClient(make_config(), authorizers=AuthorizerRegistry(), transport=routes.transport())
    quota = await client.quotas.get({"name": "q1"})
    assert routes.calls("GET", "/api/v5/quotas")
    ```
"""

import json
from collections import defaultdict
from typing import Any

import httpx

from vms_client_core.config import VMSConfig

TEST_HOST = "vms.test"


def make_config(**overrides: Any) -> VMSConfig:
    """Configuration for tests: bearer auth against ``vms.test``, unless overridden."""
    values: dict[str, Any] = {"host": TEST_HOST, "username": "admin", "password": "secret"}
    values.update(overrides)
    return VMSConfig(**values)


def _to_response(value: Any) -> httpx.Response:
    if isinstance(value, httpx.Response):
        return value
    if value is None:
        return httpx.Response(204)
    if isinstance(value, tuple):
        status, payload = value
        if payload is None:
            return httpx.Response(status)
        return httpx.Response(status, json=payload)
    return httpx.Response(200, json=value)


class RouteTable:
    """Route requests by (method, path) to canned answers.

    An answer is a JSON-serializable value (200), ``None`` (204), a
    ``(status, json)`` tuple, an ``httpx.Response``, a callable receiving the
    request and returning any of those. Extra answers passed to ``add`` are
    used for later calls, the last one repeating. Unknown routes answer 404.
    """

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], list[Any]] = {}
        self.requests: list[httpx.Request] = []
        self._call_counts: dict[tuple[str, str], int] = defaultdict(int)

    def add(self, method: str, path: str, answer: Any = None, *answers: Any) -> "RouteTable":
        """Register ``answer`` (then ``answers`` for later calls) for ``method path``."""
        self._routes[(method.upper(), path.rstrip("/") or "/")] = [answer, *answers]
        return self

    def with_token_auth(self, access: str = "access-1", refresh: str = "refresh-1") -> "RouteTable":
        """Answer the login and refresh endpoints with fresh token pairs."""
        counter = {"n": 0}

        def issue(request: httpx.Request) -> dict[str, str]:
            counter["n"] += 1
            return {"access": f"{access}-{counter['n']}", "refresh": f"{refresh}-{counter['n']}"}

        self.add("POST", "/api/token", issue)
        self.add("POST", "/api/token/refresh", issue)
        return self

    def with_version(self, version: str, api_version: str = "v5") -> "RouteTable":
        self.add("GET", f"/api/{api_version}/versions", [{"id": 1, "sys_version": version, "status": "success"}])
        return self

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        key = (method.upper(), path.rstrip("/") or "/")
        return [r for r in self.requests if (r.method, r.url.path.rstrip("/") or "/") == key]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path.rstrip("/") or "/")
        answers = self._routes.get(key)
        if answers is None:
            return httpx.Response(404, json={"detail": "Not found."})
        index = min(self._call_counts[key], len(answers) - 1)
        self._call_counts[key] += 1
        answer = answers[index]
        if callable(answer):
            answer = answer(request)
        return _to_response(answer)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


def request_json(request: httpx.Request) -> Any:
    """Decoded JSON body of a recorded request (None when empty)."""
    content = request.content
    return json.loads(content) if content else None


__all__ = ["TEST_HOST", "RouteTable", "make_config", "request_json"]
