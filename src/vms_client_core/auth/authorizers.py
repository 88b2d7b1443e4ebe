"""Authorizers: cached credential holders that produce auth headers.

Two kinds exist:

- ``BearerTokenAuthorizer`` logs in with username/password against
  ``/api/token/`` and afterwards refreshes against ``/api/token/refresh/``.
- ``ApiTokenAuthorizer`` emits a static ``Api-Token`` header and never
  touches the network.

``AuthorizerRegistry`` keeps exactly one authorizer per distinct
(host, port, TLS policy, tenant, credentials) tuple, so independent
clients pointing at the same cluster with the same credentials share one
live token.

Example:
    ```python
    registry = AuthorizerRegistry()
    authorizer = registry.resolve(config)
    await authorizer.ensure_initialized()
    headers = authorizer.auth_headers()
    ```
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from threading import Lock
from typing import TYPE_CHECKING, Any

import httpx

from vms_client_core.auth.exceptions import AuthenticationError
from vms_client_core.errors.exceptions import ValidationError
from vms_client_core.errors.handler import response_body_text

if TYPE_CHECKING:
    from vms_client_core.config import VMSConfig

logger = logging.getLogger(__name__)

TOKEN_PATH = "api/token/"
TOKEN_REFRESH_PATH = "api/token/refresh/"
TENANT_HEADER = "X-Tenant-Name"
AUTH_TIMEOUT = 20.0


class Authorizer(ABC):
    """Shared capability set of every authorizer kind."""

    def __init__(self, *, host: str, port: int, ssl_verify: bool, tenant: str | None = None):
        self.host = host
        self.port = port
        self.ssl_verify = ssl_verify
        self.tenant = tenant
        self.initialized = False
        self._authorize_lock = asyncio.Lock()

    @abstractmethod
    async def authorize(self) -> None:
        """Obtain (or refresh) credential material."""

    @abstractmethod
    def auth_headers(self) -> dict[str, str]:
        """Headers that authenticate a request."""

    @abstractmethod
    def identity(self) -> tuple[Any, ...]:
        """Connection and credential fields compared for cache lookup (never live tokens)."""

    def set_initialized(self, state: bool) -> None:
        self.initialized = state

    async def ensure_initialized(self) -> None:
        """Authorize once if nothing has been obtained yet."""
        if self.initialized:
            return
        async with self._authorize_lock:
            if not self.initialized:
                await self.authorize()

    async def reauthorize(self, *, relogin: bool = False) -> None:
        """Refresh the credential; with ``relogin`` start over with a full login."""
        async with self._authorize_lock:
            if relogin:
                self.set_initialized(False)
            await self.authorize()

    def _tenant_headers(self) -> dict[str, str]:
        return {TENANT_HEADER: self.tenant} if self.tenant else {}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Authorizer) or type(other) is not type(self):
            return NotImplemented
        return self.identity() == other.identity()

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.identity()))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(host={self.host!r}, port={self.port}, initialized={self.initialized})"


@dataclass(frozen=True)
class BearerToken:
    """Access/refresh token pair; replaced as a whole on every refresh."""

    access: str
    refresh: str


class BearerTokenAuthorizer(Authorizer):
    """Username/password login producing ``Authorization: Bearer <access>``."""

    def __init__(
        self,
        *,
        host: str,
        port: int,
        ssl_verify: bool,
        username: str,
        password: str,
        tenant: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(host=host, port=port, ssl_verify=ssl_verify, tenant=tenant)
        self.username = username
        self.password = password
        self.token: BearerToken | None = None
        self._transport = transport

    @property
    def base_url(self) -> str:
        return f"https://{self.host}:{self.port}"

    def identity(self) -> tuple[Any, ...]:
        return (self.host, self.port, self.ssl_verify, self.tenant, self.username, self.password)

    async def authorize(self) -> None:
        """Log in on first use, refresh on every later use.

        Raises:
            AuthenticationError: If the token endpoint answers with a non-2xx status
                or cannot be reached.
        """
        if self.initialized and self.token is not None:
            path, payload = TOKEN_REFRESH_PATH, {"refresh": self.token.refresh}
        else:
            path, payload = TOKEN_PATH, {"username": self.username, "password": self.password}
        url = f"{self.base_url}/{path}"

        client = httpx.AsyncClient(
            transport=self._transport,
            verify=self.ssl_verify,
            timeout=AUTH_TIMEOUT,
            follow_redirects=False,
        )
        try:
            response = await client.post(url, json=payload, headers=self._tenant_headers())
        except httpx.HTTPError as e:
            raise AuthenticationError(f"failed to reach token endpoint {url}: {e}", url=url) from e
        finally:
            # A shared transport belongs to the caller and stays open.
            if self._transport is None:
                await client.aclose()

        if not response.is_success:
            raise AuthenticationError(
                f"POST request to {url} returned status code {response.status_code}",
                url=url,
                status_code=response.status_code,
                body=response_body_text(response),
            )
        try:
            data = response.json()
            token = BearerToken(access=data["access"], refresh=data.get("refresh") or "")
        except (ValueError, KeyError, TypeError) as e:
            raise AuthenticationError(f"unexpected token response from {url}: {e}", url=url) from e

        self.token = token
        self.initialized = True
        logger.debug(f"Obtained bearer token for {self.username}@{self.host} via {path}")

    def auth_headers(self) -> dict[str, str]:
        headers = self._tenant_headers()
        if self.token is not None:
            headers["Authorization"] = f"Bearer {self.token.access}"
        return headers


class ApiTokenAuthorizer(Authorizer):
    """Static API token producing ``Authorization: Api-Token <token>``."""

    def __init__(self, *, host: str, port: int, ssl_verify: bool, token: str, tenant: str | None = None):
        super().__init__(host=host, port=port, ssl_verify=ssl_verify, tenant=tenant)
        self.token = token

    def identity(self) -> tuple[Any, ...]:
        return (self.host, self.port, self.ssl_verify, self.tenant, self.token)

    async def authorize(self) -> None:
        self.initialized = True

    def set_initialized(self, state: bool) -> None:
        # A static token never needs a login.
        self.initialized = True

    def auth_headers(self) -> dict[str, str]:
        headers = self._tenant_headers()
        headers["Authorization"] = f"Api-Token {self.token}"
        return headers


def build_authorizer(config: "VMSConfig", transport: httpx.AsyncBaseTransport | None = None) -> Authorizer:
    """Pick the authorizer kind from the populated credential fields.

    A static API token wins over username/password.

    Raises:
        ValidationError: If neither kind of credential is provided.
    """
    common = {
        "host": config.host,
        "port": config.port,
        "ssl_verify": config.ssl_verify,
        "tenant": config.tenant,
    }
    if config.api_token:
        return ApiTokenAuthorizer(token=config.api_token, **common)
    if config.username and config.password:
        return BearerTokenAuthorizer(
            username=config.username,
            password=config.password,
            transport=transport,
            **common,
        )
    raise ValidationError("either username/password or api token must be provided")


class AuthorizerRegistry:
    """Access-synchronized cache of authorizers, reused by equality."""

    def __init__(self) -> None:
        self._authorizers: list[Authorizer] = []
        self._lock = Lock()

    def resolve(self, config: "VMSConfig", transport: httpx.AsyncBaseTransport | None = None) -> Authorizer:
        """Return the cached authorizer equal to the one ``config`` describes, creating it if needed."""
        candidate = build_authorizer(config, transport=transport)
        with self._lock:
            for existing in self._authorizers:
                if existing == candidate:
                    return existing
            self._authorizers.append(candidate)
        logger.debug(f"Registered new {type(candidate).__name__} for {config.host}:{config.port}")
        return candidate

    def clear(self) -> None:
        with self._lock:
            self._authorizers.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._authorizers)


# Process-wide registry used by clients that are not given their own.
default_registry = AuthorizerRegistry()
