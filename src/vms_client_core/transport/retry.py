"""Re-authenticating retry transport.

The VMS answers 401 when a bearer token has been invalidated (server restart,
expired refresh token) and 403 when the access token has merely expired.
``AuthRefreshRetry`` reacts to both transparently:

| Status | Action before re-sending |
|--------|--------------------------|
| 401 | mark the authorizer uninitialized and log in again |
| 403 | refresh the access token |
| other | returned untouched |

At most ``max_retries`` attempts are made in total; the last response is
returned when the budget runs out, so the caller's status handling still sees
the 401/403.

Example:
    ```python
    import httpx
    from vms_client_core.transport.retry import AuthRefreshRetry

    transport = AuthRefreshRetry(
        wrapped_transport=httpx.AsyncHTTPTransport(),
        authorizer=authorizer,
    )
    async with httpx.AsyncClient(transport=transport) as client:
        response = await client.get("https://vms.example.com/api/v5/quotas/")
    ```
"""

import logging
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from vms_client_core.auth.authorizers import Authorizer

logger = logging.getLogger(__name__)


class AuthRefreshRetry(httpx.AsyncBaseTransport):
    """Retry transport that re-authorizes on 401/403 and re-sends the request.

    Args:
        wrapped_transport: The underlying transport to wrap
        authorizer: Authorizer whose headers are rewritten on every retry
        max_retries: Maximum number of attempts in total (default: 3)
    """

    REAUTH_STATUS_CODES: frozenset[int] = frozenset([401, 403])

    def __init__(
        self,
        *,
        wrapped_transport: httpx.AsyncBaseTransport,
        authorizer: "Authorizer",
        max_retries: int = 3,
    ) -> None:
        self._wrapped_transport = wrapped_transport
        self.authorizer = authorizer
        self.max_retries = max_retries

    async def __aenter__(self):
        """Enter async context, delegating to wrapped transport."""
        await self._wrapped_transport.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context, delegating to wrapped transport."""
        return await self._wrapped_transport.__aexit__(exc_type, exc_val, exc_tb)

    async def aclose(self) -> None:
        await self._wrapped_transport.aclose()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Send ``request``, re-authorizing between attempts on 401/403.

        Raises:
            AuthenticationError: If the login or refresh itself is rejected.
        """
        attempt = 1
        while True:
            response = await self._wrapped_transport.handle_async_request(request)
            if response.status_code not in self.REAUTH_STATUS_CODES or attempt >= self.max_retries:
                return response

            relogin = response.status_code == 401
            logger.warning(
                f"Request {request.method} {request.url} failed with {response.status_code}, "
                f"{'logging in again' if relogin else 'refreshing token'} "
                f"(attempt {attempt}/{self.max_retries})"
            )
            await response.aclose()
            await self.authorizer.reauthorize(relogin=relogin)
            request.headers.update(self.authorizer.auth_headers())
            attempt += 1
