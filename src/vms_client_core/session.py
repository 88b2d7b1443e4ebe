"""HTTP session shared by every resource of a client.

``VMSSession`` owns the ``httpx.AsyncClient`` (and through it the
re-authenticating transport), builds ``https://host:port/api/<ver>/...``
URLs, runs one request through the interceptor pipeline and caches the
detected cluster version for the lifetime of the connection.
"""

import asyncio
import io
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

import httpx

from vms_client_core.errors.handler import raise_for_status, unreachable_error
from vms_client_core.normalize import decode_response
from vms_client_core.records import Result, to_body, to_query
from vms_client_core.transport import create_transport

if TYPE_CHECKING:
    from vms_client_core.auth.authorizers import Authorizer
    from vms_client_core.config import VMSConfig
    from vms_client_core.interceptors import InterceptorPipeline
    from vms_client_core.resource import Resource
    from vms_client_core.versioning import ClusterVersion

logger = logging.getLogger(__name__)

APPLICATION_JSON = "application/json"
HTTP_VERBS = frozenset(["GET", "POST", "PUT", "PATCH", "DELETE"])


class VMSSession:
    """One logical connection to a VMS.

    Args:
        config: Validated configuration.
        authorizer: Authorizer supplying auth headers.
        pipeline: Interceptor pipeline run around each request.
        transport: Innermost transport (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        config: "VMSConfig",
        authorizer: "Authorizer",
        pipeline: "InterceptorPipeline",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.authorizer = authorizer
        self.pipeline = pipeline
        self._client = httpx.AsyncClient(
            transport=create_transport(config, authorizer, wrapped_transport=transport),
            timeout=config.timeout,
            follow_redirects=False,
            headers={
                "Accept": APPLICATION_JSON,
                "Content-Type": APPLICATION_JSON,
                "User-Agent": config.user_agent,
            },
        )
        self.cluster_version: ClusterVersion | None = None
        self.version_lock = asyncio.Lock()

    @property
    def base_url(self) -> str:
        return f"https://{self.config.host}:{self.config.port}"

    def build_url(self, path: str, query: str = "", api_version: str = "") -> str:
        """``https://host:port/api/<api_version>/<path>[?query]``; the path is trimmed of slashes."""
        version = api_version or self.config.api_version
        url = f"{self.base_url}/api/{version}/{path.strip('/')}".rstrip("/")
        if query:
            url = f"{url}?{query}"
        return url

    def path_to_url(self, path_or_url: str, api_version: str = "") -> str:
        """Expand a relative path (optionally carrying a query) to a full URL; full URLs pass through."""
        if urlsplit(path_or_url).scheme:
            return path_or_url
        path, _, query = path_or_url.partition("?")
        return self.build_url(path, query, api_version)

    async def execute(
        self,
        resource: "Resource",
        verb: str,
        url: str,
        body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        unwrap_pages: bool = True,
    ) -> Result:
        """Send one request and return the normalized result.

        With ``unwrap_pages=False`` a pagination envelope is returned as is, so
        the caller can follow its ``next``/``previous`` links.

        Raises:
            TransportError: Non-2xx response, or no response at all (status 0).
            ResponseDecodeError: Body is not valid JSON.
        """
        verb = verb.upper()
        if verb not in HTTP_VERBS:
            raise ValueError(f"unknown verb: {verb}")
        url = self.path_to_url(url)

        await self.authorizer.ensure_initialized()
        content = to_body(body)
        request = self._client.build_request(
            verb,
            url,
            content=content or None,
            headers={**self.authorizer.auth_headers(), **(headers or {})},
        )
        await self.pipeline.run_before(resource, request, verb, url, io.BytesIO(content))

        try:
            response = await self._client.send(request)
        except httpx.HTTPError as e:
            raise unreachable_error(verb, url, e) from e

        raise_for_status(response)
        result = decode_response(response)
        return await self.pipeline.run_after(resource, result, unwrap_pages)

    async def aclose(self) -> None:
        await self._client.aclose()
