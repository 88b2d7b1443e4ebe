"""VMS client: the registry binding resource descriptors to one session."""

import logging
from typing import Any

import httpx

from vms_client_core.auth.authorizers import AuthorizerRegistry, default_registry
from vms_client_core.config import VMSConfig
from vms_client_core.interceptors import InterceptorPipeline
from vms_client_core.locking import KeyLocker
from vms_client_core.records import fill as fill_record
from vms_client_core.resource import RawResource, Resource, ResourceDescriptor
from vms_client_core.resources import CATALOG, TaskResource, VersionResource
from vms_client_core.session import VMSSession

logger = logging.getLogger(__name__)


class VMSClient:
    """Entry point: one session, one locker and a resource handle per descriptor.

    Built-in resources are attributes (``client.quotas``, ``client.vtasks``, ...);
    more are added with ``register``.

    Args:
        config: Client configuration; validated on construction.
        authorizers: Authorizer registry; the process-wide default when omitted.
        transport: Innermost httpx transport (``httpx.MockTransport`` in tests).
            It is used for the token endpoints as well.
        locker: Per-key locker; a fresh one when omitted.

    Raises:
        ValidationError: If the configuration has no host or no credentials.

    Example:
        ```python
        async with VMSClient(VMSConfig(host="vms", api_token="...")) as client:
            quota = await client.quotas.get({"name": "q1"})
        ```
    """

    versions: VersionResource
    vtasks: TaskResource
    raw: RawResource

    def __init__(
        self,
        config: VMSConfig,
        *,
        authorizers: AuthorizerRegistry | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        locker: KeyLocker | None = None,
    ):
        self.config = config.validate()
        self.authorizer = (authorizers or default_registry).resolve(config, transport=transport)
        self.pipeline = InterceptorPipeline(config.before_request_fn, config.after_request_fn)
        self.session = VMSSession(config, self.authorizer, self.pipeline, transport=transport)
        self.locker = locker or KeyLocker()
        self.resources: dict[str, Resource] = {}
        for name, (descriptor, resource_cls) in CATALOG.items():
            self.register(descriptor, resource_cls, name=name)

    def __repr__(self) -> str:
        return f"VMSClient(host={self.config.host!r}, port={self.config.port}, resources={len(self.resources)})"

    def register(
        self,
        descriptor: ResourceDescriptor,
        resource_cls: type[Resource] = Resource,
        name: str | None = None,
    ) -> Resource:
        """Bind ``descriptor`` to this client and return its handle.

        The handle is reachable by resource type through ``client[resource_type]``
        and, when ``name`` is given, as attribute ``client.<name>``.
        """
        resource = resource_cls(self, descriptor)
        self.resources[descriptor.resource_type] = resource
        if name is not None:
            setattr(self, name, resource)
        logger.debug(f"Registered resource {descriptor.resource_type} at {descriptor.path!r}")
        return resource

    def __getitem__(self, resource_type: str) -> Resource:
        return self.resources[resource_type]

    def fill(self, record: Any, target: Any) -> Any:
        """Project a Record with the configured ``fill_fn`` (or the default projection)."""
        return fill_record(record, target, self.config.fill_fn)

    async def aclose(self) -> None:
        await self.session.aclose()

    async def __aenter__(self) -> "VMSClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
