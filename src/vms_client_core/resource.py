"""Resource descriptors and the generic resource handle.

A ``ResourceDescriptor`` is the immutable metadata of one API resource
(path, type name, minimum cluster version, API version override). A
``Resource`` binds a descriptor to a client and exposes the uniform
List/Get/Create/Update/Delete/Ensure/Exists operations. Resource-specific
behaviour is added by subclassing ``Resource`` and overriding the
``before_request``/``after_request`` hooks or adding methods.

Example:
    ```python
    quotas = client.quotas
    quota = await quotas.ensure_by_name("q1", {"path": "/q1"})
    await quotas.update(quota.record_id, {"hard_limit": 1024})
    await quotas.delete({"name": "q1"})
    ```
"""

import io
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from vms_client_core.errors.exceptions import (
    FatalError,
    NotFoundError,
    ResponseDecodeError,
    TooManyRecordsError,
    VMSClientError,
)
from vms_client_core.iterator import ResourceIterator
from vms_client_core.locking import KeyLocker
from vms_client_core.records import EmptyRecord, Record, RecordSet, Result, to_int, to_query
from vms_client_core.versioning import check_version_compat

if TYPE_CHECKING:
    from vms_client_core.client import VMSClient
    from vms_client_core.session import VMSSession

logger = logging.getLogger(__name__)

Params = dict[str, Any]


@dataclass(frozen=True)
class ResourceDescriptor:
    """Immutable metadata of one API resource.

    Attributes:
        path: Path below ``/api/<version>/`` (e.g. ``"quotas"``).
        resource_type: Type name, used as lookup key and as tag on results.
        min_version: Lowest cluster version serving this resource, or None.
        api_version: API version override; empty means the client default.
    """

    path: str
    resource_type: str
    min_version: str | None = None
    api_version: str = ""


def format_id(id_: Any) -> str:
    """Integral numbers (int or integral float) without decoration, everything else verbatim."""
    if isinstance(id_, int | float) and not isinstance(id_, bool):
        try:
            return str(to_int(id_))
        except ValueError:
            pass
    return str(id_)


def build_resource_path(resource_path: str, id_: Any, *segments: str) -> str:
    """``resource_path/id[/segment...]``."""
    parts = [resource_path.rstrip("/"), format_id(id_)]
    parts.extend(s.strip("/") for s in segments if s)
    return "/".join(parts)


class Resource:
    """Generic handle for one resource descriptor."""

    # Results are tagged with resource_type unless a subclass opts out.
    tag_results = True

    def __init__(self, client: "VMSClient", descriptor: ResourceDescriptor):
        self.client = client
        self.descriptor = descriptor

    def __repr__(self) -> str:
        return f"{type(self).__name__}(resource_type={self.resource_type!r}, path={self.path!r})"

    @property
    def resource_type(self) -> str:
        return self.descriptor.resource_type

    @property
    def path(self) -> str:
        return self.descriptor.path

    @property
    def session(self) -> "VMSSession":
        return self.client.session

    @property
    def locker(self) -> KeyLocker:
        return self.client.locker

    # Interceptor hooks; override per resource type.

    def before_request(self, request: httpx.Request, verb: str, url: str, body: io.BytesIO) -> None:
        return None

    def after_request(self, result: Result) -> Result:
        return result

    async def check_version(self) -> None:
        """Fail fast with VersionUnsupportedError when the cluster is too old for this resource."""
        if not self.descriptor.min_version:
            return
        cluster_version = await self.client.versions.get_version()
        check_version_compat(self.resource_type, cluster_version, self.descriptor.min_version)

    def check_path(self, path: str) -> None:
        """Reject paths that still hold a ``{}`` placeholder from a templated descriptor.

        Raises:
            VMSClientError: If ``path`` has an unfilled placeholder.
        """
        if "{}" in path:
            raise VMSClientError(
                f"path '{path}' of resource '{self.resource_type}' has an unfilled placeholder;"
                f" use the {type(self).__name__} methods that take the missing id"
            )

    async def request(
        self,
        verb: str,
        path: str,
        params: Params | str | None = None,
        body: Params | None = None,
        shape: type | None = None,
    ) -> Result:
        """Dispatch one call for this resource and coerce the result to ``shape``.

        Args:
            verb: HTTP method.
            path: Path below the API root.
            params: Query parameters (mapping or pre-encoded string).
            body: JSON body.
            shape: ``Record``, ``RecordSet``, ``EmptyRecord`` or None for no coercion.
        """
        self.check_path(path)
        await self.check_version()
        url = self.session.build_url(path, to_query(params), self.descriptor.api_version)
        result = await self.session.execute(self, verb, url, body)
        return self._coerce(result, shape, verb, url)

    def _coerce(self, result: Result, shape: type | None, verb: str, url: str) -> Result:
        if shape is None or isinstance(result, shape):
            return result
        if shape is RecordSet:
            # Some endpoints answer a query with a single object.
            if isinstance(result, Record):
                return RecordSet() if result.empty else RecordSet([result])
            if isinstance(result, EmptyRecord):
                return RecordSet()
        elif shape is Record:
            if isinstance(result, EmptyRecord):
                return Record()
        elif shape is EmptyRecord:
            # A delete may answer with a body (e.g. an async task); keep it.
            if isinstance(result, Record):
                return EmptyRecord() if result.empty else result
        raise ResponseDecodeError(
            f"unexpected response type for {verb} request to {url}: got {type(result).__name__},"
            f" expected {shape.__name__}; convert the response inside after_request"
        )

    async def list(self, params: Params | str | None = None) -> RecordSet:
        """Records matching ``params``; never raises NotFoundError.

        A paginated endpoint yields its first page only; use ``iter`` for the rest.
        """
        return await self.request("GET", self.path, params=params, shape=RecordSet)

    def iter(self, params: Params | str | None = None, page_size: int | None = None) -> ResourceIterator:
        """Page through the records matching ``params``, following the server's pagination links."""
        return ResourceIterator(self, params, page_size)

    async def get(self, params: Params | str | None = None) -> Record:
        """The single record matching ``params``.

        Raises:
            NotFoundError: No match, or a single fully empty match.
            TooManyRecordsError: More than one match.
        """
        result = await self.list(params)
        if len(result) > 1:
            raise TooManyRecordsError(self.path, params if isinstance(params, dict) else {"query": params})
        if not result or result[0].empty:
            raise NotFoundError(self.path, to_query(params))
        return result[0]

    async def get_by_id(self, id_: Any) -> Record:
        return await self.request("GET", build_resource_path(self.path, id_), shape=Record)

    async def create(self, body: Params | None = None) -> Record:
        return await self.request("POST", self.path, body=body, shape=Record)

    async def update(self, id_: Any, body: Params | None = None) -> Record:
        return await self.request("PATCH", build_resource_path(self.path, id_), body=body, shape=Record)

    async def update_non_id(self, body: Params | None = None) -> Record:
        """PATCH the collection path, for resources keyed by unique fields instead of an id."""
        return await self.request("PATCH", self.path, body=body, shape=Record)

    async def delete(
        self,
        search_params: Params | str | None = None,
        delete_params: Params | None = None,
        query_params: Params | str | None = None,
    ) -> Record | EmptyRecord:
        """Delete the record found by ``search_params``; a missing record is success."""
        try:
            record = await self.get(search_params)
        except NotFoundError:
            logger.debug(f"{self.resource_type} not found for {search_params}, nothing to delete")
            return EmptyRecord()
        if "id" not in record:
            raise VMSClientError(
                f"resource '{self.resource_type}' does not have id field in body and thereby cannot be deleted by id"
            )
        return await self.delete_by_id(record["id"], query_params=query_params, delete_params=delete_params)

    async def delete_by_id(
        self,
        id_: Any,
        query_params: Params | str | None = None,
        delete_params: Params | None = None,
    ) -> Record | EmptyRecord:
        """DELETE ``path/id``; returns EmptyRecord, or the task record when the server answers with one."""
        path = build_resource_path(self.path, id_)
        return await self.request("DELETE", path, params=query_params, body=delete_params, shape=EmptyRecord)

    async def ensure(self, search_params: Params, body: Params | None = None) -> Record:
        """Return the record matching ``search_params``, creating it from ``body`` when missing."""
        try:
            return await self.get(search_params)
        except NotFoundError:
            return await self.create(body)

    async def ensure_by_name(self, name: str, body: Params | None = None) -> Record:
        try:
            return await self.get({"name": name})
        except NotFoundError:
            return await self.create({**(body or {}), "name": name})

    async def exists(self, params: Params | str | None = None) -> bool:
        """True unless the lookup raises NotFoundError (several matches count as existing)."""
        try:
            await self.get(params)
        except NotFoundError:
            return False
        except TooManyRecordsError:
            return True
        return True

    async def must_exists(
        self,
        params: Params | str | None = None,
        on_fatal: Callable[[BaseException], Any] | None = None,
    ) -> bool:
        """Like ``exists`` but any other failure is fatal.

        Meant for setup code. The failure is handed to ``on_fatal`` when given
        (its return value is returned), otherwise it is re-raised as FatalError.
        """
        try:
            return await self.exists(params)
        except Exception as e:
            if on_fatal is not None:
                return on_fatal(e)
            raise FatalError(f"existence check for {self.resource_type} failed: {e}") from e

    def lock(self, *keys: Any):
        """Async context manager serializing work on ``keys`` within this resource type.

        Example:
            ```python
            async with client.quotas.lock("q1"):
                await client.quotas.ensure_by_name("q1", {"path": "/q1"})
            ```
        """
        return self.locker.locked(self.resource_type, *keys)


class RawResource(Resource):
    """Path-only calls outside any descriptor; results are never tagged."""

    tag_results = False

    async def call(self, verb: str, path: str, params: Params | str | None = None, body: Params | None = None) -> Result:
        """Send ``verb`` to ``path`` (relative to the API root, or a full URL)."""
        query = to_query(params)
        if query:
            path = f"{path}{'&' if '?' in path else '?'}{query}"
        url = self.session.path_to_url(path, self.descriptor.api_version)
        return await self.session.execute(self, verb, url, body)

    async def get(self, path: str, params: Params | str | None = None) -> Result:  # type: ignore[override]
        return await self.call("GET", path, params=params)

    async def post(self, path: str, body: Params | None = None) -> Result:
        return await self.call("POST", path, body=body)

    async def put(self, path: str, body: Params | None = None) -> Result:
        return await self.call("PUT", path, body=body)

    async def patch(self, path: str, body: Params | None = None) -> Result:
        return await self.call("PATCH", path, body=body)

    async def delete(self, path: str, body: Params | None = None) -> Result:  # type: ignore[override]
        return await self.call("DELETE", path, body=body)
