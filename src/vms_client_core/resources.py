"""Built-in resource catalog and resource-specific extensions.

Each entry of ``CATALOG`` becomes an attribute of ``VMSClient``
(``client.quotas``, ``client.vtasks``, ...). Resources that need more than
the generic operations subclass ``Resource``.
"""

import ipaddress
import logging
from typing import Any

from vms_client_core.errors.exceptions import NotFoundError, ResponseDecodeError
from vms_client_core.normalize import TASK_RESOURCE_TYPE, PAGINATION_KEYS
from vms_client_core.records import EmptyRecord, Record, RecordSet, Result
from vms_client_core.resource import RawResource, Resource, ResourceDescriptor, build_resource_path
from vms_client_core.tasks import AsyncTask, RetryPolicy, verify_task_state, wait_for_condition
from vms_client_core.versioning import ClusterVersion, sanitize_version

logger = logging.getLogger(__name__)

BLOCK_MAPPING_TIMEOUT = 60.0


class VersionResource(Resource):
    """Cluster version detection, cached per session."""

    async def get_version(self) -> ClusterVersion:
        """Version of the connected cluster, pre-release tag included (detected once per session).

        Raises:
            NotFoundError: If the cluster reports no successful version.
        """
        session = self.session
        if session.cluster_version is not None:
            return session.cluster_version
        async with session.version_lock:
            if session.cluster_version is None:
                versions = await self.list({"status": "success"})
                if not versions or "sys_version" not in versions[0]:
                    raise NotFoundError(self.path, "status=success")
                raw_version = str(versions[0]["sys_version"])
                sanitized, truncated = sanitize_version(raw_version)
                if truncated:
                    logger.debug(f"Cluster version {raw_version!r} truncated to {sanitized!r}")
                session.cluster_version = ClusterVersion.parse(sanitized)
                logger.info(f"Detected cluster version {session.cluster_version}")
        return session.cluster_version

    async def compare_with(self, other: str | ClusterVersion) -> int:
        """-1, 0 or 1 as the cluster is older than, equal to or newer than ``other``."""
        return (await self.get_version()).compare(other)


class TaskResource(Resource):
    """Server-side asynchronous tasks."""

    async def wait_task(
        self,
        task_id: int,
        timeout: float | None = None,
        policy: RetryPolicy | None = None,
    ) -> Record:
        """Poll task ``task_id`` until it completes.

        Raises:
            TaskFailedError: The task ended in any state other than completed/running.
            TaskTimeoutError: The task was still running when the budget or deadline ran out.
        """
        return await wait_for_condition(self, {"id": task_id}, verify_task_state, timeout=timeout, policy=policy)


class SnapshotResource(Resource):
    """Snapshots; some versions answer a list with a bare ``{"results": [...]}`` body."""

    def after_request(self, result: Result) -> Result:
        if not isinstance(result, Record) or "results" not in result:
            return result
        if all(key in result for key in PAGINATION_KEYS):
            # Left to the shared pagination unwrapping.
            return result
        inner = result["results"]
        if isinstance(inner, list) and all(isinstance(item, dict) for item in inner):
            return RecordSet(inner)
        return result


class UserKeyResource(Resource):
    """S3 access keys of a user; the path template is ``users/{}/access_keys``.

    Only the ``*_key`` methods apply: they fill in the user id. The generic
    operations fail because the path keeps its placeholder.
    """

    def _user_path(self, user_id: Any) -> str:
        return self.path.format(user_id)

    async def create_key(self, user_id: int) -> Record:
        return await self.request("POST", self._user_path(user_id), shape=Record)

    async def enable_key(self, user_id: int, access_key: str) -> Record | EmptyRecord:
        body = {"access_key": access_key, "enabled": True}
        return await self.request("PATCH", self._user_path(user_id), body=body, shape=EmptyRecord)

    async def disable_key(self, user_id: int, access_key: str) -> Record | EmptyRecord:
        body = {"access_key": access_key, "enabled": False}
        return await self.request("PATCH", self._user_path(user_id), body=body, shape=EmptyRecord)

    async def delete_key(self, user_id: int, access_key: str) -> Record | EmptyRecord:
        body = {"access_key": access_key}
        return await self.request("DELETE", self._user_path(user_id), body=body, shape=EmptyRecord)


def expand_ip_ranges(ip_ranges: list[list[str]]) -> list[str]:
    """Expand ``[[start, end], ...]`` IPv4 ranges (inclusive) into single addresses."""
    ips = []
    for ip_range in ip_ranges:
        try:
            start, end = (ipaddress.IPv4Address(ip) for ip in ip_range)
        except ValueError as e:
            raise ResponseDecodeError(f"invalid IP in range: {ip_range}") from e
        ips.extend(str(ipaddress.IPv4Address(n)) for n in range(int(start), int(end) + 1))
    return ips


class VipPoolResource(Resource):
    async def ip_range_for(self, name: str) -> list[str]:
        """Every address of the named VIP pool's ``ip_ranges``."""
        pool = await self.get({"name": name})
        return expand_ip_ranges(pool.get("ip_ranges") or [])


class BlockHostMappingResource(Resource):
    """Volume-to-host mappings, changed in bulk through an async task."""

    async def _bulk_patch_and_wait(self, body: dict[str, Any]) -> Record:
        result = await self.request("PATCH", f"{self.path}/bulk", body=body, shape=Record)
        task = AsyncTask.from_record(result, self.client)
        if task is None:
            return result
        return await task.wait(timeout=BLOCK_MAPPING_TIMEOUT)

    async def map(self, host_id: int, volume_id: int) -> Record:
        return await self._bulk_patch_and_wait({"pairs_to_add": [{"host_id": host_id, "volume_id": volume_id}]})

    async def unmap(self, host_id: int, volume_id: int) -> Record:
        return await self._bulk_patch_and_wait({"pairs_to_remove": [{"host_id": host_id, "volume_id": volume_id}]})

    async def ensure_map(self, host_id: int, volume_id: int) -> Record:
        try:
            return await self.get({"volume__id": volume_id, "block_host__id": host_id})
        except NotFoundError:
            return await self.map(host_id, volume_id)

    async def ensure_unmap(self, host_id: int, volume_id: int) -> Record | EmptyRecord:
        """Unmap when mapped; an absent mapping is success."""
        try:
            await self.get({"volume__id": volume_id, "block_host__id": host_id})
        except NotFoundError:
            return EmptyRecord()
        return await self.unmap(host_id, volume_id)


class ApiTokenResource(Resource):
    async def revoke(self, token_id: str) -> Record | EmptyRecord:
        path = build_resource_path(self.path, token_id, "revoke")
        return await self.request("PATCH", path, shape=EmptyRecord)


class FolderResource(Resource):
    """Filesystem folder operations exposed below ``folders/``."""

    async def create_folder(self, data: dict[str, Any]) -> Record:
        return await self.request("POST", f"{self.path}/create_folder", body=data, shape=Record)

    async def modify_folder(self, data: dict[str, Any]) -> Record:
        return await self.request("PATCH", f"{self.path}/modify_folder", body=data, shape=Record)

    async def delete_folder(self, data: dict[str, Any]) -> Record | EmptyRecord:
        return await self.request("DELETE", f"{self.path}/delete_folder", body=data, shape=EmptyRecord)

    async def stat_path(self, data: dict[str, Any]) -> Record:
        return await self.request("POST", f"{self.path}/stat_path", body=data, shape=Record)

    async def set_read_only(self, data: dict[str, Any]) -> Record:
        return await self.request("POST", f"{self.path}/read_only", body=data, shape=Record)


# attribute name -> (descriptor, handle class)
CATALOG: dict[str, tuple[ResourceDescriptor, type[Resource]]] = {
    "raw": (ResourceDescriptor("", "Raw"), RawResource),
    "versions": (ResourceDescriptor("versions", "Version"), VersionResource),
    "vtasks": (ResourceDescriptor("vtasks", TASK_RESOURCE_TYPE), TaskResource),
    "quotas": (ResourceDescriptor("quotas", "Quota"), Resource),
    "views": (ResourceDescriptor("views", "View"), Resource),
    "vippools": (ResourceDescriptor("vippools", "VipPool"), VipPoolResource),
    "users": (ResourceDescriptor("users", "User"), Resource),
    "user_keys": (ResourceDescriptor("users/{}/access_keys", "UserKey"), UserKeyResource),
    "snapshots": (ResourceDescriptor("snapshots", "Snapshot"), SnapshotResource),
    "block_hosts": (ResourceDescriptor("blockhosts", "BlockHost", "5.3.0"), Resource),
    "volumes": (ResourceDescriptor("volumes", "Volume", "5.3.0"), Resource),
    "block_host_mappings": (
        ResourceDescriptor("blockhostvolumes", "BlockHostMapping", "5.3.0"),
        BlockHostMappingResource,
    ),
    "cnodes": (ResourceDescriptor("cnodes", "Cnode"), Resource),
    "groups": (ResourceDescriptor("groups", "Group"), Resource),
    "tenants": (ResourceDescriptor("tenants", "Tenant"), Resource),
    "non_local_users": (ResourceDescriptor("users/query", "NonLocalUser"), Resource),
    "non_local_groups": (ResourceDescriptor("groups/query", "NonLocalGroup"), Resource),
    "api_tokens": (ResourceDescriptor("apitokens", "ApiToken", "5.3.0"), ApiTokenResource),
    "folders": (ResourceDescriptor("folders", "Folder", "4.7.0"), FolderResource),
    "vms": (ResourceDescriptor("vms", "Vms"), Resource),
}
