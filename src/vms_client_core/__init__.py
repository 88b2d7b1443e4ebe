"""VMS Client Core - asyncio engine for the VMS resource-oriented REST API.

This library provides:
- A resource registry with uniform List/Get/Create/Update/Delete/Ensure/Exists operations
- A before/after interceptor pipeline with per-resource and global hooks
- Response normalization into Record / RecordSet / EmptyRecord, unwrapping
  pagination and async-task envelopes
- Page-by-page iteration over paginated list endpoints
- An async task waiter, a per-key locker and cached, self-refreshing authorizers

Example:
    ```python
    from vms_client_core import VMSClient, VMSConfig

    config = VMSConfig.from_env()
    async with VMSClient(config) as client:
        view = await client.views.ensure({"path": "/data"}, {"path": "/data", "policy_id": 1})
        if await client.quotas.exists({"name": "q1"}):
            await client.quotas.delete({"name": "q1"})
    ```
"""

from vms_client_core._version import __version__
from vms_client_core.client import VMSClient
from vms_client_core.config import VMSConfig
from vms_client_core.iterator import ResourceIterator
from vms_client_core.locking import KeyLocker
from vms_client_core.records import EmptyRecord, Record, RecordSet
from vms_client_core.resource import RawResource, Resource, ResourceDescriptor
from vms_client_core.tasks import AsyncTask, RetryPolicy, wait_for_condition

__all__ = [
    "AsyncTask",
    "EmptyRecord",
    "KeyLocker",
    "RawResource",
    "Record",
    "RecordSet",
    "Resource",
    "ResourceDescriptor",
    "ResourceIterator",
    "RetryPolicy",
    "VMSClient",
    "VMSConfig",
    "__version__",
    "wait_for_condition",
]
