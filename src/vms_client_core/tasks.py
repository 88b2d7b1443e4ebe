"""Waiting for asynchronous server-side operations.

Mutating calls often answer with an async task instead of the final entity.
The response normalizer turns such answers into ``VTask`` records;
``AsyncTask`` wraps one and polls it until it reaches a terminal state.

Example:
    ```python
    result = await client.block_host_mappings.update_non_id(payload)
    task = AsyncTask.from_record(result, client)
    if task is not None:
        await task.wait(timeout=60)
    ```
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from vms_client_core.errors.exceptions import TaskFailedError, TaskTimeoutError
from vms_client_core.normalize import ASYNC_TASK_KEY, TASK_RESOURCE_TYPE
from vms_client_core.records import Record, to_int

if TYPE_CHECKING:
    from vms_client_core.client import VMSClient
    from vms_client_core.resource import Resource

logger = logging.getLogger(__name__)

TASK_COMPLETED = "completed"
TASK_RUNNING = "running"

VerifyFn = Callable[[Record], bool | Awaitable[bool]]


@dataclass(frozen=True)
class RetryPolicy:
    """Polling budget.

    Attributes:
        attempts: Maximum number of fetches.
        interval: Sleep between fetches, in seconds.
        backoff: Multiplier applied to the interval after each fetch (1.0 keeps it fixed).
        max_interval: Upper bound for the grown interval.
    """

    attempts: int = 30
    interval: float = 0.5
    backoff: float = 1.0
    max_interval: float | None = None

    def intervals(self):
        """Sleep durations between consecutive attempts (``attempts - 1`` of them)."""
        interval = self.interval
        for _ in range(max(self.attempts - 1, 0)):
            yield interval
            interval *= self.backoff
            if self.max_interval is not None:
                interval = min(interval, self.max_interval)


DEFAULT_POLICY = RetryPolicy()


def verify_task_state(record: Record) -> bool:
    """True when completed, False while running; any other state raises TaskFailedError."""
    state = str(record.get("state", "")).lower()
    if state == TASK_COMPLETED:
        return True
    if state == TASK_RUNNING:
        return False

    messages = record.get("messages")
    message = str(messages[-1]) if isinstance(messages, list) and messages else None
    raise TaskFailedError(str(record.get("name", "")), record.get("id"), state, message)


async def _poll(
    resource: "Resource",
    search_params: Mapping[str, Any],
    verify: VerifyFn,
    policy: RetryPolicy,
) -> Record:
    intervals = policy.intervals()
    attempt = 0
    while True:
        attempt += 1
        if "id" in search_params:
            record = await resource.get_by_id(search_params["id"])
        else:
            record = await resource.get(dict(search_params))

        done = verify(record)
        if asyncio.iscoroutine(done):
            done = await done
        if done:
            return record

        delay = next(intervals, None)
        if delay is None:
            raise TaskTimeoutError(
                f"{resource.resource_type} {dict(search_params)} did not reach the expected state"
                f" after {attempt} attempts",
                task_id=search_params.get("id"),
                attempts=attempt,
            )
        logger.debug(f"{resource.resource_type} {dict(search_params)} not ready (attempt {attempt}), retrying in {delay}s")
        await asyncio.sleep(delay)


async def wait_for_condition(
    resource: "Resource",
    search_params: Mapping[str, Any],
    verify: VerifyFn,
    timeout: float | None = None,
    policy: RetryPolicy | None = None,
) -> Record:
    """Poll ``resource`` until ``verify`` accepts the fetched record.

    Args:
        resource: Resource to fetch from; ``get_by_id`` is used when ``id`` is a
            search key, ``get`` otherwise.
        search_params: Lookup parameters.
        verify: Returns True when done, False to poll again; raising aborts the wait.
        timeout: Deadline in seconds for the whole wait, None for no deadline.
        policy: Polling budget (30 attempts, 0.5s apart, by default).

    Raises:
        TaskTimeoutError: The budget ran out or the deadline passed.
    """
    policy = policy or DEFAULT_POLICY
    try:
        async with asyncio.timeout(timeout):
            return await _poll(resource, search_params, verify, policy)
    except TaskTimeoutError:
        raise
    except TimeoutError as e:
        raise TaskTimeoutError(
            f"{resource.resource_type} {dict(search_params)} wait timed out after {timeout}s",
            task_id=search_params.get("id"),
        ) from e


class AsyncTask:
    """Reference to an in-flight server task; waited on at most once."""

    def __init__(self, task_id: int, client: "VMSClient", timeout: float | None = None):
        self.task_id = task_id
        self.client = client
        self.timeout = timeout
        self.record: Record | None = None
        self.error: BaseException | None = None
        self._done = False

    def __repr__(self) -> str:
        return f"AsyncTask(task_id={self.task_id}, done={self._done}, success={self.success})"

    @classmethod
    def from_record(cls, record: Any, client: "VMSClient", timeout: float | None = None) -> "AsyncTask | None":
        """Build a task reference from a VTask record or a record carrying ``async_task``.

        Returns None when ``record`` does not describe a task.
        """
        if not isinstance(record, Record) or record.empty:
            return None
        task_id = None
        if record.resource_type == TASK_RESOURCE_TYPE:
            task_id = record.get("id")
        else:
            nested = record.get(ASYNC_TASK_KEY)
            if isinstance(nested, Mapping):
                task_id = nested.get("id")
        if not task_id:
            return None
        return cls(to_int(task_id), client, timeout=timeout)

    @property
    def done(self) -> bool:
        return self._done

    @property
    def success(self) -> bool:
        return self._done and self.error is None

    async def wait(self, timeout: float | None = None, policy: RetryPolicy | None = None) -> Record:
        """Poll the task until completion; later calls return (or re-raise) the stored outcome.

        Raises:
            TaskFailedError: The task ended in a failure state.
            TaskTimeoutError: The task kept running past the budget or deadline.
        """
        if not self._done:
            try:
                self.record = await self.client.vtasks.wait_task(
                    self.task_id,
                    timeout=timeout if timeout is not None else self.timeout,
                    policy=policy,
                )
            except (TaskFailedError, TaskTimeoutError) as e:
                self.error = e
                self._done = True
                raise
            self._done = True
        if self.error is not None:
            raise self.error
        return self.record
