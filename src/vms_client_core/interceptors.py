"""Request/response interceptor pipeline.

Hooks run in a fixed order around every request:

before: resource ``before_request`` → global ``before_request_fn``
after:  tag → resource ``after_request`` → global ``after_request_fn``
        → envelope normalization → re-tag

Hooks may be plain functions or coroutines. An exception raised by a
before-hook aborts the call before anything is sent; an exception raised by an
after-hook replaces the otherwise successful result. An after-hook returns the
(possibly replaced) result; returning ``None`` keeps the current one.

Global hooks receive the resource handle as their first argument:

    ```python
    async def before(resource, request, verb, url, body):
        request.headers["X-Trace"] = "1"

    def after(resource, result):
        return result
    ```
"""

import inspect
import io
import json
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import httpx

from vms_client_core.normalize import normalize_envelopes, summarize
from vms_client_core.records import Result, tag_result

if TYPE_CHECKING:
    from vms_client_core.resource import Resource

logger = logging.getLogger(__name__)

BeforeRequestFn = Callable[["Resource", httpx.Request, str, str, io.BytesIO], Any]
AfterRequestFn = Callable[["Resource", Result], Any]


async def _call_hook(fn: Callable[..., Any], *args: Any) -> Any:
    value = fn(*args)
    if inspect.isawaitable(value):
        value = await value
    return value


def _compact_body(body: io.BytesIO) -> str:
    content = body.getvalue().strip()
    if not content or content == b"null":
        return ""
    try:
        return json.dumps(json.loads(content), separators=(",", ":"))
    except ValueError:
        return content.decode(errors="replace")


class InterceptorPipeline:
    """Runs the per-resource and global hooks around each request."""

    def __init__(self, before_fn: BeforeRequestFn | None = None, after_fn: AfterRequestFn | None = None):
        self.before_fn = before_fn
        self.after_fn = after_fn

    async def run_before(
        self,
        resource: "Resource",
        request: httpx.Request,
        verb: str,
        url: str,
        body: io.BytesIO,
    ) -> None:
        logger.info(f"http request start: [{verb}] {url}")
        if logger.isEnabledFor(logging.DEBUG):
            compact = _compact_body(body)
            if compact:
                logger.debug(f"http request body: [{verb}] {url} | body: {compact}")

        await _call_hook(resource.before_request, request, verb, url, body)
        body.seek(0)
        if self.before_fn is not None:
            await _call_hook(self.before_fn, resource, request, verb, url, body)

    async def run_after(self, resource: "Resource", result: Result, unwrap_pages: bool = True) -> Result:
        resource_type = resource.resource_type
        tagging = resource.tag_results
        if tagging:
            tag_result(result, resource_type)

        logger.info(f"http response: {summarize(result)}")
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"http response body:\n{result.pretty_json()}")

        replaced = await _call_hook(resource.after_request, result)
        if replaced is not None:
            result = replaced
        if self.after_fn is not None:
            replaced = await _call_hook(self.after_fn, resource, result)
            if replaced is not None:
                result = replaced

        result = normalize_envelopes(result, unwrap_pages)
        if tagging:
            tag_result(result, resource_type)
        return result
