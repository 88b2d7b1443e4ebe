"""Error handling utilities for HTTP responses."""

import json

import httpx

from vms_client_core.errors.exceptions import (
    BadRequestError,
    ClientError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TooManyRecordsError,
    TransportError,
    UnauthorizedError,
)
from vms_client_core.errors.models import ErrorDetail

UNREACHABLE_BODY = "server unreachable: verify the host is correct and the network is accessible"


def response_body_text(response: httpx.Response) -> str:
    """Return the response body, pretty-printed when it is JSON."""
    try:
        text = response.text
    except (httpx.ResponseNotRead, UnicodeDecodeError):
        return ""
    try:
        return json.dumps(json.loads(text), indent=2)
    except ValueError:
        return text


def raise_for_status(response: httpx.Response) -> None:
    """Raise the appropriate TransportError subclass for a non-2xx response.

    Args:
        response: HTTP response object

    Raises:
        TransportError subclass based on status code
    """
    if response.is_success:
        return

    status_code = response.status_code
    exception_map = {
        400: BadRequestError,
        401: UnauthorizedError,
        403: ForbiddenError,
        409: ConflictError,
        429: RateLimitError,
    }

    if status_code in exception_map:
        exc_class = exception_map[status_code]
    elif 400 <= status_code < 500:
        exc_class = ClientError
    elif 500 <= status_code < 600:
        exc_class = ServerError
    else:
        exc_class = TransportError

    try:
        request = response.request
        method, url = request.method, str(request.url)
    except RuntimeError:
        # Response built without a request (tests, hand-made responses)
        method, url = "<unknown method>", "<unknown URL>"

    kwargs = {
        "method": method,
        "url": url,
        "status_code": status_code,
        "body": response_body_text(response),
        "response": response,
        "detail": ErrorDetail.from_response(response),
    }

    if exc_class is RateLimitError:
        retry_after = None
        if "retry-after" in response.headers:
            try:
                retry_after = int(response.headers["retry-after"])
            except (ValueError, TypeError):
                retry_after = None
        raise RateLimitError(retry_after=retry_after, **kwargs)

    raise exc_class(**kwargs)


def unreachable_error(method: str, url: str, cause: Exception) -> TransportError:
    """Build the error used when no HTTP response was received at all."""
    return TransportError(
        f"failed to perform {method} request to {url}: {cause}",
        method=method,
        url=url,
        status_code=0,
        body=UNREACHABLE_BODY,
    )


def is_transport_error(err: BaseException | None) -> bool:
    """True for any HTTP-level failure, including the unreachable case (status 0)."""
    return isinstance(err, TransportError)


def is_not_found(err: BaseException | None) -> bool:
    """True when ``err`` is a lookup miss (not an HTTP 404)."""
    return isinstance(err, NotFoundError)


def is_too_many_records(err: BaseException | None) -> bool:
    return isinstance(err, TooManyRecordsError)


def ignore_status_codes(err: BaseException | None, *codes: int) -> BaseException | None:
    """Return None if ``err`` is a TransportError with one of ``codes``, else ``err``."""
    if isinstance(err, TransportError) and err.status_code in codes:
        return None
    return err


def expect_status_codes(err: BaseException | None, *codes: int) -> bool:
    """True when ``err`` is a TransportError whose status is one of ``codes``."""
    return isinstance(err, TransportError) and err.status_code in codes


async def ignore_not_found(awaitable):
    """Await ``awaitable`` and return None instead of raising NotFoundError.

    Example:
        ```python
        quota = await ignore_not_found(client.quotas.get({"name": "q1"}))
        ```
    """
    try:
        return await awaitable
    except NotFoundError:
        return None
