"""Response normalization.

``decode_response`` collapses an HTTP body into Record, RecordSet or
EmptyRecord. ``normalize_envelopes`` then applies the two reshaping rules
shared by every resource:

- an ``async_task`` field is replaced by the task itself, tagged ``VTask``;
- a pagination envelope (``results`` + ``count`` + ``next`` + ``previous``)
  is unwrapped into a RecordSet of its results (skipped when paging through
  a resource, where ``read_page`` keeps the navigation links).
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from vms_client_core.errors.exceptions import ResponseDecodeError
from vms_client_core.records import RAW_KEY, EmptyRecord, Record, RecordSet, Result

logger = logging.getLogger(__name__)

TASK_RESOURCE_TYPE = "VTask"
ASYNC_TASK_KEY = "async_task"
PAGINATION_KEYS = ("results", "count", "next", "previous")


def _as_record(item: Any) -> Record:
    if isinstance(item, Mapping):
        return Record(item)
    return Record({RAW_KEY: item})


def decode_body(content: bytes, status_code: int = 200) -> Result:
    """Decode raw response bytes into one of the three result shapes.

    Raises:
        ResponseDecodeError: If the body is not valid JSON.
    """
    if status_code == 204 or not content.strip():
        return EmptyRecord()
    try:
        data = json.loads(content)
    except ValueError as e:
        raise ResponseDecodeError(f"failed to decode response body as JSON: {e}") from e

    if data is None:
        return EmptyRecord()
    if isinstance(data, dict):
        return Record(data)
    if isinstance(data, list):
        return RecordSet(_as_record(item) for item in data)
    return Record({RAW_KEY: data})


def decode_response(response: httpx.Response) -> Result:
    return decode_body(response.content, response.status_code)


def unwrap_async_task(record: Record) -> Record:
    """Replace a record holding an ``async_task`` mapping with the task record.

    Raises:
        ResponseDecodeError: If ``async_task`` holds something other than a mapping or null.
    """
    task = record.get(ASYNC_TASK_KEY)
    if task is None:
        return record
    if not isinstance(task, Mapping):
        raise ResponseDecodeError(f"expected a mapping under '{ASYNC_TASK_KEY}', got {type(task).__name__}")
    logger.debug(f"Response carries async task {task.get('id')}")
    return Record(task, resource_type=TASK_RESOURCE_TYPE)


def _pagination_results(envelope: Mapping[str, Any]) -> list[Mapping[str, Any]] | None:
    if not all(key in envelope for key in PAGINATION_KEYS):
        return None
    results = envelope["results"]
    if not isinstance(results, list):
        return None
    if not all(isinstance(item, Mapping) for item in results):
        return None
    return results


def unwrap_pagination(result: Result) -> Result:
    """Promote the ``results`` of a pagination envelope to a top-level RecordSet.

    The envelope is matched on a Record, or on the single element of a
    one-element RecordSet, and only when all four pagination keys are present.
    Anything else is returned unchanged.
    """
    if isinstance(result, Record):
        envelope = result
    elif isinstance(result, RecordSet) and len(result) == 1:
        envelope = result[0]
    else:
        return result

    results = _pagination_results(envelope)
    if results is None:
        return result
    logger.debug(f"Unwrapped pagination envelope with {len(results)} of {envelope.get('count')} results")
    return RecordSet(results)


def normalize_envelopes(result: Result, unwrap_pages: bool = True) -> Result:
    if isinstance(result, Record) and ASYNC_TASK_KEY in result:
        result = unwrap_async_task(result)
    return unwrap_pagination(result) if unwrap_pages else result


@dataclass
class Page:
    """One page of records plus the links to its neighbours.

    ``count`` is the server-side total, or -1 when the server did not say.
    """

    records: RecordSet
    count: int = -1
    next: str | None = None
    previous: str | None = None


def _link(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def read_page(result: Result) -> Page:
    """Split a response into a Page.

    A pagination envelope yields its results and links; any other shape is a
    single page holding everything.

    Raises:
        ResponseDecodeError: If an envelope's ``results`` is not a list of objects.
    """
    if isinstance(result, EmptyRecord):
        return Page(RecordSet(), count=0)

    envelope = result[0] if isinstance(result, RecordSet) and len(result) == 1 else result
    if isinstance(envelope, Record) and all(key in envelope for key in PAGINATION_KEYS):
        results = _pagination_results(envelope)
        if results is None:
            raise ResponseDecodeError("pagination envelope 'results' must be a list of objects")
        count = envelope["count"]
        return Page(
            RecordSet(results),
            count=int(count) if isinstance(count, int | float) and not isinstance(count, bool) else -1,
            next=_link(envelope["next"]),
            previous=_link(envelope["previous"]),
        )

    if isinstance(result, Record):
        records = RecordSet() if result.empty else RecordSet([result])
    else:
        records = result
    return Page(records, count=len(records))


def summarize(result: Result) -> str:
    """One-line description of a result for INFO logging."""
    if isinstance(result, EmptyRecord):
        return "empty result"
    if isinstance(result, RecordSet):
        kind = result.resource_type or "records"
        return f"{len(result)} {kind} record(s)"
    if result.resource_type:
        return f"1 {result.resource_type} record (id={result.get('id')})"
    return f"1 record with {len(result)} field(s)"
