"""Type-erased payloads: Record, RecordSet and EmptyRecord.

Every response is exactly one of three shapes:

- ``Record``: one entity, an ordered ``str``-keyed mapping.
- ``RecordSet``: a list of Records (an empty list is a normal result).
- ``EmptyRecord``: no body at all (e.g. 204 after a delete).

Records carry a ``resource_type`` tag naming the resource that produced them.
The tag is an attribute, never a key, so it is never sent back to the server.
"""

import dataclasses
import json
from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeVar

import httpx

RAW_KEY = "@raw"

T = TypeVar("T")

FillFn = Callable[["Record", Any], Any]


class Record(dict):
    """One server entity."""

    def __init__(self, *args: Any, resource_type: str | None = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.resource_type = resource_type

    @property
    def empty(self) -> bool:
        return len(self) == 0

    @property
    def record_id(self) -> int:
        """The ``id`` field as an int.

        Raises:
            KeyError: If the record has no ``id``.
            ValueError: If the ``id`` is not integral.
        """
        if "id" not in self:
            raise KeyError(f"record id not found in record {self.pretty_json()}")
        return to_int(self["id"])

    @property
    def record_name(self) -> str:
        if "name" not in self:
            raise KeyError(f"record name not found in record {self.pretty_json()}")
        return str(self["name"])

    @property
    def tenant_id(self) -> int:
        if "tenant_id" not in self:
            raise KeyError(f"record tenant_id not found in record {self.pretty_json()}")
        return to_int(self["tenant_id"])

    @property
    def raw(self) -> Any:
        """The wrapped value of a Record built from a non-object JSON value."""
        return self.get(RAW_KEY)

    def set_missing(self, key: str, value: Any) -> None:
        self.setdefault(key, value)

    def pretty_json(self, indent: int | None = 2) -> str:
        return json.dumps(self, indent=indent, default=str)

    def fill(self, target: Any, fill_fn: FillFn | None = None) -> Any:
        return fill(self, target, fill_fn)

    def copy(self) -> "Record":
        return Record(self, resource_type=self.resource_type)

    def __repr__(self) -> str:
        tag = f"{self.resource_type}" if self.resource_type else "Record"
        return f"{tag}({dict.__repr__(self)})"


class RecordSet(list):
    """Ordered list of Records."""

    def __init__(self, records: Iterable[Mapping[str, Any]] = ()):
        super().__init__(r if isinstance(r, Record) else Record(r) for r in records)

    @property
    def empty(self) -> bool:
        return len(self) == 0

    @property
    def resource_type(self) -> str | None:
        return self[0].resource_type if self else None

    def pretty_json(self, indent: int | None = 2) -> str:
        return json.dumps(self, indent=indent, default=str)

    def fill(self, target: Any, fill_fn: FillFn | None = None) -> list[Any]:
        """Project each Record with ``target`` (a dataclass or factory)."""
        return [fill(record, target, fill_fn) for record in self]


class EmptyRecord:
    """The no-body result shape. Distinct from an empty Record or RecordSet."""

    empty = True
    resource_type: str | None = None

    def pretty_json(self, indent: int | None = 2) -> str:
        return ""

    def __bool__(self) -> bool:
        return False

    def __eq__(self, other: object) -> bool:
        return isinstance(other, EmptyRecord)

    def __hash__(self) -> int:
        return hash(EmptyRecord)

    def __repr__(self) -> str:
        return "EmptyRecord()"


Result = Record | RecordSet | EmptyRecord


def to_int(value: Any) -> int:
    """Coerce an identifier to int (int, integral float or numeric string)."""
    if isinstance(value, bool):
        raise ValueError(f"expected an integer id, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"expected an integer id, got {value!r}")
        return int(value)
    return int(str(value))


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list | tuple):
        return [_query_value(v) for v in value]
    return str(value)


def to_query(params: Mapping[str, Any] | str | None) -> str:
    """Flatten ``params`` into a URL query string.

    Values are stringified one by one (``None`` skipped, booleans as
    ``true``/``false``, lists as repeated keys). A ``str`` is taken as an
    already encoded query and returned verbatim.
    """
    if not params:
        return ""
    if isinstance(params, str):
        return params.lstrip("?")
    flat = {key: _query_value(value) for key, value in params.items() if value is not None}
    return str(httpx.QueryParams(flat))


def to_body(params: Mapping[str, Any] | None) -> bytes:
    """JSON-encode a request body; ``None`` means no body."""
    if params is None:
        return b""
    return json.dumps(params, default=str).encode()


def fill(record: Mapping[str, Any], target: Any, fill_fn: FillFn | None = None) -> Any:
    """Project ``record`` onto a typed object.

    Args:
        record: Source Record.
        target: A dataclass type (unknown keys are ignored) or any callable
            accepting the record's keys as keyword arguments.
        fill_fn: Replacement projection, called as ``fill_fn(record, target)``.
    """
    if fill_fn is not None:
        return fill_fn(record, target)
    data = {k: v for k, v in record.items() if k != RAW_KEY}
    if dataclasses.is_dataclass(target) and isinstance(target, type):
        names = {f.name for f in dataclasses.fields(target) if f.init}
        return target(**{k: v for k, v in data.items() if k in names})
    if callable(target):
        return target(**data)
    raise TypeError(f"cannot fill {type(target).__name__}: expected a dataclass type or a callable")


def tag_result(result: Result, resource_type: str) -> Result:
    """Stamp ``resource_type`` on a Record, or on each Record of a RecordSet.

    Records that are already tagged, and empty Records, are left alone.
    """
    if isinstance(result, Record):
        if result.resource_type is None and not result.empty:
            result.resource_type = resource_type
    elif isinstance(result, RecordSet):
        for record in result:
            if record.resource_type is None and not record.empty:
                record.resource_type = resource_type
    return result
