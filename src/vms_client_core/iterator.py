"""Page-by-page traversal of list endpoints.

``Resource.list`` returns only what one request yields; a paginated endpoint
answers with the first page and links to the rest. ``ResourceIterator``
follows those links.

Example:
    ```python
    pages = client.quotas.iter({"tenant_id": 1}, page_size=100)
    async for records in pages:
        for quota in records:
            print(quota["name"])

    everything = await client.quotas.iter().all()
    ```

Endpoints that do not paginate behave as a single page.
"""

import logging
from typing import TYPE_CHECKING, Any

from vms_client_core.normalize import Page, read_page
from vms_client_core.records import RecordSet, tag_result, to_query

if TYPE_CHECKING:
    from vms_client_core.resource import Resource

logger = logging.getLogger(__name__)


def _with_page_size(query: str, page_size: int) -> str:
    if page_size <= 0 or "page_size=" in query:
        return query
    extra = f"page_size={page_size}"
    return f"{query}&{extra}" if query else extra


class ResourceIterator:
    """Cursor over the pages of one resource query.

    Args:
        resource: Resource handle to page through.
        params: Query parameters (mapping or pre-encoded string).
        page_size: ``page_size`` sent with the first request; None or 0 falls
            back to ``VMSConfig.page_size`` (0 there sends nothing).

    Attributes:
        current: Records of the page last fetched.
        count: Total number of records reported by the server, -1 until known.
        page_number: Zero-based index of the current page.
    """

    def __init__(self, resource: "Resource", params: dict[str, Any] | str | None = None, page_size: int | None = None):
        self.resource = resource
        self.page_size = page_size if page_size and page_size > 0 else resource.session.config.page_size
        self._query = _with_page_size(to_query(params), self.page_size)
        self._clear()

    def _clear(self) -> None:
        self.current = RecordSet()
        self.count = -1
        self.page_number = 0
        self._started = False
        self._next: str | None = None
        self._previous: str | None = None

    def __repr__(self) -> str:
        return (
            f"ResourceIterator(resource_type={self.resource.resource_type!r}, page={self.page_number},"
            f" page_size={self.page_size}, count={self.count}, current={len(self.current)} record(s),"
            f" next={self._next!r}, previous={self._previous!r})"
        )

    @property
    def has_next(self) -> bool:
        """True before the first fetch, then whenever the server linked a next page."""
        return not self._started or self._next is not None

    @property
    def has_previous(self) -> bool:
        return self._started and self._previous is not None

    async def _fetch(self, url: str) -> RecordSet:
        session = self.resource.session
        url = session.path_to_url(url, self.resource.descriptor.api_version)
        result = await session.execute(self.resource, "GET", url, unwrap_pages=False)
        page: Page = read_page(result)
        if self.resource.tag_results:
            tag_result(page.records, self.resource.resource_type)

        self._started = True
        self.current = page.records
        self.count = page.count
        self._next = page.next
        self._previous = page.previous
        logger.debug(
            f"Fetched {len(page.records)} {self.resource.resource_type} record(s) from {url}, count={page.count}"
        )
        return self.current

    async def next_page(self) -> RecordSet:
        """Fetch the first page, then each following one; an empty RecordSet once exhausted."""
        if not self._started:
            self.resource.check_path(self.resource.path)
            await self.resource.check_version()
            first = self.resource.session.build_url(
                self.resource.path, self._query, self.resource.descriptor.api_version
            )
            return await self._fetch(first)
        if self._next is None:
            return RecordSet()
        records = await self._fetch(self._next)
        self.page_number += 1
        return records

    async def previous_page(self) -> RecordSet:
        """Step back one page; an empty RecordSet on the first page.

        Raises:
            RuntimeError: If no page has been fetched yet.
        """
        if not self._started:
            raise RuntimeError("iterator not started, call next_page() first")
        if self._previous is None:
            return RecordSet()
        records = await self._fetch(self._previous)
        self.page_number -= 1
        return records

    async def reset(self) -> RecordSet:
        """Forget the position and fetch the first page again."""
        self._clear()
        return await self.next_page()

    async def all(self) -> RecordSet:
        """The current page (fetching the first one if needed) plus every page after it."""
        collected = RecordSet(await self.next_page()) if not self._started else RecordSet(self.current)
        while self._next is not None:
            collected.extend(await self.next_page())
        return collected

    def __aiter__(self) -> "ResourceIterator":
        return self

    async def __anext__(self) -> RecordSet:
        if not self.has_next:
            raise StopAsyncIteration
        return await self.next_page()
