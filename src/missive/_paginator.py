"""
Pagination over Missive list endpoints.

Missive list endpoints paginate in one of two ways:

- **offset style**: the response echoes `offset` and `limit`, and the next
  page is requested with `offset + limit` (contacts, users, teams, ...);
- **until style**: the next page is requested with `until=<timestamp>`,
  taken from an explicit `next.until` field or from the last item of the
  page (conversations, messages, comments).

The style is detected from the first page and kept for the whole iteration.

Example:
    >>> paginator = Paginator()
    >>> for contact in paginator.each_item("/contacts", connection, {"limit": 200}, data_key="contacts"):
    ...     print(contact["id"])
"""

import logging
import time
from collections.abc import Iterator
from typing import Any, Protocol
from urllib.parse import urlencode

from missive._errors import MissiveError
from missive._instrumentation import PAGINATOR_PAGE, Instrumenter

logger = logging.getLogger(__name__)

OFFSET = "offset"
UNTIL = "until"

DEFAULT_OFFSET_LIMIT = 50
DEFAULT_UNTIL_LIMIT = 25

OFFSET_ITEM_KEYS = (
    "data",
    "contacts",
    "contact_books",
    "contact_groups",
    "organizations",
    "responses",
    "shared_labels",
    "teams",
    "users",
)
UNTIL_ITEM_KEYS = ("data", "conversations", "messages", "comments")


class Transport(Protocol):
    """Anything that can issue a request and return its parsed body (e.g. `Connection`)."""

    def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: Any = None,
    ) -> Any: ...


def _find_items(page: dict[str, Any], keys: tuple[str, ...]) -> list[Any]:
    for key in keys:
        items = page.get(key)
        if items is not None:
            return items
    return []


def _page_url(path: str, params: dict[str, Any]) -> str:
    return f"{path}?{urlencode(params)}" if params else path


class Paginator:
    """
    Walks paginated collections through a transport.

    Both operations are generators: nothing is fetched until iteration starts,
    and breaking out of the loop stops further requests. Errors raised by the
    transport propagate unchanged.

    Args:
        instrumenter: Where `missive.paginator.page` events are published.
            Falls back to the transport's own instrumenter, if it has one.
    """

    def __init__(self, instrumenter: Instrumenter | None = None):
        self.instrumenter = instrumenter

    def _emit_page(self, transport: Transport, page_number: int, url: str) -> None:
        instrumenter = self.instrumenter or getattr(transport, "instrumenter", None)
        if instrumenter is not None:
            instrumenter.emit(PAGINATOR_PAGE, {"page_number": page_number, "url": url})

    def each_page(
        self,
        path: str,
        transport: Transport,
        params: dict[str, Any] | None = None,
        *,
        max_pages: int | None = None,
        max_offset: int | None = None,
        sleep_interval: float = 0,
    ) -> Iterator[dict[str, Any]]:
        """
        Yield each page (the raw parsed body) of a collection.

        Args:
            path: Collection path, relative to the API base URL.
            transport: Issues the GET requests.
            params: Query parameters of the first request.
            max_pages: Stop after this many pages.
            max_offset: Offset style only. Never request an offset past this.
            sleep_interval: Seconds to sleep between two page fetches.
        """
        current_params = dict(params or {})
        requested_limit = current_params.get("limit")
        style: str | None = None
        page_number = 1

        while True:
            if max_pages is not None and page_number > max_pages:
                return

            self._emit_page(transport, page_number, _page_url(path, current_params))
            page = transport.request("GET", path, params=dict(current_params))
            if not isinstance(page, dict):
                raise MissiveError(f"Unexpected page body for {path}: {type(page).__name__}")

            if style is None:
                style = OFFSET if "offset" in page and "limit" in page else UNTIL
                logger.debug(f"Paginating {path} using {style} style")

            yield page

            if style == OFFSET:
                next_params = self._next_offset_params(page, current_params, max_offset)
            else:
                next_params = self._next_until_params(page, current_params, requested_limit)

            if next_params is None:
                return
            current_params = next_params

            page_number += 1
            if sleep_interval > 0:
                time.sleep(sleep_interval)

    def each_item(
        self,
        path: str,
        transport: Transport,
        params: dict[str, Any] | None = None,
        *,
        max_items: int | None = None,
        data_key: str = "data",
        max_pages: int | None = None,
        max_offset: int | None = None,
        sleep_interval: float = 0,
    ) -> Iterator[Any]:
        """
        Yield every item of a collection, across pages.

        Items are read from `page[data_key]`. Iteration stops as soon as
        `max_items` items were yielded, without fetching another page.
        """
        if max_items is not None and max_items <= 0:
            return

        yielded = 0
        pages = self.each_page(
            path,
            transport,
            params,
            max_pages=max_pages,
            max_offset=max_offset,
            sleep_interval=sleep_interval,
        )
        for page in pages:
            for item in page.get(data_key) or []:
                yield item
                yielded += 1
                if max_items is not None and yielded >= max_items:
                    pages.close()
                    return

    @staticmethod
    def _next_offset_params(
        page: dict[str, Any],
        current_params: dict[str, Any],
        max_offset: int | None,
    ) -> dict[str, Any] | None:
        offset = page.get("offset")
        if offset is None:
            offset = current_params.get("offset", 0)
        offset = int(offset)
        limit = int(page.get("limit") or DEFAULT_OFFSET_LIMIT)
        items = _find_items(page, OFFSET_ITEM_KEYS)

        if max_offset is not None and offset >= max_offset:
            return None
        if len(items) < limit:
            return None

        next_offset = offset + limit
        if max_offset is not None:
            next_offset = min(next_offset, max_offset)
        return {**current_params, "offset": next_offset}

    @staticmethod
    def _next_until_params(
        page: dict[str, Any],
        current_params: dict[str, Any],
        requested_limit: Any,
    ) -> dict[str, Any] | None:
        items = _find_items(page, UNTIL_ITEM_KEYS)
        if not items:
            return None

        # Message-like collections are ordered by delivery time.
        by_delivery = page.get("messages") is not None or page.get("comments") is not None

        def timestamp(item: Any) -> Any:
            if not isinstance(item, dict):
                return None
            if by_delivery:
                return item.get("delivered_at")
            return item.get("created_at") or item.get("updated_at")

        next_section = page.get("next")
        explicit = next_section.get("until") if isinstance(next_section, dict) else None

        if explicit:
            cursor = explicit
            if requested_limit is not None and len(items) < int(requested_limit):
                return None
        else:
            limit = int(requested_limit) if requested_limit is not None else DEFAULT_UNTIL_LIMIT
            if len(items) < limit:
                return None
            cursor = timestamp(items[-1])

        if not cursor:
            return None

        # Every item sits on the cursor: the next page would repeat this one.
        if all(timestamp(item) == cursor for item in items):
            return None

        return {**current_params, "until": cursor}
