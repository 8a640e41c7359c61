"""
Shared plumbing for resource classes.

A resource builds requests, sends them through the client's connection and
wraps the JSON it gets back in `MissiveObject`s. Argument problems are
reported with `ValueError` before anything is sent.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from missive._object import MissiveObject

if TYPE_CHECKING:
    from missive._client import Client
    from missive._connection import Connection

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 50
MAX_PAGE_LIMIT = 200


def check_limit(limit: int, maximum: int) -> None:
    if limit > maximum:
        raise ValueError(f"limit cannot exceed {maximum}")


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return not value
    return False


def require(value: Any, name: str) -> None:
    if is_blank(value):
        raise ValueError(f"{name} is required")


def compact(values: dict[str, Any]) -> dict[str, Any]:
    """Drop None values."""
    return {key: value for key, value in values.items() if value is not None}


class Resource:
    """Base class for API resources bound to a `Client`."""

    def __init__(self, client: "Client"):
        assert client is not None, "client is required."
        self.client = client

    @property
    def connection(self) -> "Connection":
        return self.client.connection

    def _object(self, data: Any) -> MissiveObject:
        return MissiveObject(data, self.client)

    def _objects(self, response: Any, key: str) -> list[MissiveObject]:
        items = response.get(key) if isinstance(response, dict) else None
        return [self._object(item) for item in items or []]

    def _paginate(self, path: str, params: dict[str, Any], data_key: str) -> Iterator[MissiveObject]:
        items = self.client.paginator.each_item(path, self.connection, params, data_key=data_key)
        for item in items:
            yield self._object(item)


class OffsetListResource(Resource):
    """
    A collection listed with `limit`/`offset` paging (at most 200 per page).

    Subclasses only declare `PATH` and `DATA_KEY`.
    """

    PATH: str = ""
    DATA_KEY: str = ""

    def list(self, limit: int = DEFAULT_PAGE_LIMIT, offset: int = 0, **params: Any) -> list[MissiveObject]:
        """
        Fetch one page.

        Args:
            limit: Items per page (max 200).
            offset: Index of the first item.
            **params: Extra filters (e.g. `organization`). None values are dropped.
        """
        check_limit(limit, MAX_PAGE_LIMIT)
        query = {"limit": limit, "offset": offset, **compact(params)}
        response = self.connection.request("GET", self.PATH, params=query)
        return self._objects(response, self.DATA_KEY)

    def iter_all(self, **params: Any) -> Iterator[MissiveObject]:
        """Iterate over every item, fetching pages lazily."""
        query = compact(params)
        query.setdefault("limit", DEFAULT_PAGE_LIMIT)
        check_limit(query["limit"], MAX_PAGE_LIMIT)
        return self._paginate(self.PATH, query, self.DATA_KEY)
