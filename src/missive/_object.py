"""
Read-only view over Missive API entities.

Example:
    >>> contact = MissiveObject({"id": "c1", "firstName": "Ada", "_links": {"self": "..."}})
    >>> contact.get("first_name")
    'Ada'
    >>> contact.dig("_links", "self")
    '...'
"""

import copy
import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from missive._client import Client

_MISSING = object()


def underscore(name: str) -> str:
    """Convert a camelCase (or PascalCase) key to snake_case."""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name)
    return name.replace("-", "_").lower()


class MissiveObject:
    """
    Typed view over one JSON object returned by the API.

    Keys are looked up verbatim first; when absent, a camelCase key whose
    snake_case form matches is used instead, so `get("first_name")` also finds
    `firstName`.

    Args:
        attributes: The JSON object. Anything that is not a dict becomes `{}`.
        client: Client used by `reload()`.
    """

    def __init__(self, attributes: Any, client: "Client | None" = None):
        self.attributes: dict[str, Any] = attributes if isinstance(attributes, dict) else {}
        self.client = client

    def _lookup(self, key: str) -> Any:
        if key in self.attributes:
            return self.attributes[key]
        for candidate in self.attributes:
            if underscore(candidate) == key:
                return self.attributes[candidate]
        return _MISSING

    def get(self, key: str, default: Any = None) -> Any:
        value = self._lookup(key)
        return default if value is _MISSING else value

    def __getitem__(self, key: str) -> Any:
        value = self._lookup(key)
        if value is _MISSING:
            raise KeyError(key)
        return value

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._lookup(key) is not _MISSING

    def dig(self, *keys: Any) -> Any:
        """Walk nested dicts/lists, returning None as soon as a step is missing."""
        current: Any = self.attributes
        for key in keys:
            if isinstance(current, dict):
                current = current.get(key)
            elif isinstance(current, list) and isinstance(key, int) and -len(current) <= key < len(current):
                current = current[key]
            else:
                return None
            if current is None:
                return None
        return current

    @property
    def id(self) -> Any:
        return self.attributes.get("id")

    def to_dict(self) -> dict[str, Any]:
        """Return a deep copy of the underlying attributes."""
        return copy.deepcopy(self.attributes)

    def reload(self) -> "MissiveObject":
        """
        Refresh attributes from the entity's `_links.self` URL.

        Objects without a self link (or without a client) are returned unchanged.
        """
        self_link = self.dig("_links", "self")
        if not self_link or self.client is None:
            return self

        parsed = self.client.connection.request("GET", self_link)
        self.attributes = parsed if isinstance(parsed, dict) else {}
        return self

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MissiveObject):
            return NotImplemented
        if self.id is None or other.id is None:
            return False
        return bool(self.id == other.id)

    def __hash__(self) -> int:
        return hash(self.id) if self.id is not None else id(self)

    def __repr__(self) -> str:
        return f"MissiveObject(id={self.id!r})"
