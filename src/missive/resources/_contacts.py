"""Contacts, contact books and contact groups."""

from __future__ import annotations

from collections.abc import Iterator
from numbers import Number
from typing import Any

from missive._errors import NotFoundError
from missive._object import MissiveObject
from missive.resources._base import (
    DEFAULT_PAGE_LIMIT,
    MAX_PAGE_LIMIT,
    OffsetListResource,
    Resource,
    check_limit,
    compact,
    require,
)

CONTACTS = "/contacts"


class Contacts(Resource):
    """
    Contact operations.

    Example:
        >>> client.contacts.create({"email": "ada@example.com", "contact_book": "book-id"})
        >>> for contact in client.contacts.iter_all(contact_book="book-id"):
        ...     print(contact.get("email"))
    """

    ALLOWED_UPDATE_FIELDS = frozenset({
        "id", "email", "first_name", "last_name",
        "phone_number", "notes", "company_name",
        "twitter_handle", "facebook_handle",
        "custom_fields", "contact_book",
    })

    def create(self, contacts: dict[str, Any] | list[dict[str, Any]]) -> list[MissiveObject]:
        """Create one or more contacts."""
        contacts_list = contacts if isinstance(contacts, list) else [contacts]
        response = self.connection.request("POST", CONTACTS, body={"contacts": contacts_list})
        return self._objects(response, "contacts")

    def update(
        self,
        contacts: dict[str, Any] | list[dict[str, Any]],
        skip_validation: bool = False,
    ) -> list[MissiveObject]:
        """
        Update one or more contacts in a single request.

        Every contact must carry its `id`. Unless `skip_validation` is set,
        fields outside the documented contact schema are dropped.

        Raises:
            ValueError: If a contact has no `id`.
        """
        contacts_list = contacts if isinstance(contacts, list) else [contacts]

        validated = []
        for contact in contacts_list:
            if not contact.get("id"):
                raise ValueError("Each contact must have an 'id' field")
            if not skip_validation:
                contact = {k: v for k, v in contact.items() if k in self.ALLOWED_UPDATE_FIELDS}
            validated.append(contact)

        ids = ",".join(str(contact["id"]) for contact in validated)
        response = self.connection.request("PATCH", f"{CONTACTS}/{ids}", body={"contacts": validated})
        return self._objects(response, "contacts")

    @staticmethod
    def _check_list_params(params: dict[str, Any]) -> None:
        modified_since = params.get("modified_since")
        if modified_since is not None and (
            isinstance(modified_since, bool) or not isinstance(modified_since, Number)
        ):
            raise ValueError("modified_since must be a numeric epoch timestamp")

    def list(self, limit: int = DEFAULT_PAGE_LIMIT, offset: int = 0, **params: Any) -> list[MissiveObject]:
        """
        Fetch one page of contacts.

        Args:
            limit: Contacts per page (max 200).
            offset: Index of the first contact.
            **params: Filters such as `contact_book`, `search` or `modified_since` (epoch seconds).
        """
        check_limit(limit, MAX_PAGE_LIMIT)
        self._check_list_params(params)
        query = {"limit": limit, "offset": offset, **compact(params)}
        response = self.connection.request("GET", CONTACTS, params=query)
        return self._objects(response, "contacts")

    def iter_all(self, **params: Any) -> Iterator[MissiveObject]:
        query = compact(params)
        query.setdefault("limit", DEFAULT_PAGE_LIMIT)
        check_limit(query["limit"], MAX_PAGE_LIMIT)
        self._check_list_params(query)
        return self._paginate(CONTACTS, query, "contacts")

    def get(self, id: str) -> MissiveObject:
        """
        Fetch a single contact.

        Raises:
            NotFoundError: If the API answers without the contact.
        """
        require(id, "id")
        response = self.connection.request("GET", f"{CONTACTS}/{id}")
        contacts = response.get("contacts") if isinstance(response, dict) else None
        if not contacts:
            raise NotFoundError("Contact not found", status=404, body=response)
        return self._object(contacts[0])


class ContactBooks(OffsetListResource):
    """Contact books the token can read."""

    PATH = "/contact_books"
    DATA_KEY = "contact_books"


class ContactGroups(Resource):
    """Groups and organizations of a contact book."""

    PATH = "/contact_groups"
    VALID_KINDS = ("group", "organization")

    def _check_scope(self, contact_book: Any, kind: Any) -> None:
        require(contact_book, "contact_book")
        require(kind, "kind")
        if kind not in self.VALID_KINDS:
            raise ValueError("kind must be 'group' or 'organization'")

    def list(
        self,
        contact_book: str,
        kind: str,
        limit: int = DEFAULT_PAGE_LIMIT,
        offset: int = 0,
        **params: Any,
    ) -> list[MissiveObject]:
        self._check_scope(contact_book, kind)
        check_limit(limit, MAX_PAGE_LIMIT)
        query = {
            "contact_book": contact_book,
            "kind": kind,
            "limit": limit,
            "offset": offset,
            **compact(params),
        }
        response = self.connection.request("GET", self.PATH, params=query)
        return self._objects(response, "contact_groups")

    def iter_all(self, contact_book: str, kind: str, **params: Any) -> Iterator[MissiveObject]:
        self._check_scope(contact_book, kind)
        query = {"contact_book": contact_book, "kind": kind, **compact(params)}
        query.setdefault("limit", DEFAULT_PAGE_LIMIT)
        check_limit(query["limit"], MAX_PAGE_LIMIT)
        return self._paginate(self.PATH, query, "contact_groups")
