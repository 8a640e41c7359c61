"""Conversations and their messages."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from missive._errors import NotFoundError
from missive._object import MissiveObject
from missive.resources._base import Resource, check_limit, compact, require

CONVERSATIONS = "/conversations"
MESSAGES = "/messages"

DEFAULT_CONVERSATION_LIMIT = 25
MAX_CONVERSATION_LIMIT = 50
MAX_THREAD_LIMIT = 10


def _first(value: Any) -> Any:
    """Unwrap `[entity]` payloads into `entity`."""
    if isinstance(value, list):
        return value[0] if value else None
    return value


class Conversations(Resource):
    """
    Conversation operations.

    Conversations, messages and comments page backwards in time with an
    `until` cursor; `iter_*` methods follow it automatically.

    Example:
        >>> for conversation in client.conversations.iter_all(inbox=True):
        ...     print(conversation.get("subject"))
    """

    def list(
        self,
        limit: int = DEFAULT_CONVERSATION_LIMIT,
        until: Any = None,
        **params: Any,
    ) -> list[MissiveObject]:
        """
        Fetch one page of conversations.

        Args:
            limit: Conversations per page (max 50).
            until: Cursor returned by a previous page.
            **params: Mailbox filters (`inbox`, `all`, `assigned`, `team_inbox`, ...).
        """
        check_limit(limit, MAX_CONVERSATION_LIMIT)
        query = {"limit": limit, **compact(params)}
        if until is not None:
            query["until"] = until
        response = self.connection.request("GET", CONVERSATIONS, params=query)
        return self._objects(response, "conversations")

    def iter_all(self, **params: Any) -> Iterator[MissiveObject]:
        query = compact(params)
        query.setdefault("limit", DEFAULT_CONVERSATION_LIMIT)
        check_limit(query["limit"], MAX_CONVERSATION_LIMIT)
        return self._paginate(CONVERSATIONS, query, "conversations")

    def get(self, id: str) -> MissiveObject:
        require(id, "id")
        response = self.connection.request("GET", f"{CONVERSATIONS}/{id}")
        if isinstance(response, dict) and "conversations" in response:
            conversation = _first(response["conversations"])
            if not conversation:
                raise NotFoundError("Conversation not found", status=404, body=response)
            return self._object(conversation)
        return self._object(response)

    def _thread(
        self,
        conversation_id: str,
        kind: str,
        limit: int,
        until: Any,
    ) -> list[MissiveObject]:
        require(conversation_id, "conversation_id")
        check_limit(limit, MAX_THREAD_LIMIT)
        query: dict[str, Any] = {"limit": limit}
        if until is not None:
            query["until"] = until
        response = self.connection.request("GET", f"{CONVERSATIONS}/{conversation_id}/{kind}", params=query)
        return self._objects(response, kind)

    def _iter_thread(
        self,
        conversation_id: str,
        kind: str,
        limit: int,
        params: dict[str, Any],
    ) -> Iterator[MissiveObject]:
        require(conversation_id, "conversation_id")
        check_limit(limit, MAX_THREAD_LIMIT)
        query = {"limit": limit, **compact(params)}
        return self._paginate(f"{CONVERSATIONS}/{conversation_id}/{kind}", query, kind)

    def messages(self, conversation_id: str, limit: int = MAX_THREAD_LIMIT, until: Any = None) -> list[MissiveObject]:
        """Fetch one page (max 10) of a conversation's messages."""
        return self._thread(conversation_id, "messages", limit, until)

    def iter_messages(self, conversation_id: str, limit: int = MAX_THREAD_LIMIT, **params: Any) -> Iterator[MissiveObject]:
        return self._iter_thread(conversation_id, "messages", limit, params)

    def comments(self, conversation_id: str, limit: int = MAX_THREAD_LIMIT, until: Any = None) -> list[MissiveObject]:
        """Fetch one page (max 10) of a conversation's comments."""
        return self._thread(conversation_id, "comments", limit, until)

    def iter_comments(self, conversation_id: str, limit: int = MAX_THREAD_LIMIT, **params: Any) -> Iterator[MissiveObject]:
        return self._iter_thread(conversation_id, "comments", limit, params)


class Messages(Resource):
    """
    Message operations.

    `create` imports a message into Missive (typically through a custom
    channel); use `client.drafts` to send email.
    """

    def create(
        self,
        account: str,
        from_field: dict[str, Any],
        to_fields: list[dict[str, Any]],
        body: str,
        **attrs: Any,
    ) -> MissiveObject:
        """
        Create an incoming message.

        Args:
            account: Account (custom channel) id.
            from_field: Sender, e.g. `{"id": "...", "username": "...", "name": "..."}`.
            to_fields: Recipients, same shape as `from_field`.
            body: Message body (HTML or text).
            **attrs: Other message attributes (`conversation`, `references`, ...).
        """
        require(account, "account")
        message = {
            "account": account,
            "from_field": from_field,
            "to_fields": to_fields,
            "body": body,
            **compact(attrs),
        }
        response = self.connection.request("POST", MESSAGES, body={"messages": message})
        if isinstance(response, dict) and "messages" in response:
            return self._object(_first(response["messages"]))
        return self._object(response)

    def create_for_custom_channel(self, channel_id: str, **attrs: Any) -> MissiveObject:
        return self.create(account=channel_id, **attrs)

    def get(self, id: str) -> MissiveObject:
        require(id, "id")
        response = self.connection.request("GET", f"{MESSAGES}/{id}")
        message = _first(response.get("messages")) if isinstance(response, dict) else None
        if not message:
            raise NotFoundError("Message not found", status=404, body=response)
        return self._object(message)

    def list_by_email_message_id(self, email_message_id: str) -> list[MissiveObject]:
        """Find messages by their email `Message-ID` header."""
        require(email_message_id, "email_message_id")
        response = self.connection.request("GET", MESSAGES, params={"email_message_id": email_message_id})
        messages = response.get("messages") if isinstance(response, dict) else None
        if isinstance(messages, dict):
            messages = [messages]
        return [self._object(message) for message in messages or []]
