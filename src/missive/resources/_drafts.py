"""Drafts (outgoing email) and posts."""

import time
from typing import Any

from missive._errors import MissiveError
from missive._object import MissiveObject
from missive.resources._base import Resource, compact, is_blank, require

DRAFTS = "/drafts"
POSTS = "/posts"

MAX_ATTACHMENTS = 25


class Drafts(Resource):
    """
    Create drafts, and send or schedule them.

    Example:
        >>> client.drafts.send_message(
        ...     body="Hello!",
        ...     to_fields=[{"address": "ada@example.com"}],
        ...     from_field={"address": "me@example.com"},
        ... )
    """

    def create(
        self,
        body: str,
        to_fields: list[dict[str, Any]],
        from_field: dict[str, Any],
        *,
        subject: str | None = None,
        quote_previous_message: bool | None = None,
        cc_fields: list[dict[str, Any]] | None = None,
        bcc_fields: list[dict[str, Any]] | None = None,
        account: str | None = None,
        attachments: list[dict[str, Any]] | None = None,
        references: list[str] | None = None,
        conversation: str | None = None,
        team: str | None = None,
        force_team: bool | None = None,
        organization: str | None = None,
        add_users: list[str] | None = None,
        add_assignees: list[str] | None = None,
        conversation_subject: str | None = None,
        conversation_color: str | None = None,
        add_shared_labels: list[str] | None = None,
        remove_shared_labels: list[str] | None = None,
        add_to_inbox: bool | None = None,
        add_to_team_inbox: bool | None = None,
        close: bool | None = None,
        send: bool | None = None,
        send_at: int | None = None,
        auto_followup: bool | None = None,
        external_response_id: str | None = None,
        external_response_variables: dict[str, Any] | None = None,
    ) -> MissiveObject:
        """
        Create a draft.

        The draft is sent right away with `send=True`, or scheduled with
        `send_at` (epoch seconds, in the future). Both cannot be combined.

        Raises:
            ValueError: On missing required fields or inconsistent options.
            MissiveError: If the API acknowledges without returning the draft.
        """
        require(body, "body")
        require(to_fields, "to_fields")
        require(from_field, "from_field")
        if attachments is not None:
            self._check_attachments(attachments)
        self._check_scheduling(send, send_at, auto_followup)

        if references and conversation:
            raise ValueError("Cannot pass both references and conversation (mutually exclusive)")
        if references is not None and not isinstance(references, list):
            raise ValueError("references must be a list")
        if (add_users or add_assignees) and not organization:
            raise ValueError("organization is required when using add_users or add_assignees")
        if add_to_team_inbox and not team:
            raise ValueError("team is required when using add_to_team_inbox")

        draft = compact({
            "body": body,
            "to_fields": to_fields,
            "from_field": from_field,
            "subject": subject,
            "quote_previous_message": quote_previous_message,
            "cc_fields": cc_fields,
            "bcc_fields": bcc_fields,
            "account": account,
            "attachments": attachments,
            "references": references,
            "conversation": conversation,
            "team": team,
            "force_team": force_team,
            "organization": organization,
            "add_users": add_users,
            "add_assignees": add_assignees,
            "conversation_subject": conversation_subject,
            "conversation_color": conversation_color,
            "add_shared_labels": add_shared_labels,
            "remove_shared_labels": remove_shared_labels,
            "add_to_inbox": add_to_inbox,
            "add_to_team_inbox": add_to_team_inbox,
            "close": close,
            "send": send,
            "send_at": send_at,
            "auto_followup": auto_followup,
            "external_response_id": external_response_id,
            "external_response_variables": external_response_variables,
        })

        response = self.connection.request("POST", DRAFTS, body={"drafts": draft})
        if not response or not isinstance(response, dict):
            raise MissiveError("Draft not created", body=response)
        return self._object(response.get("drafts") or response)

    def send_message(self, body: str, to_fields: list[dict[str, Any]], from_field: dict[str, Any], **options: Any) -> MissiveObject:
        """Create a draft and send it immediately."""
        return self.create(body, to_fields, from_field, send=True, **options)

    def schedule_message(
        self,
        body: str,
        to_fields: list[dict[str, Any]],
        from_field: dict[str, Any],
        send_at: int,
        auto_followup: bool = False,
        **options: Any,
    ) -> MissiveObject:
        """
        Create a draft sent at `send_at` (epoch seconds).

        With `auto_followup=True` the draft is discarded if someone replies first.
        """
        return self.create(body, to_fields, from_field, send_at=send_at, auto_followup=auto_followup, **options)

    @staticmethod
    def _check_attachments(attachments: Any) -> None:
        if not isinstance(attachments, list):
            raise ValueError("attachments must be a list")
        if len(attachments) > MAX_ATTACHMENTS:
            raise ValueError(f"Maximum {MAX_ATTACHMENTS} attachments allowed, got {len(attachments)}")
        for index, attachment in enumerate(attachments):
            if not isinstance(attachment, dict):
                raise ValueError(f"Attachment {index} must be a dict")
            if not attachment.get("base64_data"):
                raise ValueError(f"Attachment {index} must include base64_data")
            if not attachment.get("filename"):
                raise ValueError(f"Attachment {index} must include filename")

    @staticmethod
    def _check_scheduling(send: bool | None, send_at: int | None, auto_followup: bool | None) -> None:
        if send and send_at:
            raise ValueError("Cannot use both send=True and send_at (mutually exclusive)")
        if auto_followup and not send_at:
            raise ValueError("auto_followup requires send_at to be specified")
        if send_at and send_at <= int(time.time()):
            raise ValueError("send_at must be in the future")


class Posts(Resource):
    """Posts: integration messages shown inside a conversation."""

    def create(
        self,
        text: str | None = None,
        markdown: str | None = None,
        attachments: list[dict[str, Any]] | None = None,
        **attrs: Any,
    ) -> MissiveObject:
        """
        Create a post.

        At least one of `text`, `markdown` or `attachments` is required. A
        `notification` dict must have both `title` and `body`.
        """
        if is_blank(text) and is_blank(markdown) and is_blank(attachments):
            raise ValueError("At least one of text, markdown, or attachments is required")

        notification = attrs.get("notification")
        if isinstance(notification, dict) and not (notification.get("title") and notification.get("body")):
            raise ValueError("Notification must include title and body")

        post = compact({"text": text, "markdown": markdown, "attachments": attachments, **attrs})
        response = self.connection.request("POST", POSTS, body={"posts": post})
        if isinstance(response, dict) and isinstance(response.get("posts"), dict):
            return self._object(response["posts"])
        return self._object(response)

    def delete(self, id: str) -> bool:
        require(id, "id")
        self.connection.request("DELETE", f"{POSTS}/{id}")
        return True
