"""Tests for conversations and messages."""

import pytest

from missive import NotFoundError


class TestConversations:

    def test_list_defaults_to_25(self, client, connection):
        connection.request.return_value = {"conversations": [{"id": "cv1"}]}

        result = client.conversations.list(inbox=True)

        connection.request.assert_called_once_with("GET", "/conversations", params={"limit": 25, "inbox": True})
        assert result[0].id == "cv1"

    def test_list_passes_the_cursor(self, client, connection):
        connection.request.return_value = {"conversations": []}

        client.conversations.list(limit=50, until=1691812800, team_inbox="t1")

        assert connection.request.call_args.kwargs["params"] == {"limit": 50, "team_inbox": "t1", "until": 1691812800}

    def test_list_limit_is_capped_at_50(self, client):
        with pytest.raises(ValueError, match="50"):
            client.conversations.list(limit=51)

    def test_iter_all_follows_the_until_cursor(self, client, connection):
        connection.request.side_effect = [
            {"conversations": [{"id": "a", "created_at": 30}, {"id": "b", "created_at": 20}]},
            {"conversations": [{"id": "c", "created_at": 10}]},
        ]

        result = list(client.conversations.iter_all(all=True, limit=2))

        assert [c.id for c in result] == ["a", "b", "c"]
        assert connection.request.call_args.kwargs["params"] == {"all": True, "limit": 2, "until": 20}

    def test_get_unwraps_the_list(self, client, connection):
        connection.request.return_value = {"conversations": [{"id": "cv1", "subject": "Hi"}]}

        conversation = client.conversations.get("cv1")

        connection.request.assert_called_once_with("GET", "/conversations/cv1")
        assert conversation.get("subject") == "Hi"

    def test_get_empty_list_is_not_found(self, client, connection):
        connection.request.return_value = {"conversations": []}

        with pytest.raises(NotFoundError):
            client.conversations.get("cv1")


class TestConversationThreads:

    def test_messages_page(self, client, connection):
        connection.request.return_value = {"messages": [{"id": "m1"}]}

        messages = client.conversations.messages("cv1", until=123)

        connection.request.assert_called_once_with(
            "GET", "/conversations/cv1/messages", params={"limit": 10, "until": 123}
        )
        assert messages[0].id == "m1"

    def test_comments_page(self, client, connection):
        connection.request.return_value = {"comments": [{"id": "k1"}]}

        comments = client.conversations.comments("cv1", limit=5)

        connection.request.assert_called_once_with("GET", "/conversations/cv1/comments", params={"limit": 5})
        assert comments[0].id == "k1"

    @pytest.mark.parametrize("method", ["messages", "comments"])
    def test_thread_limit_is_capped_at_10(self, client, method):
        with pytest.raises(ValueError, match="10"):
            getattr(client.conversations, method)("cv1", limit=11)

    def test_requires_conversation_id(self, client):
        with pytest.raises(ValueError, match="conversation_id"):
            client.conversations.messages(None)

    def test_iter_messages_pages_by_delivery_time(self, client, connection):
        connection.request.side_effect = [
            {"messages": [{"id": "m1", "delivered_at": 50}, {"id": "m2", "delivered_at": 40}]},
            {"messages": []},
        ]

        result = list(client.conversations.iter_messages("cv1", limit=2))

        assert [m.id for m in result] == ["m1", "m2"]
        assert connection.request.call_args.kwargs["params"] == {"limit": 2, "until": 40}

    def test_iter_comments(self, client, connection):
        connection.request.side_effect = [{"comments": [{"id": "k1", "delivered_at": 5}]}]

        result = list(client.conversations.iter_comments("cv1"))

        assert [c.id for c in result] == ["k1"]
        assert connection.request.call_count == 1


class TestMessages:

    def test_create_wraps_the_message(self, client, connection):
        connection.request.return_value = {"messages": {"id": "m1"}}

        message = client.messages.create(
            account="channel-1",
            from_field={"id": "bot", "username": "@bot"},
            to_fields=[{"id": "u1"}],
            body="Hello",
            conversation=None,
            references=["<abc@x>"],
        )

        connection.request.assert_called_once_with(
            "POST",
            "/messages",
            body={"messages": {
                "account": "channel-1",
                "from_field": {"id": "bot", "username": "@bot"},
                "to_fields": [{"id": "u1"}],
                "body": "Hello",
                "references": ["<abc@x>"],
            }},
        )
        assert message.id == "m1"

    def test_create_for_custom_channel(self, client, connection):
        connection.request.return_value = {"messages": [{"id": "m2"}]}

        message = client.messages.create_for_custom_channel(
            "channel-1", from_field={"id": "x"}, to_fields=[{"id": "y"}], body="Hi",
        )

        assert connection.request.call_args.kwargs["body"]["messages"]["account"] == "channel-1"
        assert message.id == "m2"

    def test_create_requires_account(self, client):
        with pytest.raises(ValueError, match="account"):
            client.messages.create(account="", from_field={}, to_fields=[], body="x")

    def test_get(self, client, connection):
        connection.request.return_value = {"messages": {"id": "m1", "subject": "Re: hi"}}

        message = client.messages.get("m1")

        connection.request.assert_called_once_with("GET", "/messages/m1")
        assert message.get("subject") == "Re: hi"

    def test_get_missing_is_not_found(self, client, connection):
        connection.request.return_value = {}

        with pytest.raises(NotFoundError):
            client.messages.get("m1")

    def test_list_by_email_message_id(self, client, connection):
        connection.request.return_value = {"messages": [{"id": "m1"}, {"id": "m2"}]}

        result = client.messages.list_by_email_message_id("<abc@mail.example.com>")

        connection.request.assert_called_once_with(
            "GET", "/messages", params={"email_message_id": "<abc@mail.example.com>"}
        )
        assert [m.id for m in result] == ["m1", "m2"]

    def test_list_by_email_message_id_accepts_single_object(self, client, connection):
        connection.request.return_value = {"messages": {"id": "m1"}}

        assert [m.id for m in client.messages.list_by_email_message_id("<abc@x>")] == ["m1"]
