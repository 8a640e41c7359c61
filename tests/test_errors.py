"""Tests for the error taxonomy and status classification."""

import pytest

from missive import (
    AuthenticationError,
    MissingTokenError,
    MissiveError,
    NotFoundError,
    RateLimitError,
    ServerError,
    classify,
)
from missive._errors import error_from_response, extract_error_message


class TestErrorHierarchy:
    """Every SDK error is a MissiveError, which is a plain Exception."""

    @pytest.mark.parametrize("error_class", [
        AuthenticationError, NotFoundError, RateLimitError, ServerError, MissingTokenError,
    ])
    def test_subclasses_missive_error(self, error_class):
        assert issubclass(error_class, MissiveError)

    def test_missive_error_is_exception(self):
        assert issubclass(MissiveError, Exception)

    def test_carries_status_and_body(self):
        error = MissiveError("boom", status=418, body={"error": "boom"})

        assert str(error) == "boom"
        assert error.message == "boom"
        assert error.status == 418
        assert error.body == {"error": "boom"}

    def test_status_and_body_default_to_none(self):
        error = MissiveError("boom")

        assert error.status is None
        assert error.body is None


class TestClassify:
    """Status-to-error mapping is total and exact."""

    @pytest.mark.parametrize("status,expected", [
        (401, AuthenticationError),
        (403, AuthenticationError),
        (404, NotFoundError),
        (429, RateLimitError),
        (500, ServerError),
        (502, ServerError),
        (599, ServerError),
        (200, MissiveError),
        (400, MissiveError),
        (422, MissiveError),
        (600, MissiveError),
    ])
    def test_maps_status_to_error_class(self, status, expected):
        assert classify(status, None) is expected

    def test_body_does_not_affect_mapping(self):
        assert classify(404, {"error": "Server Error"}) is NotFoundError


class TestExtractErrorMessage:

    def test_string_body_is_used_verbatim(self):
        assert extract_error_message(500, "Upstream exploded") == "Upstream exploded"

    def test_error_field_of_dict_body(self):
        assert extract_error_message(422, {"error": "Invalid contact book"}) == "Invalid contact book"

    def test_falls_back_to_status(self):
        assert extract_error_message(503, {"message": "ignored"}) == "HTTP 503"
        assert extract_error_message(503, None) == "HTTP 503"
        assert extract_error_message(503, "") == "HTTP 503"


class TestErrorFromResponse:

    def test_builds_typed_error_with_context(self):
        error = error_from_response(404, {"error": "Conversation not found"})

        assert isinstance(error, NotFoundError)
        assert error.message == "Conversation not found"
        assert error.status == 404
        assert error.body == {"error": "Conversation not found"}
