"""Tests for analytics reports."""

from unittest.mock import MagicMock, patch

import pytest

from missive import NotFoundError


class TestCreateReport:

    def test_posts_the_period(self, client, connection):
        connection.request.return_value = {"reports": {"id": "rep-1"}}

        report = client.analytics.create_report("org-1", start_time=1691812800, end_time=1692371867, time_zone="UTC")

        connection.request.assert_called_once_with(
            "POST",
            "/analytics/reports",
            body={"reports": {"organization": "org-1", "start": 1691812800, "end": 1692371867, "time_zone": "UTC"}},
        )
        assert report.id == "rep-1"

    def test_requires_organization(self, client):
        with pytest.raises(ValueError, match="organization"):
            client.analytics.create_report("", 1, 2)

    def test_requires_period(self, client):
        with pytest.raises(ValueError, match="start_time"):
            client.analytics.create_report("org-1", None, 2)  # type: ignore[arg-type]
        with pytest.raises(ValueError, match="end_time"):
            client.analytics.create_report("org-1", 1, None)  # type: ignore[arg-type]


class TestGetReport:

    def test_unwraps_the_report(self, client, connection):
        connection.request.return_value = {"reports": {"id": "rep-1", "data": {"conversations": 12}}}

        report = client.analytics.get_report("rep-1")

        connection.request.assert_called_once_with("GET", "/analytics/reports/rep-1")
        assert report.dig("data", "conversations") == 12


class TestWaitForReport:

    @patch("missive.resources._analytics.time.sleep")
    def test_polls_until_ready(self, mock_sleep: MagicMock, client, connection):
        connection.request.side_effect = [
            NotFoundError("not ready", status=404),
            NotFoundError("not ready", status=404),
            {"reports": {"id": "rep-1"}},
        ]

        report = client.analytics.wait_for_report("rep-1", interval=2, timeout=60)

        assert report.id == "rep-1"
        assert connection.request.call_count == 3
        assert mock_sleep.call_count == 2
        mock_sleep.assert_called_with(2)

    @patch("missive.resources._analytics.time")
    def test_times_out(self, mock_time: MagicMock, client, connection):
        mock_time.monotonic.side_effect = [0.0, 5.0, 11.0]
        connection.request.side_effect = NotFoundError("not ready", status=404)

        with pytest.raises(TimeoutError, match="10 seconds"):
            client.analytics.wait_for_report("rep-1", interval=5, timeout=10)

        assert connection.request.call_count == 2

    def test_other_errors_propagate(self, client, connection):
        connection.request.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            client.analytics.wait_for_report("rep-1")
