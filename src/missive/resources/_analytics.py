"""Analytics reports."""

import logging
import time
from typing import Any

from missive._errors import NotFoundError
from missive._object import MissiveObject
from missive.resources._base import Resource, require

logger = logging.getLogger(__name__)

REPORTS = "/analytics/reports"


class Analytics(Resource):
    """
    Analytics reports are computed asynchronously: `create_report` returns an
    id, and `get_report` answers 404 until the report is ready.

    Example:
        >>> report = client.analytics.create_report("org-id", start_time=1691812800, end_time=1692371867)
        >>> ready = client.analytics.wait_for_report(report.id, interval=5, timeout=60)
    """

    def _report(self, response: Any) -> MissiveObject:
        if isinstance(response, dict) and response.get("reports"):
            return self._object(response["reports"])
        return self._object(response)

    def create_report(self, organization: str, start_time: int, end_time: int, **params: Any) -> MissiveObject:
        """
        Request a report for `[start_time, end_time]` (epoch seconds).

        Args:
            organization: Organization id.
            start_time: Period start.
            end_time: Period end.
            **params: Extra report filters (`teams`, `users`, `time_zone`, ...).
        """
        require(organization, "organization")
        if start_time is None:
            raise ValueError("start_time is required")
        if end_time is None:
            raise ValueError("end_time is required")

        body = {"reports": {"organization": organization, "start": start_time, "end": end_time, **params}}
        return self._report(self.connection.request("POST", REPORTS, body=body))

    def get_report(self, report_id: str) -> MissiveObject:
        """
        Raises:
            NotFoundError: While the report is still being computed.
        """
        require(report_id, "report_id")
        return self._report(self.connection.request("GET", f"{REPORTS}/{report_id}"))

    def wait_for_report(self, report_id: str, interval: float = 5, timeout: float = 60) -> MissiveObject:
        """
        Poll `get_report` every `interval` seconds until the report is ready.

        Raises:
            TimeoutError: If the report is not ready after `timeout` seconds.
        """
        require(report_id, "report_id")
        start = time.monotonic()
        attempts = 0

        while True:
            attempts += 1
            try:
                report = self.get_report(report_id)
                logger.debug(f"Report {report_id} ready after {attempts} attempt(s).")
                return report
            except NotFoundError:
                logger.debug(f"Report {report_id} not ready yet (attempt {attempts}).")

            if time.monotonic() - start > timeout:
                raise TimeoutError(f"Report did not complete within {timeout} seconds")
            time.sleep(interval)
