"""Minimal Kimai API client for timesheet creation."""

import logging
from typing import Any

import requests

from ..config import DEFAULT_TIMEOUT
from ..domain.models import TimeEntry
from ..errors import RemoteRejection, TransportException

logger = logging.getLogger(__name__)


class KimaiClient:
    """Simple Kimai API client."""

    def __init__(
        self,
        base_url: str,
        api_token: str,
        timeout: int = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize Kimai client.

        Args:
            base_url: Kimai API base URL (e.g. https://kimai.example.com/api)
            api_token: API token for bearer authentication
            timeout: Per-request timeout in seconds
            session: Optional requests session to reuse
        """
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_token}",
        }

    def create_timesheet(self, entry: TimeEntry) -> dict[str, Any]:
        """Create a timesheet record.

        The response body is decoded as JSON whatever the status code, so a
        rejection carries Kimai's own error payload.

        Args:
            entry: Entry to submit

        Returns:
            Created timesheet data

        Raises:
            RemoteRejection: If Kimai answers with a non-success status
            TransportException: On network errors or a non-JSON body
        """
        url = f"{self.base_url}/timesheets"
        payload = entry.to_payload()
        logger.debug(f"Creating timesheet: {payload}")

        try:
            response = self.session.post(url, headers=self.headers, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Kimai request failed: {e}")
            raise TransportException(str(e)) from e

        try:
            data = response.json()
        except ValueError as e:
            raise TransportException(
                f"Invalid JSON in response (HTTP {response.status_code}): {e}"
            ) from e

        if not response.ok:
            logger.error(f"Kimai rejected timesheet (HTTP {response.status_code}): {data}")
            raise RemoteRejection(response.status_code, data)

        if not isinstance(data, dict):
            raise TransportException(
                f"Unexpected response body (HTTP {response.status_code}): expected a JSON object, "
                f"got {type(data).__name__}"
            )

        return data
