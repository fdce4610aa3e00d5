"""HTTP client for the event status function."""
import logging
from typing import Any, Dict

import requests

logger = logging.getLogger(__name__)


class StatusFunctionError(Exception):
    """Error response returned by the event status function."""

    def __init__(self, kind: str, message: str, status_code: int):
        super().__init__(f"{kind}: {message}")
        self.kind = kind
        self.message = message
        self.status_code = status_code


class StatusFunctionClient:
    """Client invoking the status sweep through its HTTP endpoint."""

    def __init__(self, url: str, timeout: int = 30):
        """
        Initialize the client.

        Args:
            url: Function URL or API Gateway endpoint of the sweep
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.url = url
        self.timeout = timeout

    def update_event_status(self) -> Dict[str, Any]:
        """
        Invoke one status sweep.

        Returns:
            Decoded response body with ``success`` and ``updated``

        Raises:
            StatusFunctionError: If the function returned an error response
            requests.RequestException: On transport failures
        """
        logger.debug(f"Invoking event status function at {self.url}")
        response = requests.post(self.url, json={}, timeout=self.timeout)

        if not response.ok:
            raise self._error_from_response(response)

        body = response.json()
        logger.debug(f"Event status function updated {body.get('updated')} events")
        return body

    def _error_from_response(self, response: requests.Response) -> StatusFunctionError:
        kind, message = 'internal', 'Failed to update event status'
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            kind = body.get('error', kind)
            message = body.get('message', message)

        return StatusFunctionError(kind, message, response.status_code)
