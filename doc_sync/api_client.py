"""REST clients for the processing service and the pipeline webhook.

Deep module: callers pass a payload in, get the decoded acknowledgment back.
There are no retries; any failure is a ``SubmissionError``.
"""

import logging
from typing import Any, Dict, Mapping

import requests

from doc_sync.errors import SubmissionError
from doc_sync.models import SyncRequest

logger = logging.getLogger(__name__)


class ProcessingAPIClient:
    """Client for the document processing endpoint.

    Args:
        api_url: Base URL of the service, e.g. ``http://localhost:3000``.
        timeout: Per-request timeout in seconds.
    """

    def __init__(self, api_url: str, timeout: float = 30):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    def submit(self, request: SyncRequest) -> Dict[str, Any]:
        """POST the normalized corpus and credentials.

        Returns:
            The decoded ``{success, message}`` acknowledgment.

        Raises:
            SubmissionError: Transport failure, non-2xx status, a body that is
                not JSON, or ``success: false``.
        """
        endpoint = f"{self.api_url}/api/integration/process-docs"
        logger.info("POST %s (%d file(s))", endpoint, len(request.files))

        try:
            response = requests.post(
                endpoint,
                json=request.to_payload(),
                timeout=self.timeout,
                headers=self._headers(),
            )
        except requests.exceptions.RequestException as exc:
            raise SubmissionError(f"Request failed: {type(exc).__name__}: {exc}") from exc

        if not response.ok:
            raise SubmissionError(f"HTTP error! status: {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise SubmissionError("Processing service returned a non-JSON response") from exc

        if not isinstance(payload, dict) or not payload.get("success"):
            message = payload.get("message") if isinstance(payload, dict) else None
            raise SubmissionError(message or "Processing service reported failure")

        logger.info("Documents processed", extra={"status": payload.get("message")})
        return payload


class WebhookClient:
    """Forwards changed file contents from the pipeline variant."""

    def __init__(self, webhook_url: str, timeout: float = 30):
        self.webhook_url = webhook_url
        self.timeout = timeout

    def post_changes(
        self,
        project_id: str,
        api_key: str,
        changed_files: Mapping[str, str],
    ) -> requests.Response:
        """POST ``{projectId, apiKey, changedFiles}``.

        Raises:
            SubmissionError: Transport failure or non-2xx status.
        """
        payload = {
            "projectId": project_id,
            "apiKey": api_key,
            "changedFiles": dict(changed_files),
        }
        logger.info("POST webhook (%d file(s))", len(changed_files))

        try:
            response = requests.post(self.webhook_url, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            raise SubmissionError(f"Webhook request failed: {exc}") from exc

        if not response.ok:
            raise SubmissionError(f"Webhook returned status {response.status_code}")
        return response
