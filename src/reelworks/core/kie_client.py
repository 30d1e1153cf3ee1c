"""HTTP transport for the Kie AI job API.

:class:`KieApiClient` owns a ``requests.Session`` and performs the two calls
the job lifecycle needs:

- ``POST {base}/jobs/createTask`` to create a job
- ``GET {base}/jobs/recordInfo?taskId=<id>`` to check its status

Both calls carry the caller's credential as a bearer token.  The client only
deals with transport concerns (HTTP status, JSON decoding); interpreting the
``{code, msg, data}`` envelope is left to
:class:`~reelworks.core.submitter.JobSubmitter` and
:class:`~reelworks.core.poller.JobPoller`.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from .config import ReelworksConfig
from .errors import PollError, SubmissionError

logger = logging.getLogger(__name__)

CREATE_TASK_PATH = "/jobs/createTask"
RECORD_INFO_PATH = "/jobs/recordInfo"


def _error_message(response: requests.Response) -> str:
    """Prefer the API's own ``msg`` over the raw body of a non-2xx reply."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("msg"):
        return str(body["msg"])
    return f"Kie AI API Error: {response.text}"


class KieApiClient:
    """Thin wrapper around ``requests`` for the job API.

    Attributes:
        base_url: API base URL without trailing slash.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        config: ReelworksConfig,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = config.api_base_url.rstrip("/")
        self.timeout = config.request_timeout
        self._session = session or requests.Session()

    @staticmethod
    def _headers(credential: str, json_body: bool = False) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {credential}"}
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def create_task(self, payload: dict[str, Any], credential: str) -> dict[str, Any]:
        """Send the job creation request.

        Args:
            payload: JSON body (model + input)
            credential: Bearer credential

        Returns:
            Decoded JSON envelope

        Raises:
            SubmissionError: On transport failure, a credential that cannot be
                sent as a header, non-2xx status, or a body that is not a JSON
                object.  A non-2xx reply carrying ``msg`` reports it verbatim
        """
        url = f"{self.base_url}{CREATE_TASK_PATH}"
        logger.info(f"Submitting job to {url} (model={payload.get('model')})")

        try:
            response = self._session.post(
                url,
                json=payload,
                headers=self._headers(credential, json_body=True),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise SubmissionError(f"Kie AI API Error: {e}") from e
        except UnicodeError as e:
            # The credential travels in a header, which http.client encodes as latin-1.
            raise SubmissionError(f"Kie AI API Error: credential cannot be sent ({e})") from e

        if not response.ok:
            raise SubmissionError(_error_message(response))

        try:
            body = response.json()
        except ValueError as e:
            raise SubmissionError(f"Kie AI API Error: invalid JSON response ({e})") from e

        if not isinstance(body, dict):
            raise SubmissionError("Kie AI API Error: unexpected response shape")
        return body

    def get_record_info(self, task_id: str, credential: str) -> dict[str, Any]:
        """Fetch the status record of a job.

        Args:
            task_id: Job identifier returned by ``create_task``
            credential: Bearer credential

        Returns:
            Decoded JSON envelope

        Raises:
            PollError: On transport failure, an unsendable credential, or a body
                that is not a JSON object
        """
        url = f"{self.base_url}{RECORD_INFO_PATH}"

        try:
            response = self._session.get(
                url,
                params={"taskId": task_id},
                headers=self._headers(credential),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise PollError(f"Polling Error: {e}") from e
        except UnicodeError as e:
            raise PollError(f"Polling Error: credential cannot be sent ({e})") from e

        # A non-2xx reply may still carry the API's own {code, msg} envelope,
        # which gives a better message than the HTTP status line.
        try:
            body = response.json()
        except ValueError as e:
            raise PollError(
                f"Polling Error: HTTP {response.status_code}, unreadable response"
            ) from e

        if not isinstance(body, dict):
            raise PollError("Polling Error: unexpected response shape")
        return body

    def close(self) -> None:
        self._session.close()
