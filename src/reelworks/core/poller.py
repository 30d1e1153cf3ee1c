"""Status polling for submitted remote jobs.

:class:`JobPoller` runs a small state machine over
:class:`~reelworks.core.models.JobStatus`, starting in WAITING:

- Before every status check it waits ``poll_interval`` seconds.  The wait is
  a rate limit on the remote service, not a user-visible timeout.
- ``waiting`` / ``processing`` keep the loop going and are reported to the
  ``on_status`` callback.
- ``success`` ends the loop; the SUCCEEDED status is the last item yielded.
- ``fail`` ends the loop by raising :class:`GenerationError`.
- Any other state is handled according to ``unknown_state_policy``.

The loop is bounded by ``max_poll_attempts`` and ``poll_timeout`` and checks
the cancellation token before each wait.  Failures are never retried.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Iterator
from typing import Any

from .config import ReelworksConfig
from .errors import (
    GenerationError,
    JobCancelledError,
    JobTimeoutError,
    PollError,
    UnknownStateError,
)
from .kie_client import KieApiClient
from .models import CancellationToken, JobHandle, JobState, JobStatus

logger = logging.getLogger(__name__)

SUCCESS_CODE = 200

StatusCallback = Callable[[JobStatus, int], None]


def decode_result_urls(result_json: Any) -> tuple[list[str], bool]:
    """Extract ``resultUrls`` from the separately-encoded result document.

    A document that cannot be decoded degrades to an empty list instead of
    failing here; the resolver decides what an empty list means.

    Args:
        result_json: JSON-encoded string (or an already-decoded dict)

    Returns:
        Tuple of (urls, decoded).  ``decoded`` is False when the document was
        missing or could not be parsed.
    """
    if isinstance(result_json, dict):
        document = result_json
    else:
        try:
            document = json.loads(result_json)
        except (TypeError, ValueError):
            logger.warning("Result document could not be decoded, treating result list as empty")
            return [], False

    if not isinstance(document, dict):
        logger.warning("Result document is not an object, treating result list as empty")
        return [], False

    urls = document.get("resultUrls") or []
    if not isinstance(urls, list):
        return [], True
    return [url for url in urls if isinstance(url, str) and url], True


def parse_status(envelope: dict[str, Any]) -> JobStatus:
    """Translate a ``recordInfo`` envelope into a JobStatus.

    Args:
        envelope: Decoded ``{code, msg, data}`` response

    Returns:
        JobStatus for a known state

    Raises:
        PollError: If ``code`` is not 200 or ``data`` is missing
        UnknownStateError: If ``data.state`` is not a known state
    """
    data = envelope.get("data")
    if envelope.get("code") != SUCCESS_CODE or not isinstance(data, dict) or not data:
        raise PollError(envelope.get("msg") or "Unknown polling error")

    state = data.get("state")

    if state == JobState.WAITING.value:
        return JobStatus.waiting()
    if state == JobState.PROCESSING.value:
        return JobStatus.processing()
    if state == JobState.SUCCEEDED.value:
        urls, decoded = decode_result_urls(data.get("resultJson"))
        return JobStatus.succeeded(urls, result_decoded=decoded)
    if state == JobState.FAILED.value:
        return JobStatus.failed(data.get("failMsg") or "Generation failed.")

    raise UnknownStateError(state)


class JobPoller:
    """Polls one job until it reaches a terminal state."""

    def __init__(
        self,
        client: KieApiClient,
        config: ReelworksConfig,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.interval = config.poll_interval
        self.max_attempts = config.max_poll_attempts
        self.timeout = config.poll_timeout
        self.unknown_state_policy = config.unknown_state_policy
        self._clock = clock

    def _check_deadline(self, handle: JobHandle, started: float) -> None:
        if self._clock() - started >= self.timeout:
            raise JobTimeoutError(f"Job {handle.id} did not finish within {self.timeout:.0f}s")

    def iter_statuses(
        self,
        handle: JobHandle,
        credential: str,
        token: CancellationToken | None = None,
    ) -> Iterator[tuple[int, JobStatus]]:
        """Yield ``(attempt, status)`` for every poll until the job succeeds.

        Pending statuses are yielded as they arrive; the final item is the
        SUCCEEDED status, after which the generator returns.

        Args:
            handle: Handle returned by the submitter
            credential: Bearer credential
            token: Optional cancellation token

        Raises:
            PollError: Malformed or rejected status response
            GenerationError: The remote job failed
            JobTimeoutError: Attempt or wall-clock budget exhausted
            JobCancelledError: The token was cancelled
        """
        token = token or CancellationToken()
        started = self._clock()
        attempt = 0

        while True:
            if token.cancelled:
                raise JobCancelledError(f"Job {handle.id} cancelled")

            if attempt >= self.max_attempts:
                raise JobTimeoutError(
                    f"Job {handle.id} did not finish after {attempt} status checks"
                )
            self._check_deadline(handle, started)

            if token.wait(self.interval):
                raise JobCancelledError(f"Job {handle.id} cancelled")
            # The budget may run out during the wait; no status check is sent then.
            self._check_deadline(handle, started)

            attempt += 1
            envelope = self.client.get_record_info(handle.id, credential)

            try:
                status = parse_status(envelope)
            except UnknownStateError as e:
                if self.unknown_state_policy == "continue":
                    logger.warning(f"Job {handle.id}: {e.message}; continuing to poll")
                    continue
                raise

            logger.debug(f"Job {handle.id} poll #{attempt}: {status.state.value}")

            if status.state == JobState.FAILED:
                logger.warning(f"Job {handle.id} failed: {status.reason}")
                raise GenerationError(status.reason or "Generation failed.")

            yield attempt, status

            if status.state == JobState.SUCCEEDED:
                logger.info(f"Job {handle.id} succeeded after {attempt} status checks")
                return

    def poll(
        self,
        handle: JobHandle,
        credential: str,
        token: CancellationToken | None = None,
        on_status: StatusCallback | None = None,
    ) -> JobStatus:
        """Poll until the job succeeds and return the SUCCEEDED status.

        ``on_status`` is called with ``(status, attempt)`` for every pending
        poll.  Raises the same errors as :meth:`iter_statuses`.
        """
        for attempt, status in self.iter_statuses(handle, credential, token):
            if status.state == JobState.SUCCEEDED:
                return status
            if on_status is not None:
                on_status(status, attempt)

        # iter_statuses only returns after yielding a success.
        raise PollError(f"Job {handle.id} polling ended without a terminal state")
