"""Job lifecycle controller.

:class:`GenerationController` is the caller-facing entry point.  It validates
requests, routes them to the pipeline registered for their mode, turns
pipeline transitions into :class:`~reelworks.core.models.JobEvent`s using
:func:`~reelworks.core.progress.estimate`, and front-inserts successful
results into the caller's gallery list.

Caller Contract
---------------
- ``validate(request)`` is synchronous and side-effect free.
- ``generate(request)`` validates eagerly (raising
  :class:`~reelworks.core.errors.ValidationError`) and enforces one job at a
  time (raising :class:`~reelworks.core.errors.JobInProgressError`).  It then
  returns an iterator of events.  Every other failure arrives as the terminal
  event's ``error``; exactly one terminal event ends the stream.
- ``run(request)`` drives the stream and returns the gallery entry, or raises
  the terminal failure.
- ``subscribe(callback)`` registers an observer that receives every event.

Consistency
-----------
``(phase, progress, message)`` is stored as a single immutable
:class:`~reelworks.core.models.JobSnapshot` swapped under a lock, so a
concurrent reader of :attr:`GenerationController.snapshot` never sees a torn
pair.  Progress is non-decreasing within a request and reset to 0 when the
next request starts.

Usage
-----
::

    controller = GenerationController(config)
    request = GenerationRequest(
        prompt="A claymation conductor leads a claymation orchestra",
        reference_image_url="https://example.com/conductor.jpg",
        audio_style="Symphony Orchestra, dynamic pacing",
        mode=GenerationMode.LIVE,
        credential=api_key,
    )
    for event in controller.generate(request):
        print(event.progress, event.phase.value, event.message)
    controller.close()
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable, Iterator

from .config import ReelworksConfig
from .errors import GenerationFailure, JobCancelledError, JobInProgressError, JobTimeoutError
from .kie_client import KieApiClient
from .models import (
    CancellationToken,
    GalleryEntry,
    GenerationRequest,
    JobEvent,
    JobPhase,
    JobSnapshot,
)
from .pipelines import PipelineRegistry, pipeline_registry
from .progress import ProgressEvent, estimate
from .validation import validate_request

logger = logging.getLogger(__name__)

EventCallback = Callable[[JobEvent], None]


def _failure_phase(error: GenerationFailure) -> JobPhase:
    if isinstance(error, JobCancelledError):
        return JobPhase.CANCELLED
    if isinstance(error, JobTimeoutError):
        return JobPhase.TIMED_OUT
    return JobPhase.FAILED


class GenerationController:
    """Runs one generation job at a time and reports its progress.

    Attributes:
        config: Application configuration
        client: HTTP client shared by every Live job; created (and closed
            by :meth:`close`) when none is given
        gallery: Caller-owned list; each successful result is inserted at
            index 0 and never touched again
    """

    def __init__(
        self,
        config: ReelworksConfig,
        client: KieApiClient | None = None,
        gallery: list[GalleryEntry] | None = None,
        registry: PipelineRegistry | None = None,
    ) -> None:
        self.config = config
        self._owns_client = client is None
        self.client = client if client is not None else KieApiClient(config)
        self.gallery: list[GalleryEntry] = gallery if gallery is not None else []
        self._registry = registry or pipeline_registry

        self._job_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._snapshot = JobSnapshot()
        self._token: CancellationToken | None = None
        self._subscribers: list[EventCallback] = []

    # -- Observation --------------------------------------------------------

    @property
    def snapshot(self) -> JobSnapshot:
        with self._state_lock:
            return self._snapshot

    @property
    def is_busy(self) -> bool:
        return self._job_lock.locked()

    def subscribe(self, callback: EventCallback) -> Callable[[], None]:
        """Register a callback for every emitted event.

        Returns:
            A function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # -- Operations ---------------------------------------------------------

    def validate(self, request: GenerationRequest) -> None:
        """Check a request without side effects (see ``validate_request``)."""
        validate_request(request)

    def cancel(self) -> bool:
        """Cancel the active job, if any.

        Returns:
            True if a job was running and has been signalled
        """
        token = self._token
        if token is None:
            return False
        token.cancel()
        return True

    def close(self) -> None:
        """Cancel any active job and close the HTTP client if this controller created it."""
        self.cancel()
        if self._owns_client:
            self.client.close()

    def generate(
        self, request: GenerationRequest, token: CancellationToken | None = None
    ) -> Iterator[JobEvent]:
        """Start a job and return its event stream.

        Args:
            request: Request to run
            token: Optional cancellation token (one is created if omitted)

        Returns:
            Iterator of events ending with exactly one terminal event

        Raises:
            ValidationError: Before anything else happens
            JobInProgressError: If another job is still active
        """
        self.validate(request)

        if not self._job_lock.acquire(blocking=False):
            logger.warning("Rejected request: a job is already in progress")
            raise JobInProgressError()

        token = token or CancellationToken()
        self._token = token
        logger.info(f"Starting job: {request!r}")

        stream = self._stream(request, token)
        # Prime the generator so the lock is released by its ``finally`` even
        # if the caller abandons the stream before iterating it.
        first = next(stream)
        return itertools.chain([first], stream)

    def run(
        self,
        request: GenerationRequest,
        token: CancellationToken | None = None,
        on_event: EventCallback | None = None,
    ) -> GalleryEntry:
        """Run a job to completion.

        Returns:
            The resolved gallery entry

        Raises:
            GenerationFailure: The terminal failure of the job
        """
        for event in self.generate(request, token):
            if on_event is not None:
                on_event(event)
            if event.error is not None:
                raise event.error
            if event.result is not None:
                return event.result

        raise GenerationFailure("Job stream ended without a terminal event")

    # -- Internals ----------------------------------------------------------

    def _stream(self, request: GenerationRequest, token: CancellationToken) -> Iterator[JobEvent]:
        try:
            yield self._transition(JobPhase.DISPATCHING, ProgressEvent.reset(), "Starting...")

            try:
                pipeline = self._registry.route(request.mode, self.config, self.client)
                for step in pipeline.run(request, token):
                    event = self._transition(step.phase, step.progress, step.message, step.result)
                    if step.result is not None:
                        self.gallery.insert(0, step.result)
                        logger.info(f"Job complete: {step.result.url}")
                    yield event
                    if event.is_terminal:
                        return
            except GenerationFailure as e:
                logger.warning(f"Job ended with {e.kind} error: {e.message}")
                yield self._terminal_failure(e)
            except Exception as e:
                logger.error(f"Job ended with unexpected error: {e}", exc_info=True)
                failure = GenerationFailure(f"Unexpected error: {e}")
                failure.__cause__ = e
                yield self._terminal_failure(failure)
        finally:
            self._token = None
            self._job_lock.release()

    def _transition(
        self,
        phase: JobPhase,
        progress_event: ProgressEvent,
        message: str,
        result: GalleryEntry | None = None,
    ) -> JobEvent:
        with self._state_lock:
            progress = estimate(self._snapshot.progress, progress_event)
            self._snapshot = JobSnapshot(phase=phase, progress=progress, message=message)
        event = JobEvent(progress=progress, phase=phase, message=message, result=result)
        self._notify(event)
        return event

    def _terminal_failure(self, error: GenerationFailure) -> JobEvent:
        phase = _failure_phase(error)
        with self._state_lock:
            progress = self._snapshot.progress
            self._snapshot = JobSnapshot(phase=phase, progress=progress, message=error.message)
        event = JobEvent(progress=progress, phase=phase, message=error.message, error=error)
        self._notify(event)
        return event

    def _notify(self, event: JobEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Event subscriber failed: {e}", exc_info=True)
