"""Data models for generation requests, job state, and lifecycle events."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from .errors import GenerationFailure

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GenerationMode(str, Enum):
    """Which pipeline handles a request."""

    SIMULATED = "simulated"
    LIVE = "live"


class ArtifactKind(str, Enum):
    """Media type of a resolved artifact."""

    IMAGE = "image"
    VIDEO = "video"


class JobState(str, Enum):
    """Remote job states as reported by the status endpoint."""

    WAITING = "waiting"
    PROCESSING = "processing"
    SUCCEEDED = "success"
    FAILED = "fail"


class JobPhase(str, Enum):
    """Caller-visible phase of the current job."""

    IDLE = "idle"
    DISPATCHING = "dispatching"
    WAITING = "waiting"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_PHASES


_TERMINAL_PHASES = frozenset(
    {JobPhase.SUCCEEDED, JobPhase.FAILED, JobPhase.CANCELLED, JobPhase.TIMED_OUT}
)


@dataclass(frozen=True)
class GenerationRequest:
    """A single image + prompt + audio-style generation request.

    Instances are immutable once created.  ``credential`` is only required
    when ``mode`` is :attr:`GenerationMode.LIVE`.
    """

    prompt: str
    reference_image_url: str
    audio_style: str = ""
    mode: GenerationMode = GenerationMode.SIMULATED
    credential: str | None = None

    def __repr__(self) -> str:
        # Keep the bearer credential out of logs.
        return (
            f"GenerationRequest(mode={self.mode.value}, "
            f"prompt={self.prompt[:40]!r}, "
            f"reference_image_url={self.reference_image_url!r}, "
            f"credential={'***' if self.credential else None})"
        )


@dataclass(frozen=True)
class JobHandle:
    """Identifier of a submitted remote job."""

    id: str
    created_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class JobStatus:
    """Tagged variant over the remote job state.

    Attributes:
        state: Remote job state.
        artifact_urls: Result URLs (only meaningful for SUCCEEDED).
        reason: Remote failure message (only meaningful for FAILED).
        result_decoded: False when a SUCCEEDED status carried a result
            document that could not be decoded.
    """

    state: JobState
    artifact_urls: tuple[str, ...] = ()
    reason: str | None = None
    result_decoded: bool = True

    @classmethod
    def waiting(cls) -> JobStatus:
        return cls(JobState.WAITING)

    @classmethod
    def processing(cls) -> JobStatus:
        return cls(JobState.PROCESSING)

    @classmethod
    def succeeded(cls, artifact_urls, result_decoded: bool = True) -> JobStatus:
        return cls(
            JobState.SUCCEEDED,
            artifact_urls=tuple(artifact_urls),
            result_decoded=result_decoded,
        )

    @classmethod
    def failed(cls, reason: str) -> JobStatus:
        return cls(JobState.FAILED, reason=reason)

    @property
    def is_terminal(self) -> bool:
        return self.state in (JobState.SUCCEEDED, JobState.FAILED)


@dataclass(frozen=True)
class GalleryEntry:
    """A resolved artifact, ready for the caller's gallery list."""

    url: str
    kind: ArtifactKind
    prompt: str = ""
    created_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "kind": self.kind.value,
            "prompt": self.prompt,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class JobEvent:
    """One update in the stream returned by ``GenerationController.generate``.

    Terminal events carry exactly one of ``result`` or ``error``.
    """

    progress: int
    phase: JobPhase
    message: str = ""
    result: GalleryEntry | None = None
    error: GenerationFailure | None = None

    @property
    def is_terminal(self) -> bool:
        return self.phase.is_terminal

    def to_dict(self) -> dict:
        return {
            "progress": self.progress,
            "status": self.phase.value,
            "message": self.message,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass(frozen=True)
class JobSnapshot:
    """Consistent ``(phase, progress, message)`` view of the active job."""

    phase: JobPhase = JobPhase.IDLE
    progress: int = 0
    message: str = ""

    def to_dict(self) -> dict:
        return {"status": self.phase.value, "progress": self.progress, "message": self.message}


class CancellationToken:
    """Cooperative cancellation flag shared between a caller and a pipeline.

    The pipeline waits on the token instead of sleeping, so cancelling wakes
    a pending inter-poll wait immediately.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        logger.info("Cancellation requested")
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds.

        Returns:
            True if the token was cancelled during (or before) the wait.
        """
        if timeout <= 0:
            return self._event.is_set()
        return self._event.wait(timeout)
