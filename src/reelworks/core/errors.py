"""Exception taxonomy for the job lifecycle.

Every failure that can end a generation job derives from
:class:`GenerationFailure`.  Messages are intended to be shown directly to
the user, so they carry the remote service's own wording when available.

None of these errors is retried automatically.  Every failure ends the
current job and the caller must submit a fresh request.
"""

from __future__ import annotations


class GenerationFailure(Exception):
    """Base class for all job lifecycle failures."""

    #: Short machine-readable identifier used in serialised events.
    kind: str = "failure"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Serialise the failure for JSON transport."""
        return {"kind": self.kind, "message": self.message}


class ValidationError(GenerationFailure):
    """A required request field is missing.

    Raised before any network action takes place.

    Attributes:
        missing_field: Name of the first missing field in validation order.
    """

    kind = "validation"

    def __init__(self, missing_field: str, message: str | None = None) -> None:
        super().__init__(message or f"Missing required field: {missing_field}")
        self.missing_field = missing_field

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["missing_field"] = self.missing_field
        return data


class SubmissionError(GenerationFailure):
    """The remote service rejected the job creation call."""

    kind = "submission"


class PollError(GenerationFailure):
    """A status check was malformed, rejected, or reported a protocol violation."""

    kind = "poll"


class UnknownStateError(PollError):
    """The status endpoint reported a state outside the known protocol.

    Attributes:
        state: The raw state value received.
    """

    def __init__(self, state: object) -> None:
        super().__init__(f"Polling Error: unexpected job state {state!r}")
        self.state = state


class GenerationError(GenerationFailure):
    """The remote service explicitly reported the job as failed."""

    kind = "generation"


class EmptyResultError(GenerationFailure):
    """The remote job succeeded but produced no usable artifact URL.

    Attributes:
        reason: ``"empty"`` when the result document decoded but listed no
            URLs, ``"undecodable"`` when the result document itself could not
            be decoded.
    """

    kind = "empty_result"

    def __init__(self, reason: str = "empty", message: str | None = None) -> None:
        if message is None:
            if reason == "undecodable":
                message = "Result returned but its result document could not be decoded."
            else:
                message = "Result returned but no video URL found."
        super().__init__(message)
        self.reason = reason

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["reason"] = self.reason
        return data


class JobTimeoutError(GenerationFailure, TimeoutError):
    """Polling exceeded its attempt count or wall-clock budget."""

    kind = "timeout"


class JobCancelledError(GenerationFailure):
    """The caller cancelled the job before it reached a terminal state."""

    kind = "cancelled"


class JobInProgressError(GenerationFailure):
    """A new request was submitted while another job is still active."""

    kind = "busy"

    def __init__(self, message: str = "A generation job is already in progress.") -> None:
        super().__init__(message)
