"""Progress estimation for remote jobs.

The remote job API does not report fractional progress, so the value shown
to the user is synthesised locally from lifecycle events.  :func:`estimate`
is a pure function: given the current progress and an event it returns the
new progress, and never decreases the value except on an explicit
:attr:`ProgressEventKind.RESET`.

Progress landmarks
------------------
==========================  ==========================================
Event                       Resulting progress
==========================  ==========================================
RESET                       0
DISPATCHED                  10
SUBMITTED                   20
POLL_PENDING                current + increment, clamped to the cap
SIMULATION_STEP (i of N)    10 + round(i * 75 / N)
REMOTE_SUCCEEDED            95
RESOLVED                    100
==========================  ==========================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DISPATCH_BASELINE = 10
SUBMIT_BASELINE = 20
SIMULATION_SPAN = 75
REMOTE_SUCCESS_PROGRESS = 95
COMPLETE = 100


class ProgressEventKind(str, Enum):
    RESET = "reset"
    DISPATCHED = "dispatched"
    SUBMITTED = "submitted"
    POLL_PENDING = "poll_pending"
    SIMULATION_STEP = "simulation_step"
    REMOTE_SUCCEEDED = "remote_succeeded"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class ProgressEvent:
    """A lifecycle event that may move the progress bar.

    Attributes:
        kind: What happened.
        step: 1-based step index (SIMULATION_STEP only).
        total_steps: Number of simulated steps (SIMULATION_STEP only).
        increment: Progress added per pending poll (POLL_PENDING only).
        cap: Ceiling for pending polls (POLL_PENDING only).
    """

    kind: ProgressEventKind
    step: int = 0
    total_steps: int = 0
    increment: int = 5
    cap: int = 90

    @classmethod
    def reset(cls) -> ProgressEvent:
        return cls(ProgressEventKind.RESET)

    @classmethod
    def dispatched(cls) -> ProgressEvent:
        return cls(ProgressEventKind.DISPATCHED)

    @classmethod
    def submitted(cls) -> ProgressEvent:
        return cls(ProgressEventKind.SUBMITTED)

    @classmethod
    def poll_pending(cls, increment: int = 5, cap: int = 90) -> ProgressEvent:
        return cls(ProgressEventKind.POLL_PENDING, increment=increment, cap=cap)

    @classmethod
    def simulation_step(cls, step: int, total_steps: int) -> ProgressEvent:
        return cls(ProgressEventKind.SIMULATION_STEP, step=step, total_steps=total_steps)

    @classmethod
    def remote_succeeded(cls) -> ProgressEvent:
        return cls(ProgressEventKind.REMOTE_SUCCEEDED)

    @classmethod
    def resolved(cls) -> ProgressEvent:
        return cls(ProgressEventKind.RESOLVED)


def _clamp(value: int) -> int:
    return max(0, min(COMPLETE, value))


def estimate(current: int, event: ProgressEvent) -> int:
    """Derive the new progress value from the current value and an event.

    Args:
        current: Current progress (0-100)
        event: Lifecycle event

    Returns:
        New progress in [0, 100]; never lower than ``current`` unless the
        event is RESET.
    """
    current = _clamp(current)
    kind = event.kind

    if kind == ProgressEventKind.RESET:
        return 0

    if kind == ProgressEventKind.DISPATCHED:
        target = DISPATCH_BASELINE
    elif kind == ProgressEventKind.SUBMITTED:
        target = SUBMIT_BASELINE
    elif kind == ProgressEventKind.POLL_PENDING:
        # A pending poll may nudge up to the cap but never pull progress down
        # if something already pushed it past the cap.
        target = min(current + event.increment, event.cap)
    elif kind == ProgressEventKind.SIMULATION_STEP:
        if event.total_steps <= 0:
            raise ValueError("total_steps must be positive for a simulation step")
        step = max(0, min(event.step, event.total_steps))
        target = DISPATCH_BASELINE + round(step * SIMULATION_SPAN / event.total_steps)
    elif kind == ProgressEventKind.REMOTE_SUCCEEDED:
        target = REMOTE_SUCCESS_PROGRESS
    elif kind == ProgressEventKind.RESOLVED:
        target = COMPLETE
    else:
        raise ValueError(f"Unknown progress event: {kind}")

    return max(current, _clamp(target))
