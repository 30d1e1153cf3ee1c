"""Simulated pipeline: synthetic progress without any network access.

Useful for UI testing and credential-free trial use.  The pipeline walks a
fixed list of status phrases at a fixed delay, then returns an illustrative
image URL built deterministically from the prompt.

The URL points at a public prompt-to-image service, so it is a best-effort
placeholder: it is not guaranteed to be playable media and carries none of
the Live pipeline's guarantees.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from urllib.parse import quote

from ..errors import JobCancelledError
from ..models import (
    ArtifactKind,
    CancellationToken,
    GalleryEntry,
    GenerationMode,
    GenerationRequest,
    JobPhase,
)
from ..pipelines import PipelineBase, Transition, pipeline_registry
from ..progress import ProgressEvent

logger = logging.getLogger(__name__)

PLACEHOLDER_BASE_URL = "https://image.pollinations.ai/prompt/"
PLACEHOLDER_STYLE_SUFFIX = ", highly detailed, cinematic lighting, 8k resolution, photorealistic"
PLACEHOLDER_QUERY = "?width=1280&height=720&nologo=true"


def build_placeholder_url(prompt: str) -> str:
    """Derive the illustrative artifact URL for a prompt.

    The same prompt always yields the same URL.
    """
    encoded = quote(prompt.strip() + PLACEHOLDER_STYLE_SUFFIX, safe="")
    return f"{PLACEHOLDER_BASE_URL}{encoded}{PLACEHOLDER_QUERY}"


@pipeline_registry.register
class SimulatedPipeline(PipelineBase):
    """Free demo mode with synthetic progress."""

    mode = GenerationMode.SIMULATED
    description = "Free demo mode: synthetic progress and an illustrative preview image"
    artifact_kind = ArtifactKind.IMAGE

    def run(self, request: GenerationRequest, token: CancellationToken) -> Iterator[Transition]:
        messages = list(self.config.simulated_messages)
        total = len(messages)
        delay = self.config.simulated_step_delay

        logger.info(f"Starting simulated generation ({total} steps, {delay}s each)")
        yield Transition(
            JobPhase.DISPATCHING,
            ProgressEvent.dispatched(),
            "Free Demo Mode: preparing simulated synthesis...",
        )

        for step, message in enumerate(messages, start=1):
            if token.wait(delay):
                raise JobCancelledError("Simulated generation cancelled")
            yield Transition(
                JobPhase.PROCESSING,
                ProgressEvent.simulation_step(step, total),
                f"Free Demo Mode: {message}",
            )

        entry = GalleryEntry(
            url=build_placeholder_url(request.prompt),
            kind=self.artifact_kind,
            prompt=request.prompt,
        )
        logger.info("Simulated generation complete")
        yield Transition(
            JobPhase.SUCCEEDED, ProgressEvent.resolved(), "Preview ready", result=entry
        )
