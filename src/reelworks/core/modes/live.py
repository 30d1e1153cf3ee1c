"""Live pipeline: real job submission, status polling, and result resolution."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from ..config import ReelworksConfig
from ..kie_client import KieApiClient
from ..models import (
    ArtifactKind,
    CancellationToken,
    GenerationMode,
    GenerationRequest,
    JobPhase,
    JobState,
)
from ..pipelines import PipelineBase, Transition, pipeline_registry
from ..poller import JobPoller
from ..progress import ProgressEvent
from ..resolver import ResultResolver
from ..submitter import JobSubmitter

logger = logging.getLogger(__name__)

_PENDING_MESSAGES = {
    JobState.WAITING: "Kie AI Engine Status: queued, waiting for a GPU...",
    JobState.PROCESSING: "Kie AI Engine Status: Synthesizing Video + Native Audio...",
}


@pipeline_registry.register
class LivePipeline(PipelineBase):
    """Submits the request to the remote job API and polls it to completion."""

    mode = GenerationMode.LIVE
    description = "Image-to-video generation with native audio via the remote job API"
    artifact_kind = ArtifactKind.VIDEO

    def __init__(self, config: ReelworksConfig, client: KieApiClient | None = None) -> None:
        super().__init__(config, client or KieApiClient(config))
        self.submitter = JobSubmitter(self.client, config.model_id)
        self.poller = JobPoller(self.client, config)
        self.resolver = ResultResolver()

    def run(self, request: GenerationRequest, token: CancellationToken) -> Iterator[Transition]:
        credential = request.credential or ""
        pending = ProgressEvent.poll_pending(
            increment=self.config.poll_progress_increment,
            cap=self.config.poll_progress_cap,
        )

        yield Transition(
            JobPhase.DISPATCHING,
            ProgressEvent.dispatched(),
            "Dispatching Native Audio/Video Task to Kie AI...",
        )

        handle = self.submitter.submit(request)
        yield Transition(JobPhase.WAITING, ProgressEvent.submitted(), f"Task {handle.id} accepted")

        for _attempt, status in self.poller.iter_statuses(handle, credential, token):
            if status.state == JobState.SUCCEEDED:
                yield Transition(
                    JobPhase.PROCESSING,
                    ProgressEvent.remote_succeeded(),
                    "Kie AI Engine Status: finalizing result...",
                )
                entry = self.resolver.resolve(status, self.artifact_kind, prompt=request.prompt)
                yield Transition(
                    JobPhase.SUCCEEDED, ProgressEvent.resolved(), "Video ready", result=entry
                )
                return

            phase = JobPhase.WAITING if status.state == JobState.WAITING else JobPhase.PROCESSING
            yield Transition(phase, pending, _PENDING_MESSAGES[status.state])
