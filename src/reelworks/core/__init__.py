"""Core job lifecycle for Reel-Works Video Studio.

This package provides the asynchronous job lifecycle controller that turns a
generation request (reference image, prompt, audio-style hint) into a
resolved artifact URL or a typed failure:

- **GenerationController**: Caller-facing entry point (validate / generate / run)
- **pipeline_registry**: Routes each GenerationMode to its pipeline
- **SimulatedPipeline**: Credential-free demo with synthetic progress
- **LivePipeline**: Remote submission, bounded polling, and result resolution
- **ReelworksConfig**: Configuration management using Pydantic Settings
- **config**: Global configuration instance (loads from environment variables)

Architecture Overview
---------------------
1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with REELWORKS_ in .env files

2. **Lifecycle Layer** (controller.py, pipelines.py, modes/):
   - Request validation before any network action
   - Mode routing through the pipeline registry
   - Progress estimation as a pure function of lifecycle events

3. **Remote Job Layer** (kie_client.py, submitter.py, poller.py, resolver.py):
   - HTTP transport with bearer credentials
   - Job creation, status polling, and artifact extraction

Usage Example
-------------
    from reelworks.core import GenerationController, GenerationRequest, config

    controller = GenerationController(config)
    entry = controller.run(
        GenerationRequest(
            prompt="a paper boat drifting through a neon city",
            reference_image_url="https://example.com/boat.jpg",
        )
    )
    print(entry.url)
"""

from reelworks.core.config import ReelworksConfig, config
from reelworks.core.controller import GenerationController
from reelworks.core.errors import (
    EmptyResultError,
    GenerationError,
    GenerationFailure,
    JobCancelledError,
    JobInProgressError,
    JobTimeoutError,
    PollError,
    SubmissionError,
    ValidationError,
)
from reelworks.core.models import (
    ArtifactKind,
    CancellationToken,
    GalleryEntry,
    GenerationMode,
    GenerationRequest,
    JobEvent,
    JobPhase,
)
# Importing the modes package registers every pipeline
from reelworks.core.modes import LivePipeline, SimulatedPipeline  # noqa: F401
from reelworks.core.pipelines import PipelineBase, pipeline_registry

__all__ = [
    "ArtifactKind",
    "CancellationToken",
    "EmptyResultError",
    "GalleryEntry",
    "GenerationController",
    "GenerationError",
    "GenerationFailure",
    "GenerationMode",
    "GenerationRequest",
    "JobCancelledError",
    "JobEvent",
    "JobInProgressError",
    "JobPhase",
    "JobTimeoutError",
    "PipelineBase",
    "PollError",
    "ReelworksConfig",
    "SubmissionError",
    "ValidationError",
    "config",
    "pipeline_registry",
]
