"""Base classes and registry for generation pipelines.

Each :class:`~reelworks.core.models.GenerationMode` is served by exactly one
pipeline.  The registry is the only place that chooses between them: adding a
mode means registering a new :class:`PipelineBase` subclass, never editing an
existing pipeline.

Pipeline Contract
-----------------
``PipelineBase.run(request, token)`` is a generator of :class:`Transition`
objects.  Each transition names the caller-visible phase, the progress event
that the controller feeds to :func:`~reelworks.core.progress.estimate`, and a
human-readable message.  The last transition of a successful run carries the
resolved :class:`~reelworks.core.models.GalleryEntry`.  Failures are raised
as :class:`~reelworks.core.errors.GenerationFailure` subclasses.

Usage Example
-------------
    >>> from reelworks.core.pipelines import pipeline_registry
    >>> from reelworks.core.config import config
    >>>
    >>> pipeline_registry.list_available()
    ['live', 'simulated']
    >>> pipeline = pipeline_registry.route(GenerationMode.SIMULATED, config)
    >>> for transition in pipeline.run(request, CancellationToken()):
    ...     print(transition.phase, transition.message)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from .config import ReelworksConfig
from .kie_client import KieApiClient
from .models import (
    ArtifactKind,
    CancellationToken,
    GalleryEntry,
    GenerationMode,
    GenerationRequest,
    JobPhase,
)
from .progress import ProgressEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """One step reported by a pipeline."""

    phase: JobPhase
    progress: ProgressEvent
    message: str = ""
    result: GalleryEntry | None = None


class PipelineBase(ABC):
    """Abstract base class for generation pipelines.

    Attributes
    ----------
    mode : GenerationMode
        Mode this pipeline serves (registry key)
    description : str
        Brief description shown by ``/api/config``
    artifact_kind : ArtifactKind
        Media type of the artifacts this pipeline produces
    config : ReelworksConfig
        Configuration object
    """

    mode: GenerationMode
    description: str = "Base pipeline"
    artifact_kind: ArtifactKind = ArtifactKind.IMAGE

    def __init__(self, config: ReelworksConfig, client: KieApiClient | None = None) -> None:
        self.config = config
        self.client = client

    @abstractmethod
    def run(self, request: GenerationRequest, token: CancellationToken) -> Iterator[Transition]:
        """Run a validated request to completion.

        Args:
            request: Request that already passed validation
            token: Cancellation token checked between steps

        Yields:
            Transitions in order; the last one carries the result

        Raises:
            GenerationFailure: Any typed lifecycle failure
        """

    def get_info(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "description": self.description,
            "artifact_kind": self.artifact_kind.value,
        }


class PipelineRegistry:
    """Maps generation modes to pipeline classes."""

    def __init__(self) -> None:
        self._pipelines: dict[GenerationMode, type[PipelineBase]] = {}

    def register(self, pipeline_class: type[PipelineBase]) -> type[PipelineBase]:
        """Register a pipeline class under its ``mode``.

        Returns the class unchanged so this can be used as a decorator.
        """
        mode = pipeline_class.mode
        if mode in self._pipelines:
            logger.warning(f"Pipeline for mode '{mode.value}' is already registered, overwriting")

        self._pipelines[mode] = pipeline_class
        logger.debug(f"Registered pipeline: {mode.value} -> {pipeline_class.__name__}")
        return pipeline_class

    def route(
        self,
        mode: GenerationMode | str,
        config: ReelworksConfig,
        client: KieApiClient | None = None,
    ) -> PipelineBase:
        """Instantiate the pipeline registered for ``mode``.

        Raises
        ------
        KeyError
            If no pipeline is registered for the mode
        """
        try:
            mode = GenerationMode(mode)
        except ValueError:
            pass

        if mode not in self._pipelines:
            available = ", ".join(self.list_available())
            raise KeyError(
                f"No pipeline registered for mode '{mode}'. Available modes: {available}"
            )

        return self._pipelines[mode](config=config, client=client)

    def get_pipeline_class(self, mode: GenerationMode) -> type[PipelineBase] | None:
        return self._pipelines.get(mode)

    def list_available(self) -> list[str]:
        return [mode.value for mode in self._pipelines]

    def list_modes(self) -> list[GenerationMode]:
        return list(self._pipelines)

    def get_pipeline_info(self, mode: GenerationMode) -> dict[str, Any] | None:
        pipeline_class = self._pipelines.get(mode)
        if pipeline_class is None:
            return None
        return {
            "mode": pipeline_class.mode.value,
            "description": pipeline_class.description,
            "artifact_kind": pipeline_class.artifact_kind.value,
        }


# Global pipeline registry instance
pipeline_registry = PipelineRegistry()
