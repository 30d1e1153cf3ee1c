"""Reel-Works Video Studio - image + prompt + audio-style to video generation."""

__version__ = "0.1.0"

from reelworks.core.config import ReelworksConfig, config
from reelworks.core.controller import GenerationController
from reelworks.core.pipelines import PipelineBase, pipeline_registry

# Import pipelines to ensure they're registered
from reelworks.core.modes import LivePipeline, SimulatedPipeline  # noqa: F401

__all__ = [
    "GenerationController",
    "PipelineBase",
    "pipeline_registry",
    "ReelworksConfig",
    "config",
    "LivePipeline",
    "SimulatedPipeline",
]
