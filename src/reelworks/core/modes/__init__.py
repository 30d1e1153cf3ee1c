"""Generation pipelines, one per mode.

Importing this package registers every pipeline with
:data:`reelworks.core.pipelines.pipeline_registry`.
"""

from .live import LivePipeline
from .simulated import SimulatedPipeline

__all__ = ["LivePipeline", "SimulatedPipeline"]
