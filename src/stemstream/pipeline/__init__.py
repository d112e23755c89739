"""Pipeline modules.

- worker_pool: Bounded thread pool with ordered result handles
- aggregator: Per-image values into bright/dark images
- orchestrator: Stream-to-image driver
"""

from stemstream.pipeline.worker_pool import TaskHandle, WorkerPool
from stemstream.pipeline.aggregator import StemImageAggregator, StemImages
from stemstream.pipeline.orchestrator import PipelineState, StemPipeline

__all__ = [
    "TaskHandle",
    "WorkerPool",
    "StemImageAggregator",
    "StemImages",
    "PipelineState",
    "StemPipeline",
]
