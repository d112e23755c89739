"""`stemstream` - Streaming STEM image reconstruction from detector blocks.

Subpackages:
- detector: Stream reader/writer, annular masks, STEM value reduction
- pipeline: Worker pool, aggregator, orchestrator
- sinks: File and live (socket.io) outputs
- schemas: Pydantic configuration
- visualization: Preview plotting
"""

__version__ = "0.1.0"
