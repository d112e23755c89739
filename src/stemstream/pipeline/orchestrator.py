"""Stream-to-image pipeline orchestration.

Drives one detector stream from first header to finished images: reads
blocks on the calling thread, fans the per-block reduction out to a worker
pool, folds results into the aggregator in submission order, and hands the
finished images to exactly one sink.
"""

import time
import logging
from enum import Enum
from pathlib import Path
from typing import Optional

from stemstream.contracts import ContractViolation, SinkFailed, StemStreamError, TaskFailed
from stemstream.detector.reader import EndOfStream, StreamReader
from stemstream.detector.masks import MaskProvider
from stemstream.detector.stem_values import calculate_stem_values
from stemstream.pipeline.worker_pool import WorkerPool
from stemstream.pipeline.aggregator import StemImageAggregator, StemImages
from stemstream.schemas import InternalConfig
from stemstream.setup_directories import get_log_path, get_plot_path
from stemstream.sinks import FileSink, LiveSink, StemImageSink

__all__ = ['PipelineState', 'StemPipeline']

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    """Where the pipeline driver is in the life of one stream."""
    AWAITING_BLOCK = "awaiting_block"
    DRAINING_RESULTS = "draining_results"
    FLUSHED = "flushed"


class StemPipeline:
    """Turns one detector block stream into bright and dark field images.

    **Flow:**

    1. The driver (calling thread) reads one block at a time from the
       stream. Masks are built from the first block's header before its
       task is submitted.

    2. Each block is submitted to the WorkerPool as one
       ``calculate_stem_values`` task. With ``max_in_flight`` set, the
       driver folds the oldest results into the aggregator whenever too
       many are pending, so memory stays bounded on long streams.

    3. At end of stream (clean EOF or a version-0 terminator header), the
       remaining results are drained in submission order and the images
       are finished.

    4. The finished images go to the configured sink once. If the stream
       is truncated or a task fails, the sink is never called. A sink that
       raises is still closed and the error surfaces as ``SinkFailed``.

    An instance runs one stream; calling ``run()`` twice raises.

    Parameters
    ----------
    config : InternalConfig
        Fully resolved configuration.
    output_dirs : dict
        Output directories from ``setup_output_directories()``.
    sink : StemImageSink, optional
        Overrides the sink selected by ``config.output.sink``.
    source : str, Path or binary file object, optional
        Overrides ``config.stream.path``. ``"-"`` reads stdin.

    Examples
    --------
    >>> dirs = setup_output_directories("output")
    >>> pipeline = StemPipeline(config, dirs)
    >>> images = pipeline.run()
    >>> images.bright.shape
    (160, 160)
    """

    def __init__(self, config: InternalConfig, output_dirs: dict,
                 sink: Optional[StemImageSink] = None, source=None):
        self.config = config
        self.output_dirs = output_dirs
        self.stream_id = config.stream.stream_id
        self.source = source if source is not None else config.stream.path
        self.sink = sink if sink is not None else self._create_sink()

        self.masks = MaskProvider(config.detector.inner_radius, config.detector.outer_radius)
        self.aggregator = StemImageAggregator(config.output.width, config.output.height)

        self.state = PipelineState.AWAITING_BLOCK
        self.blocks_submitted = 0
        self.end: Optional[EndOfStream] = None
        self.plot_path: Optional[Path] = None

        self._ran = False
        self._start_time = None

    def _create_sink(self) -> StemImageSink:
        if self.config.output.sink == "live":
            return LiveSink(
                url=self.config.live.url,
                namespace=self.config.live.namespace,
                wait_timeout=self.config.live.wait_timeout,
            )
        return FileSink(self.output_dirs["images"])

    def setup_logging(self) -> Path:
        """Send log records to the console and to ``logs/stem_NNN.log``.

        Replaces any handlers on the root logger. Returns the log file path.
        """
        log_level = getattr(logging, self.config.logging.level, logging.INFO)

        log_path = get_log_path(self.output_dirs, self.stream_id)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        root = logging.getLogger()
        root.setLevel(log_level)
        for handler in root.handlers[:]:
            root.removeHandler(handler)

        fh = logging.FileHandler(log_path)
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        root.addHandler(fh)

        ch = logging.StreamHandler()
        ch.setLevel(log_level)
        ch.setFormatter(formatter)
        root.addHandler(ch)

        logger.info("Logging: level=%s, file=%s", self.config.logging.level, log_path)
        return log_path

    def run(self) -> StemImages:
        """Process the whole stream and emit the finished images.

        Returns
        -------
        StemImages
            The images handed to the sink.

        Raises
        ------
        SourceUnavailable
            The stream could not be opened.
        TruncatedStream
            The stream ended inside a header or payload.
        TaskFailed
            A reduction task raised; the original error is the cause.
        ContractViolation
            A block or result broke a pipeline invariant.
        SinkFailed
            The sink raised while delivering the images; it is still closed.
        RuntimeError
            ``run()`` was already called on this instance.
        """
        if self._ran:
            raise RuntimeError("StemPipeline already ran; create a new instance per stream")
        self._ran = True
        self._start_time = time.time()

        pipeline_cfg = self.config.pipeline
        logger.info("=" * 60)
        logger.info("Starting STEM stream %03d", self.stream_id)
        logger.info("=" * 60)
        logger.info("Source: %s", self.source)
        logger.info("Output: %dx%d, image id %03d, sink=%s", self.config.output.width,
                    self.config.output.height, self.config.output.image_id,
                    self.config.output.sink)

        try:
            with StreamReader(self.source, stream_id=self.stream_id) as reader:
                with WorkerPool(pipeline_cfg.concurrency, pipeline_cfg.max_in_flight) as pool:
                    self._read_blocks(reader, pool)

                    self.state = PipelineState.DRAINING_RESULTS
                    logger.info("Draining %d pending results", pool.pending)
                    self._collect(pool.drain())
        except (StemStreamError, ContractViolation) as e:
            logger.critical("Stream %03d aborted: %s", self.stream_id, e)
            raise

        images = self.aggregator.finish(self.stream_id, self.config.output.image_id)
        self.state = PipelineState.FLUSHED

        try:
            self.sink.emit(images)
        except Exception as e:
            logger.critical("Stream %03d aborted: sink %s failed: %s",
                            self.stream_id, type(self.sink).__name__, e)
            raise SinkFailed(f"Could not deliver images: {e}", stream_id=self.stream_id) from e
        finally:
            self.sink.close()

        if self.config.visualization.enabled:
            self._render_preview(images)

        self._log_summary()
        return images

    def _read_blocks(self, reader: StreamReader, pool: WorkerPool) -> None:
        """Submit one task per block until the stream ends."""
        while True:
            start = reader.offset
            item = reader.read_block()
            if isinstance(item, EndOfStream):
                self.end = item
                logger.info("Stream %03d ended (%s) at offset %d after %d blocks",
                            self.stream_id, item.reason, item.offset, reader.blocks_read)
                return

            masks = self.masks.ensure(item.header)
            pool.submit(calculate_stem_values, item, masks,
                        label=f"block {self.blocks_submitted} @ offset {start}")
            self.blocks_submitted += 1
            logger.debug("Submitted block %d (%d images)",
                         self.blocks_submitted - 1, item.header.images_in_block)

            self._collect(pool.drain_overflow())

    def _collect(self, handles) -> None:
        """Wait on handles in order and fold their results into the images."""
        for handle in handles:
            try:
                values = handle.result()
            except Exception as e:
                raise TaskFailed(
                    f"STEM reduction failed ({handle.label}): {e}",
                    block_index=handle.index,
                    stream_id=self.stream_id,
                ) from e
            self.aggregator.add(values, source=handle.label)

    def _render_preview(self, images: StemImages) -> None:
        # Imported here so file-only runs never load matplotlib
        from stemstream.visualization.plotter import StemPlotter

        self.plot_path = get_plot_path(self.output_dirs, images.stream_id, images.image_id,
                                       self.config.visualization.output_format)
        StemPlotter(self.config).plot(images.to_dataset(), self.plot_path)

    def summary(self) -> dict:
        """Counters for the finished (or aborted) run."""
        elapsed = time.time() - self._start_time if self._start_time else 0.0
        return {
            "stream_id": self.stream_id,
            "state": self.state.value,
            "blocks": self.blocks_submitted,
            "images": self.aggregator.images_written,
            "duplicates": self.aggregator.duplicates,
            "coverage": self.aggregator.coverage,
            "elapsed_seconds": elapsed,
        }

    def _log_summary(self) -> None:
        stats = self.summary()
        logger.info("=" * 60)
        logger.info("Stream %03d complete", self.stream_id)
        logger.info("  Blocks: %d", stats["blocks"])
        logger.info("  Images: %d (coverage %.1f%%)", stats["images"], 100.0 * stats["coverage"])
        if stats["duplicates"]:
            logger.info("  Duplicates: %d", stats["duplicates"])
        logger.info("  Runtime: %.2f s", stats["elapsed_seconds"])
        logger.info("=" * 60)
