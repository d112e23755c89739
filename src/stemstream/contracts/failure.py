"""Failure types for stream, sink and contract errors.

Everything here is fatal to a run. There is no skip-and-continue mode: a
corrupted stream position cannot be resynchronized. Stream errors describe
what happened to the input; contract violations describe a broken pipeline
invariant.
"""

from typing import Optional


def _with_context(message: str, stream_id: Optional[int], offset: Optional[int]) -> str:
    context = []
    if stream_id is not None:
        context.append(f"stream={stream_id:03d}")
    if offset is not None:
        context.append(f"offset={offset}")
    if context:
        return f"{message} ({', '.join(context)})"
    return message


class ContractViolation(RuntimeError):
    """Raised when a pipeline contract is violated.

    This indicates malformed input that slipped past the codec (impossible
    header values) or a pipeline bug (mask/image shape mismatch, image number
    out of range). It is never a recoverable condition.

    Key distinction:
    - ValueError: User/config error (handled by Pydantic)
    - ContractViolation: Broken invariant between stages
    - StemStreamError: The input stream or the output sink failed
    """

    def __init__(self, message: str, stream_id: Optional[int] = None,
                 offset: Optional[int] = None):
        self.stream_id = stream_id
        self.offset = offset
        super().__init__(_with_context(message, stream_id, offset))


class StemStreamError(RuntimeError):
    """Base class for fatal stream-level failures.

    Carries enough context (stream id, byte offset) to diagnose a failed run
    offline from the log alone.
    """

    def __init__(self, message: str, stream_id: Optional[int] = None,
                 offset: Optional[int] = None):
        self.stream_id = stream_id
        self.offset = offset
        super().__init__(_with_context(message, stream_id, offset))


class SourceUnavailable(StemStreamError):
    """The input stream could not be opened. Reported immediately, no retry."""
    pass


class TruncatedStream(StemStreamError):
    """Fewer bytes remained than a committed record boundary requires.

    Distinct from a clean end of stream: once a header has started, the
    producer has promised a whole record.
    """
    pass


class TaskFailed(StemStreamError):
    """A compute task raised inside the worker pool.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, message: str, block_index: int,
                 stream_id: Optional[int] = None):
        self.block_index = block_index
        super().__init__(f"{message} [block {block_index}]", stream_id=stream_id)


class SinkFailed(StemStreamError):
    """The finished images could not be delivered.

    Wraps whatever the sink raised (disk errors, socket.io connection
    errors); the original exception is chained as ``__cause__``.
    """
    pass
