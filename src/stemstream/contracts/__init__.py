"""Pipeline contracts: fail-fast enforcement of stage invariants.

Contracts fail immediately and loudly when a stage does not produce its
promised invariants. Stream errors (truncation, missing source) live here
too so callers can handle every fatal condition from one import.

Key principle:
- Pydantic validates config correctness
- Contracts validate pipeline correctness
- The reader reports stream failures
"""

from stemstream.contracts.failure import (
    ContractViolation,
    SinkFailed,
    SourceUnavailable,
    StemStreamError,
    TaskFailed,
    TruncatedStream,
)
from stemstream.contracts.base import require
from stemstream.contracts.header import assert_header_valid
from stemstream.contracts.masks import assert_masks_match
from stemstream.contracts.output import assert_image_number_in_range

__all__ = [
    "ContractViolation",
    "SinkFailed",
    "SourceUnavailable",
    "StemStreamError",
    "TaskFailed",
    "TruncatedStream",
    "require",
    "assert_header_valid",
    "assert_masks_match",
    "assert_image_number_in_range",
]
