"""Formal pipeline invariants.

This file documents what each stage MUST produce. Use it as a reviewer
anchor and system reference.
"""

PIPELINE_INVARIANTS = {
    "reader": [
        "Header record is exactly 1024 little-endian uint32 words",
        "Clean end of stream is only reported by the pre-header peek",
        "Any short read after the peek is TruncatedStream",
        "A version == 0 header ends the stream and carries no payload",
        "Payload is exactly rows * columns * images_in_block uint16 samples",
    ],

    "masks": [
        "Built at most once per stream, from the first block's dimensions",
        "Published before the first task that reads them is submitted",
        "Read-only after construction",
        "Bright and dark masks are disjoint",
    ],

    "compute": [
        "One STEMValues per image, in the block's image order",
        "Sums accumulate as uint64",
        "No side effects, no references kept into the block",
    ],

    "worker_pool": [
        "At most `concurrency` tasks execute at once",
        "Handles drain in submission order regardless of completion order",
        "Task exceptions surface through the handle",
    ],

    "aggregator": [
        "Runs on the driver thread only",
        "Writes image number n at flat index n - 1",
        "Last write wins for duplicate image numbers",
    ],

    "sink": [
        "Receives the finished images exactly once",
        "Never called when the run fails",
    ],
}
