"""Mask contract.

Enforces that the published detector masks match the pixel grid of the block
a compute task is about to reduce.
"""

import numpy as np
from stemstream.contracts.base import require


def assert_masks_match(masks, rows: int, columns: int) -> None:
    """Enforce mask contract.

    Called inside each compute task. Masks are built once from the first
    block, so a later block with different dimensions fails here and the
    failure surfaces through that task's result handle.

    Raises
    ------
    ContractViolation
        If either mask is not a boolean ``rows x columns`` grid.
    """
    for name in ("bright", "dark"):
        mask = getattr(masks, name)
        require(
            mask.dtype == np.bool_,
            f"Mask contract violated: {name} mask dtype is {mask.dtype}, expected bool"
        )
        require(
            mask.shape == (rows, columns),
            f"Mask contract violated: {name} mask shape {mask.shape} "
            f"does not match block grid ({rows}, {columns})"
        )
