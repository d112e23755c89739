"""Per-image STEM value reduction.

Pure function run by the worker pool: one block in, one STEMValues per
image out. Numpy releases the GIL while summing, so several blocks reduce
in parallel on a thread pool.
"""

from typing import NamedTuple

import numpy as np

from stemstream.contracts import assert_masks_match

__all__ = ['STEMValues', 'calculate_stem_values']


class STEMValues(NamedTuple):
    """Bright and dark field sums for one acquired image."""
    image_number: int
    bright: int
    dark: int


def calculate_stem_values(block, masks) -> list[STEMValues]:
    """Reduce every image of a block to its bright and dark field sums.

    Parameters
    ----------
    block : Block
        Decoded block. Only read, never modified.
    masks : DetectorMasks
        Published masks; must match the block's frame grid.

    Returns
    -------
    list of STEMValues
        One entry per image, in the block's image order. Sums are uint64
        accumulations returned as Python ints.

    Raises
    ------
    ContractViolation
        If the masks do not match the block's ``rows x columns``.
    """
    header = block.header
    assert_masks_match(masks, header.rows, header.columns)

    images = block.pixels.reshape(header.images_in_block, header.pixels_per_image)
    bright = images[:, masks.bright.ravel()].sum(axis=1, dtype=np.uint64)
    dark = images[:, masks.dark.ravel()].sum(axis=1, dtype=np.uint64)

    return [
        STEMValues(image_number, int(b), int(d))
        for image_number, b, d in zip(header.image_numbers, bright, dark)
    ]
