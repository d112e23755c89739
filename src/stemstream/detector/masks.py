"""Bright and dark field detector masks.

A mask is a boolean pixel-membership grid over one detector frame. The
bright field mask is a centered disk, the dark field mask the annulus
around it. Both are built once per stream and never modified afterwards:
worker threads read them concurrently without locks.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

__all__ = ['DetectorMasks', 'MaskProvider', 'create_annular_mask']

logger = logging.getLogger(__name__)


def create_annular_mask(rows: int, columns: int, inner_radius: float,
                        outer_radius: float) -> np.ndarray:
    """Create a read-only annular mask centered on the frame.

    A pixel belongs to the mask when its distance ``r`` from the center
    pixel ``(rows // 2, columns // 2)`` satisfies
    ``inner_radius <= r < outer_radius``. With ``inner_radius == 0`` this
    is a filled disk. Adjacent rings sharing a radius never overlap.

    Parameters
    ----------
    rows, columns : int
        Frame dimensions in pixels.
    inner_radius, outer_radius : float
        Ring bounds in pixels, ``0 <= inner_radius <= outer_radius``.

    Returns
    -------
    np.ndarray
        Boolean array of shape ``(rows, columns)`` with writes disabled.
    """
    if inner_radius < 0 or outer_radius < inner_radius:
        raise ValueError(
            f"Invalid mask radii: inner={inner_radius}, outer={outer_radius}"
        )

    y, x = np.ogrid[:rows, :columns]
    dy = y - rows // 2
    dx = x - columns // 2
    dist_sq = dx * dx + dy * dy

    mask = (dist_sq >= inner_radius * inner_radius) & (dist_sq < outer_radius * outer_radius)
    mask.flags.writeable = False
    return mask


@dataclass(frozen=True, eq=False)
class DetectorMasks:
    """The published pair of masks for one stream."""
    rows: int
    columns: int
    bright: np.ndarray
    dark: np.ndarray

    @property
    def bright_pixels(self) -> int:
        return int(np.count_nonzero(self.bright))

    @property
    def dark_pixels(self) -> int:
        return int(np.count_nonzero(self.dark))


class MaskProvider:
    """Builds the detector masks lazily from the first block's header.

    ``ensure()`` is called on the producer thread before each submit, so
    the masks exist before any task that reads them is handed to the pool.
    Later blocks never trigger a rebuild, even if their dimensions differ.

    Parameters
    ----------
    inner_radius : float
        Bright/dark boundary in pixels.
    outer_radius : float
        Outer edge of the dark field annulus in pixels.
    """

    def __init__(self, inner_radius: float, outer_radius: float):
        self.inner_radius = inner_radius
        self.outer_radius = outer_radius
        self._masks: Optional[DetectorMasks] = None
        self._mismatch_logged = False

    @property
    def masks(self) -> Optional[DetectorMasks]:
        return self._masks

    def ensure(self, header) -> DetectorMasks:
        """Return the stream's masks, building them on the first call."""
        if self._masks is None:
            rows, columns = header.rows, header.columns
            self._masks = DetectorMasks(
                rows=rows,
                columns=columns,
                bright=create_annular_mask(rows, columns, 0, self.inner_radius),
                dark=create_annular_mask(rows, columns, self.inner_radius, self.outer_radius),
            )
            logger.info(
                "Masks built for %dx%d frames: bright=%d px (r<%s), dark=%d px (%s<=r<%s)",
                rows, columns, self._masks.bright_pixels, self.inner_radius,
                self._masks.dark_pixels, self.inner_radius, self.outer_radius,
            )
        elif (header.rows, header.columns) != (self._masks.rows, self._masks.columns):
            if not self._mismatch_logged:
                logger.warning(
                    "Block is %dx%d but masks were built for %dx%d; masks are not rebuilt",
                    header.rows, header.columns, self._masks.rows, self._masks.columns,
                )
                self._mismatch_logged = True
        return self._masks
