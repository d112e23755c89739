"""Assemble per-image STEM values into dense bright/dark images.

The aggregator is the single writer of the output images. It runs on the
pipeline driver thread only, so it needs no locking.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np
import xarray as xr

from stemstream.contracts import assert_image_number_in_range

__all__ = ['StemImages', 'StemImageAggregator']

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class StemImages:
    """Finished bright and dark field images for one stream.

    ``bright`` and ``dark`` are uint64 arrays of shape ``(height, width)``
    in row-major scan order: image number ``n`` sits at flat index ``n - 1``.
    """
    stream_id: int
    image_id: int
    width: int
    height: int
    bright: np.ndarray
    dark: np.ndarray

    def to_dataset(self) -> xr.Dataset:
        """Wrap both images in an xarray Dataset on ``(y, x)``."""
        coords = {"y": np.arange(self.height), "x": np.arange(self.width)}
        return xr.Dataset(
            {
                "bright": (("y", "x"), self.bright, {"long_name": "Bright field intensity"}),
                "dark": (("y", "x"), self.dark, {"long_name": "Dark field intensity"}),
            },
            coords=coords,
            attrs={"stream_id": self.stream_id, "image_id": self.image_id},
        )


class StemImageAggregator:
    """Writes STEM values into two zero-filled uint64 images.

    Writes are keyed by image number, not arrival order, so the result
    does not depend on how tasks were scheduled. Writing the same image
    number twice keeps the last value; duplicates are counted and logged.

    Parameters
    ----------
    width, height : int
        Scan dimensions. Image numbers must lie in ``[1, width * height]``.
    """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.num_pixels = width * height

        self._bright = np.zeros(self.num_pixels, dtype=np.uint64)
        self._dark = np.zeros(self.num_pixels, dtype=np.uint64)
        self._written = np.zeros(self.num_pixels, dtype=bool)

        self.images_written = 0
        self.duplicates = 0
        self._finished = False

    @property
    def coverage(self) -> float:
        """Fraction of output pixels written at least once."""
        return float(np.count_nonzero(self._written)) / self.num_pixels

    def add(self, values: Iterable, source: Optional[str] = None) -> int:
        """Write one block's STEM values. Returns the number of values written.

        ``source`` names the block in contract violation messages.

        Raises
        ------
        ContractViolation
            If an image number is outside ``[1, width * height]``.
        """
        if self._finished:
            raise RuntimeError("Aggregator already finished")

        count = 0
        for value in values:
            assert_image_number_in_range(value.image_number, self.num_pixels, source)
            index = value.image_number - 1

            if self._written[index]:
                self.duplicates += 1
                logger.warning("Duplicate image number %d, keeping latest value",
                               value.image_number)
            self._written[index] = True

            self._bright[index] = value.bright
            self._dark[index] = value.dark
            count += 1

        self.images_written += count
        return count

    def finish(self, stream_id: int, image_id: int) -> StemImages:
        """Freeze the images. The aggregator accepts no writes afterwards."""
        self._finished = True
        self._bright.flags.writeable = False
        self._dark.flags.writeable = False

        logger.info("Aggregated %d images (coverage %.1f%%, %d duplicates)",
                    self.images_written, 100.0 * self.coverage, self.duplicates)

        return StemImages(
            stream_id=stream_id,
            image_id=image_id,
            width=self.width,
            height=self.height,
            bright=self._bright.reshape(self.height, self.width),
            dark=self._dark.reshape(self.height, self.width),
        )
