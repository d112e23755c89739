"""Write detector block streams in the wire record format.

Reference writer for the reader in ``stemstream.detector.reader``. Used to
build synthetic acquisitions and replay test data.
"""

import logging
from pathlib import Path
from typing import BinaryIO, Sequence, Union

import numpy as np

from stemstream.detector.reader import (
    HEADER_DTYPE,
    HEADER_WORDS,
    IMAGE_NUMBER_CAPACITY,
    IMAGE_NUMBERS_OFFSET,
    PIXEL_DTYPE,
    Header,
)

__all__ = ['encode_header', 'StreamWriter']

logger = logging.getLogger(__name__)


def encode_header(header: Header) -> bytes:
    """Encode a header as one 4096-byte record.

    Unused words (reserved fields and the tail after the image numbers)
    are zero.
    """
    if len(header.image_numbers) > IMAGE_NUMBER_CAPACITY:
        raise ValueError(
            f"Cannot encode {len(header.image_numbers)} image numbers, "
            f"header holds at most {IMAGE_NUMBER_CAPACITY}"
        )

    words = np.zeros(HEADER_WORDS, dtype=HEADER_DTYPE)
    words[:5] = (
        header.images_in_block,
        header.rows,
        header.columns,
        header.version,
        header.timestamp,
    )
    n = len(header.image_numbers)
    words[IMAGE_NUMBERS_OFFSET:IMAGE_NUMBERS_OFFSET + n] = header.image_numbers
    return words.tobytes()


class StreamWriter:
    """Sequential writer for detector block streams.

    Parameters
    ----------
    target : str, Path, or binary file object
        Output path or an open binary stream. Streams passed in by the
        caller are flushed but not closed.
    """

    def __init__(self, target: Union[str, Path, BinaryIO]):
        self._owns_stream = isinstance(target, (str, Path))
        self._stream = open(target, "wb") if self._owns_stream else target
        self.blocks_written = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def close(self):
        if self._owns_stream:
            self._stream.close()
        else:
            self._stream.flush()

    def write_block(self, image_numbers: Sequence[int], pixels: np.ndarray,
                    version: int = 1, timestamp: int = 0) -> Header:
        """Write one data block.

        Parameters
        ----------
        image_numbers : sequence of int
            1-based image numbers, one per image.
        pixels : np.ndarray
            Pixel data with shape ``(images, rows, columns)``.
        version : int, optional
            Record version, must be non-zero (0 is the terminator).
        timestamp : int, optional
            Opaque acquisition timestamp.

        Returns
        -------
        Header
            The header that was written.
        """
        pixels = np.asarray(pixels)
        if pixels.ndim != 3:
            raise ValueError(f"pixels must be (images, rows, columns), got shape {pixels.shape}")
        if version == 0:
            raise ValueError("version 0 is reserved for the stream terminator")

        images, rows, columns = pixels.shape
        if len(image_numbers) != images:
            raise ValueError(
                f"{len(image_numbers)} image numbers for {images} images"
            )

        header = Header(
            images_in_block=images,
            rows=rows,
            columns=columns,
            version=version,
            timestamp=timestamp,
            image_numbers=tuple(int(n) for n in image_numbers),
        )
        self._stream.write(encode_header(header))
        self._stream.write(np.ascontiguousarray(pixels, dtype=PIXEL_DTYPE).tobytes())
        self.blocks_written += 1
        return header

    def write_terminator(self) -> None:
        """Write a ``version == 0`` header marking the end of the stream."""
        self._stream.write(encode_header(Header(0, 0, 0, 0, 0)))
        logger.debug("Wrote terminator after %d blocks", self.blocks_written)
