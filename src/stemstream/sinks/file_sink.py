"""Flat binary file output.

Each image is written as ``width * height`` little-endian uint64 values in
row-major scan order, with no header:

    bright-<streamId>.<imageId>.bin
    dark-<streamId>.<imageId>.bin

Both ids are zero-padded to three digits.
"""

import logging
from pathlib import Path
from typing import Dict, Union

import numpy as np

from stemstream.sinks.base import StemImageSink

__all__ = ['FileSink', 'get_image_path', 'load_stem_image']

logger = logging.getLogger(__name__)

IMAGE_DTYPE = np.dtype("<u8")


def get_image_path(output_dir: Union[str, Path], kind: str, stream_id: int,
                   image_id: int) -> Path:
    """Path of the ``kind`` ("bright" or "dark") image for a stream."""
    return Path(output_dir) / f"{kind}-{stream_id:03d}.{image_id:03d}.bin"


def load_stem_image(path: Union[str, Path], width: int, height: int) -> np.ndarray:
    """Read one image written by FileSink as a ``(height, width)`` uint64 array."""
    data = np.fromfile(path, dtype=IMAGE_DTYPE)
    if data.size != width * height:
        raise ValueError(
            f"{path} holds {data.size} values, expected {width}x{height}={width * height}"
        )
    return data.astype(np.uint64).reshape(height, width)


class FileSink(StemImageSink):
    """Writes bright and dark images as raw binary files.

    Parameters
    ----------
    output_dir : str or Path
        Directory for the ``.bin`` files. Created if missing.
    """

    def __init__(self, output_dir: Union[str, Path]):
        self.output_dir = Path(output_dir)
        self.written: Dict[str, Path] = {}

    def emit(self, images) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)

        for kind in ("bright", "dark"):
            path = get_image_path(self.output_dir, kind, images.stream_id, images.image_id)
            data = getattr(images, kind)
            np.ascontiguousarray(data, dtype=IMAGE_DTYPE).tofile(path)
            self.written[kind] = path
            logger.info("Wrote %s image: %s", kind, path)
