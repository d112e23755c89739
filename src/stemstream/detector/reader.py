"""Read detector block streams into Header/Block records.

The detector writes a sequence of fixed-layout records, each a 4096-byte
header followed by the raw uint16 pixels of every image in the block. This
module decodes that stream from a file, a pipe (``"-"`` for stdin), or any
binary file object.

End-of-stream policy:
- Before each header the reader peeks without consuming. No bytes left is
  the one and only clean end of stream (``EndOfStream(reason="eof")``).
- A header with ``version == 0`` is a terminator record and also ends the
  stream cleanly (``EndOfStream(reason="terminator")``).
- Once a header has started, every short read is ``TruncatedStream``. The
  producer committed to a whole record at that point. Payloads are read in
  bounded chunks, so a header that declares more bytes than ever arrive
  fails with ``TruncatedStream`` instead of a huge allocation.
"""

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, Literal, Optional, Union

import numpy as np

from stemstream.contracts import (
    SourceUnavailable,
    TruncatedStream,
    assert_header_valid,
)

__all__ = [
    'Header',
    'Block',
    'EndOfStream',
    'StreamReader',
    'HEADER_WORDS',
    'HEADER_NBYTES',
    'IMAGE_NUMBER_CAPACITY',
]

logger = logging.getLogger(__name__)

HEADER_WORDS = 1024
HEADER_DTYPE = np.dtype("<u4")
HEADER_NBYTES = HEADER_WORDS * HEADER_DTYPE.itemsize
PIXEL_DTYPE = np.dtype("<u2")

# Payloads are read in pieces of at most this size. Memory only grows with
# bytes that actually arrived, whatever size the header declares.
PAYLOAD_CHUNK_NBYTES = 4 * 1024 * 1024

# imagesInBlock, rows, columns, version, timestamp, then 5 reserved words
IMAGE_NUMBERS_OFFSET = 10
IMAGE_NUMBER_CAPACITY = HEADER_WORDS - IMAGE_NUMBERS_OFFSET


@dataclass(frozen=True)
class Header:
    """Decoded block header."""
    images_in_block: int
    rows: int
    columns: int
    version: int
    timestamp: int
    image_numbers: tuple[int, ...] = ()

    @property
    def is_terminator(self) -> bool:
        return self.version == 0

    @property
    def pixels_per_image(self) -> int:
        return self.rows * self.columns

    @property
    def payload_size(self) -> int:
        """Number of uint16 samples in the block payload."""
        return self.pixels_per_image * self.images_in_block

    @property
    def payload_nbytes(self) -> int:
        return self.payload_size * PIXEL_DTYPE.itemsize

    @classmethod
    def from_words(cls, words: np.ndarray) -> "Header":
        """Decode a header from its 1024 uint32 words."""
        images_in_block, rows, columns, version, timestamp = (int(w) for w in words[:5])
        image_numbers = words[IMAGE_NUMBERS_OFFSET:IMAGE_NUMBERS_OFFSET + images_in_block]
        return cls(
            images_in_block=images_in_block,
            rows=rows,
            columns=columns,
            version=version,
            timestamp=timestamp,
            image_numbers=tuple(int(n) for n in image_numbers),
        )


@dataclass(frozen=True, eq=False)
class Block:
    """One decoded block: a header plus the pixels of all its images.

    ``pixels`` is a flat, read-only uint16 array owned by this block. The
    block is shared by exactly one compute task and released once that
    task's result has been drained.
    """
    header: Header
    pixels: np.ndarray

    @property
    def images(self) -> np.ndarray:
        """Pixels viewed as ``(images_in_block, rows, columns)``."""
        h = self.header
        return self.pixels.reshape(h.images_in_block, h.rows, h.columns)

    @property
    def nbytes(self) -> int:
        return self.pixels.nbytes


@dataclass(frozen=True)
class EndOfStream:
    """Clean end of stream.

    ``reason`` is ``"eof"`` when the peek found no more bytes and
    ``"terminator"`` when a ``version == 0`` header was read. ``offset`` is
    the byte position where the final record boundary was.
    """
    reason: Literal["eof", "terminator"]
    offset: int


class StreamReader:
    """Sequential reader for detector block streams.

    Parameters
    ----------
    source : str, Path, or binary file object
        Path to a stream file, ``"-"`` for stdin, or an already-open binary
        stream. Streams passed in by the caller are never closed here.
    stream_id : int, optional
        Identifier used in log and error messages (default 0).

    Raises
    ------
    SourceUnavailable
        If ``source`` is a path that cannot be opened.

    Examples
    --------
    >>> with StreamReader("data.bin", stream_id=3) as reader:
    ...     for block in reader:
    ...         print(block.header.image_numbers)
    """

    def __init__(self, source: Union[str, Path, BinaryIO], stream_id: int = 0):
        self.stream_id = stream_id
        self.offset = 0
        self.blocks_read = 0
        self.end: Optional[EndOfStream] = None
        self._owns_stream = False
        self._pushback = b""

        if isinstance(source, (str, Path)):
            if str(source) == "-":
                self.name = "<stdin>"
                self._stream = sys.stdin.buffer
            else:
                self.name = str(source)
                try:
                    self._stream = open(source, "rb")
                except OSError as e:
                    raise SourceUnavailable(
                        f"Unable to open file: {source}", stream_id=stream_id
                    ) from e
                self._owns_stream = True
        else:
            self.name = getattr(source, "name", repr(source))
            self._stream = source

        logger.debug("Opened stream %03d: %s", stream_id, self.name)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __iter__(self) -> Iterator[Block]:
        while True:
            item = self.read_block()
            if isinstance(item, EndOfStream):
                return
            yield item

    def close(self):
        """Close the underlying stream if this reader opened it."""
        if self._owns_stream and not self._stream.closed:
            self._stream.close()

    def _has_more(self) -> bool:
        """Non-consuming check for at least one more byte."""
        if self._pushback:
            return True
        peek = getattr(self._stream, "peek", None)
        if peek is not None:
            return len(peek(1)) > 0
        # Streams without peek(): hold the byte back for the next read
        self._pushback = self._stream.read(1)
        return len(self._pushback) > 0

    def _read_into(self, buffer: np.ndarray, what: str) -> None:
        """Fill ``buffer`` completely or raise TruncatedStream."""
        expected = buffer.nbytes
        if expected == 0:
            return

        view = memoryview(buffer.view(np.uint8))
        filled = 0
        if self._pushback:
            view[0] = self._pushback[0]
            self._pushback = b""
            filled = 1

        while filled < expected:
            got = self._stream.readinto(view[filled:])
            if not got:
                break
            filled += got

        self.offset += filled
        if filled < expected:
            raise TruncatedStream(
                f"Unexpected EOF while reading {what}: expected {expected} bytes, got {filled}",
                stream_id=self.stream_id,
                offset=self.offset,
            )

    def _read_payload(self, nbytes: int, what: str) -> bytearray:
        """Read exactly ``nbytes`` in bounded chunks or raise TruncatedStream."""
        payload = bytearray(self._pushback[:nbytes])
        self._pushback = self._pushback[nbytes:]

        while len(payload) < nbytes:
            chunk = self._stream.read(min(PAYLOAD_CHUNK_NBYTES, nbytes - len(payload)))
            if not chunk:
                break
            payload += chunk

        self.offset += len(payload)
        if len(payload) < nbytes:
            raise TruncatedStream(
                f"Unexpected EOF while reading {what}: expected {nbytes} bytes, got {len(payload)}",
                stream_id=self.stream_id,
                offset=self.offset,
            )
        return payload

    def read_header(self) -> Header:
        """Consume and decode exactly one 4096-byte header record.

        Raises
        ------
        TruncatedStream
            If fewer than 4096 bytes remain.
        """
        words = np.empty(HEADER_WORDS, dtype=HEADER_DTYPE)
        self._read_into(words, "header")
        return Header.from_words(words)

    def read_block(self) -> Union[Block, EndOfStream]:
        """Read the next block, or report a clean end of stream.

        Returns
        -------
        Block or EndOfStream
            ``EndOfStream`` when the stream is exhausted on a record boundary
            or a terminator header is read.

        Raises
        ------
        TruncatedStream
            If the stream ends inside a header or payload.
        ContractViolation
            If the header declares more images than it can number.
        """
        start = self.offset

        if not self._has_more():
            self.end = EndOfStream(reason="eof", offset=start)
            logger.debug("Stream %03d: EOF after %d blocks at offset %d",
                         self.stream_id, self.blocks_read, start)
            return self.end

        header = self.read_header()
        if header.is_terminator:
            self.end = EndOfStream(reason="terminator", offset=start)
            logger.debug("Stream %03d: terminator record at offset %d",
                         self.stream_id, start)
            return self.end

        assert_header_valid(header, IMAGE_NUMBER_CAPACITY,
                            stream_id=self.stream_id, offset=start)

        payload = self._read_payload(header.payload_nbytes,
                                     f"payload of block at offset {start}")
        pixels = np.frombuffer(payload, dtype=PIXEL_DTYPE)
        pixels.flags.writeable = False

        self.blocks_read += 1
        logger.debug("Stream %03d: block %d, %d images of %dx%d",
                     self.stream_id, self.blocks_read, header.images_in_block,
                     header.rows, header.columns)
        return Block(header=header, pixels=pixels)
