"""Tests for StreamReader: decoding, end-of-stream policy, truncation."""

import io
import sys

import numpy as np
import pytest

pytestmark = pytest.mark.unit

from stemstream.contracts import ContractViolation, SourceUnavailable, TruncatedStream
from stemstream.detector.reader import (
    HEADER_NBYTES,
    HEADER_WORDS,
    Block,
    EndOfStream,
    Header,
    StreamReader,
)
from tests.helpers.fake_stream import NoPeekStream, make_frames, make_stream_bytes, write_stream_file

ROWS, COLS = 8, 8
BLOCK_NBYTES = HEADER_NBYTES + 3 * ROWS * COLS * 2


class TestReadBlock:
    """Decoding well-formed streams."""

    def test_reads_header_fields(self):
        data = make_stream_bytes([[1, 2, 3]], ROWS, COLS)
        reader = StreamReader(io.BufferedReader(io.BytesIO(data)))

        block = reader.read_block()

        assert isinstance(block, Block)
        assert block.header.images_in_block == 3
        assert block.header.rows == ROWS
        assert block.header.columns == COLS
        assert block.header.version == 1
        assert block.header.image_numbers == (1, 2, 3)

    def test_payload_matches_written_frames(self):
        data = make_stream_bytes([[4, 5]], ROWS, COLS, seed=7)
        block = StreamReader(io.BytesIO(data)).read_block()

        expected = make_frames([4, 5], ROWS, COLS, seed=7)
        np.testing.assert_array_equal(block.images, expected)
        assert block.pixels.dtype == np.uint16
        assert block.nbytes == 2 * ROWS * COLS * 2

    def test_payload_is_read_only(self):
        block = StreamReader(io.BytesIO(make_stream_bytes([[1]], ROWS, COLS))).read_block()

        with pytest.raises(ValueError):
            block.pixels[0] = 1

    def test_offset_advances_by_whole_records(self):
        data = make_stream_bytes([[1, 2, 3], [4, 5, 6]], ROWS, COLS)
        reader = StreamReader(io.BytesIO(data))

        reader.read_block()
        assert reader.offset == BLOCK_NBYTES
        reader.read_block()
        assert reader.offset == 2 * BLOCK_NBYTES
        assert reader.blocks_read == 2

    def test_iteration_yields_every_block(self):
        blocks = [[1, 2], [3, 4], [5, 6], [7]]
        reader = StreamReader(io.BytesIO(make_stream_bytes(blocks, ROWS, COLS)))

        numbers = [b.header.image_numbers for b in reader]

        assert numbers == [tuple(b) for b in blocks]
        assert reader.end == EndOfStream(reason="eof", offset=reader.offset)

    def test_zero_image_block_has_empty_payload(self):
        buffer = io.BytesIO(make_stream_bytes([[]], ROWS, COLS) + make_stream_bytes([[9]], ROWS, COLS))
        reader = StreamReader(buffer)

        empty = reader.read_block()
        assert empty.header.images_in_block == 0
        assert empty.pixels.size == 0

        nxt = reader.read_block()
        assert nxt.header.image_numbers == (9,)

    def test_reads_from_path(self, stream_path):
        write_stream_file(stream_path, [[1, 2]], ROWS, COLS)

        with StreamReader(stream_path, stream_id=3) as reader:
            blocks = list(reader)

        assert len(blocks) == 1
        assert reader.name == str(stream_path)

    def test_reads_from_stdin(self, monkeypatch):
        data = make_stream_bytes([[1], [2]], ROWS, COLS)
        monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data)))

        blocks = list(StreamReader("-"))

        assert [b.header.image_numbers for b in blocks] == [(1,), (2,)]

    def test_caller_stream_is_not_closed(self):
        buffer = io.BytesIO(make_stream_bytes([[1]], ROWS, COLS))

        with StreamReader(buffer) as reader:
            list(reader)

        assert not buffer.closed


class TestEndOfStream:
    """Clean end detection vs truncation."""

    def test_empty_stream_is_clean_eof(self):
        end = StreamReader(io.BytesIO(b"")).read_block()

        assert end == EndOfStream(reason="eof", offset=0)

    def test_eof_on_record_boundary(self):
        data = make_stream_bytes([[1, 2, 3]], ROWS, COLS)
        reader = StreamReader(io.BytesIO(data))

        reader.read_block()
        end = reader.read_block()

        assert end.reason == "eof"
        assert end.offset == len(data)

    def test_terminator_ends_stream(self):
        data = make_stream_bytes([[1, 2, 3]], ROWS, COLS, terminator=True)
        reader = StreamReader(io.BytesIO(data))

        reader.read_block()
        end = reader.read_block()

        assert end == EndOfStream(reason="terminator", offset=BLOCK_NBYTES)
        assert reader.blocks_read == 1

    def test_bytes_after_terminator_are_not_read(self):
        data = make_stream_bytes([[1]], ROWS, COLS, terminator=True) + b"garbage"
        blocks = list(StreamReader(io.BytesIO(data)))

        assert len(blocks) == 1

    def test_truncated_header(self):
        data = make_stream_bytes([[1, 2, 3]], ROWS, COLS)[:100]

        with pytest.raises(TruncatedStream, match="Unexpected EOF while reading header"):
            StreamReader(io.BytesIO(data)).read_block()

    def test_truncated_payload(self):
        data = make_stream_bytes([[1, 2, 3]], ROWS, COLS)[:-1]

        with pytest.raises(TruncatedStream, match="payload") as exc_info:
            StreamReader(io.BytesIO(data), stream_id=12).read_block()

        assert exc_info.value.stream_id == 12
        assert exc_info.value.offset == len(data)
        assert "stream=012" in str(exc_info.value)

    def test_truncation_after_complete_blocks(self):
        full = make_stream_bytes([[1, 2, 3], [4, 5, 6]], ROWS, COLS)
        reader = StreamReader(io.BytesIO(full[:BLOCK_NBYTES + 10]))

        reader.read_block()
        with pytest.raises(TruncatedStream):
            reader.read_block()

    @staticmethod
    def _oversized_header_bytes():
        words = np.zeros(HEADER_WORDS, dtype="<u4")
        words[:5] = (1000, 65535, 65535, 1, 0)
        words[10:1010] = np.arange(1, 1001)
        return words.tobytes()

    def test_oversized_payload_declaration_is_truncation(self):
        data = self._oversized_header_bytes() + bytes(10)

        with pytest.raises(TruncatedStream, match="payload") as exc_info:
            StreamReader(io.BytesIO(data), stream_id=2).read_block()

        assert exc_info.value.offset == HEADER_NBYTES + 10
        assert "got 10" in str(exc_info.value)

    def test_oversized_payload_declaration_without_peek(self):
        data = self._oversized_header_bytes() + bytes(10)

        with pytest.raises(TruncatedStream) as exc_info:
            StreamReader(NoPeekStream(data, chunk=3)).read_block()

        assert exc_info.value.offset == HEADER_NBYTES + 10


class TestNonPeekableStreams:
    """Streams without peek() go through the pushback byte."""

    @pytest.mark.parametrize("chunk", [1, 7, 4096, 100000])
    def test_blocks_decode_across_short_reads(self, chunk):
        blocks = [[1, 2], [3, 4], [5]]
        data = make_stream_bytes(blocks, ROWS, COLS, seed=3)

        decoded = list(StreamReader(NoPeekStream(data, chunk=chunk)))

        assert [b.header.image_numbers for b in decoded] == [tuple(b) for b in blocks]
        np.testing.assert_array_equal(decoded[0].images, make_frames([1, 2], ROWS, COLS, seed=3))

    def test_truncation_detected_without_peek(self):
        data = make_stream_bytes([[1, 2]], ROWS, COLS)[:-5]

        with pytest.raises(TruncatedStream):
            list(StreamReader(NoPeekStream(data, chunk=64)))

    def test_clean_eof_without_peek(self):
        reader = StreamReader(NoPeekStream(b""))

        assert reader.read_block() == EndOfStream(reason="eof", offset=0)


class TestHeaderValidation:

    def test_missing_file_is_source_unavailable(self, temp_dir):
        with pytest.raises(SourceUnavailable, match="Unable to open file"):
            StreamReader(temp_dir / "missing.bin", stream_id=4)

    def test_images_beyond_capacity_violate_contract(self):
        words = np.zeros(HEADER_WORDS, dtype="<u4")
        words[:5] = (1015, 2, 2, 1, 0)

        with pytest.raises(ContractViolation, match="capacity"):
            StreamReader(io.BytesIO(words.tobytes())).read_block()

    def test_header_violation_names_stream_and_offset(self):
        words = np.zeros(HEADER_WORDS, dtype="<u4")
        words[:5] = (1015, 2, 2, 1, 0)
        data = make_stream_bytes([[1, 2, 3]], ROWS, COLS) + words.tobytes()
        reader = StreamReader(io.BytesIO(data), stream_id=5)

        reader.read_block()
        with pytest.raises(ContractViolation) as exc_info:
            reader.read_block()

        message = str(exc_info.value)
        assert "capacity" in message
        assert f"(stream=005, offset={BLOCK_NBYTES})" in message

    def test_header_from_words(self):
        words = np.zeros(HEADER_WORDS, dtype="<u4")
        words[:5] = (2, 576, 576, 2, 123456)
        words[10:12] = (17, 18)

        header = Header.from_words(words)

        assert header.image_numbers == (17, 18)
        assert header.timestamp == 123456
        assert header.pixels_per_image == 576 * 576
        assert header.payload_nbytes == 2 * 576 * 576 * 2
        assert not header.is_terminator
