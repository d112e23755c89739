"""Tests for pipeline contracts and the stream error hierarchy.

These tests verify that contracts are enforced at stage boundaries.
They test contract violations directly, without defensive logic downstream.
"""

import numpy as np
import pytest

pytestmark = pytest.mark.unit

from stemstream.contracts import (
    ContractViolation,
    SinkFailed,
    SourceUnavailable,
    StemStreamError,
    TaskFailed,
    TruncatedStream,
    assert_header_valid,
    assert_image_number_in_range,
    assert_masks_match,
    require,
)
from stemstream.contracts.invariants import PIPELINE_INVARIANTS
from stemstream.detector.masks import DetectorMasks
from stemstream.detector.reader import Header


class TestRequire:

    def test_passes_silently(self):
        require(True, "never raised")

    def test_raises_with_message(self):
        with pytest.raises(ContractViolation, match="broken"):
            require(False, "broken")

    def test_context_appended_to_violation(self):
        with pytest.raises(ContractViolation) as exc_info:
            require(False, "broken", stream_id=7, offset=8192)

        assert str(exc_info.value) == "broken (stream=007, offset=8192)"
        assert exc_info.value.offset == 8192


class TestHeaderContract:

    def test_valid_header_passes(self):
        assert_header_valid(Header(2, 4, 4, 1, 0, (1, 2)), capacity=1014)

    def test_zero_image_header_may_have_empty_grid(self):
        assert_header_valid(Header(0, 0, 0, 1, 0, ()), capacity=1014)

    def test_capacity_exceeded(self):
        with pytest.raises(ContractViolation, match="exceeds image number capacity 2"):
            assert_header_valid(Header(3, 4, 4, 1, 0, (1, 2, 3)), capacity=2)

    def test_image_number_count_mismatch(self):
        with pytest.raises(ContractViolation, match="1 image numbers for 2 images"):
            assert_header_valid(Header(2, 4, 4, 1, 0, (1,)), capacity=1014)

    def test_empty_grid_with_images(self):
        with pytest.raises(ContractViolation, match="empty image grid 0x4"):
            assert_header_valid(Header(1, 0, 4, 1, 0, (1,)), capacity=1014)

    def test_violation_names_stream_and_offset(self):
        with pytest.raises(ContractViolation, match=r"\(stream=004, offset=12288\)"):
            assert_header_valid(Header(3, 4, 4, 1, 0, (1, 2, 3)), capacity=2,
                                stream_id=4, offset=12288)


class TestMaskContract:

    def _masks(self, shape, dtype=bool):
        return DetectorMasks(shape[0], shape[1], np.zeros(shape, dtype=dtype),
                             np.zeros(shape, dtype=dtype))

    def test_matching_masks_pass(self):
        assert_masks_match(self._masks((4, 6)), 4, 6)

    def test_shape_mismatch(self):
        with pytest.raises(ContractViolation, match="bright mask shape"):
            assert_masks_match(self._masks((4, 6)), 6, 4)

    def test_non_bool_masks_rejected(self):
        with pytest.raises(ContractViolation, match="expected bool"):
            assert_masks_match(self._masks((4, 6), dtype=np.uint8), 4, 6)


class TestOutputContract:

    @pytest.mark.parametrize("n", [1, 50, 100])
    def test_in_range(self, n):
        assert_image_number_in_range(n, 100)

    @pytest.mark.parametrize("n", [0, 101])
    def test_out_of_range(self, n):
        with pytest.raises(ContractViolation, match="outside \\[1, 100\\]"):
            assert_image_number_in_range(n, 100)

    def test_out_of_range_names_source(self):
        with pytest.raises(ContractViolation, match="outside \\[1, 100\\] in block 3 @ offset 40"):
            assert_image_number_in_range(0, 100, source="block 3 @ offset 40")


class TestStreamErrors:

    def test_context_appended_to_message(self):
        err = TruncatedStream("Unexpected EOF", stream_id=3, offset=4096)

        assert str(err) == "Unexpected EOF (stream=003, offset=4096)"
        assert isinstance(err, StemStreamError)
        assert isinstance(err, RuntimeError)

    def test_no_context(self):
        assert str(SourceUnavailable("gone")) == "gone"

    def test_task_failed_carries_block_index(self):
        err = TaskFailed("reduction failed", block_index=7, stream_id=1)

        assert err.block_index == 7
        assert str(err) == "reduction failed [block 7] (stream=001)"

    def test_sink_failed_is_a_stream_error(self):
        err = SinkFailed("Could not deliver images: disk full", stream_id=2)

        assert isinstance(err, StemStreamError)
        assert str(err) == "Could not deliver images: disk full (stream=002)"

    def test_contract_violation_is_not_a_stream_error(self):
        assert not issubclass(ContractViolation, StemStreamError)


def test_invariants_cover_every_stage():
    assert set(PIPELINE_INVARIANTS) == {
        "reader", "masks", "compute", "worker_pool", "aggregator", "sink"
    }
