"""Detector data modules.

- reader: Decode block streams
- writer: Encode block streams
- masks: Bright/dark field masks
- stem_values: Per-image STEM reduction
"""

from stemstream.detector.reader import Block, EndOfStream, Header, StreamReader
from stemstream.detector.writer import StreamWriter, encode_header
from stemstream.detector.masks import DetectorMasks, MaskProvider, create_annular_mask
from stemstream.detector.stem_values import STEMValues, calculate_stem_values

__all__ = [
    "Block",
    "EndOfStream",
    "Header",
    "StreamReader",
    "StreamWriter",
    "encode_header",
    "DetectorMasks",
    "MaskProvider",
    "create_annular_mask",
    "STEMValues",
    "calculate_stem_values",
]
