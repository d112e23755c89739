"""Output sinks for finished STEM images.

- file_sink: Flat binary files
- live_sink: socket.io events
"""

from stemstream.sinks.base import StemImageSink
from stemstream.sinks.file_sink import FileSink, get_image_path, load_stem_image
from stemstream.sinks.live_sink import LiveSink

__all__ = [
    "StemImageSink",
    "FileSink",
    "LiveSink",
    "get_image_path",
    "load_stem_image",
]
