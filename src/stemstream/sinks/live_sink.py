"""Live socket.io output.

Pushes both images to a socket.io server as two events, ``stem.bright``
and ``stem.dark``. Each message carries the stream and image ids as strings
and the raw little-endian uint64 image bytes:

    {"streamId": "7", "imageId": "1", "data": b"..."}
"""

import logging
from typing import Optional

import numpy as np
import socketio

from stemstream.sinks.base import StemImageSink

__all__ = ['LiveSink']

logger = logging.getLogger(__name__)


class LiveSink(StemImageSink):
    """Emits finished images to a socket.io server.

    Parameters
    ----------
    url : str
        Server URL, e.g. ``http://localhost:5000``.
    namespace : str, optional
        Socket.io namespace (default: "/stem").
    wait_timeout : float, optional
        Seconds to wait for the connection handshake.
    client : socketio.Client, optional
        Pre-built client. A new ``socketio.Client`` is created if omitted.
    """

    def __init__(self, url: str, namespace: str = "/stem", wait_timeout: float = 10.0,
                 client: Optional[socketio.Client] = None):
        self.url = url
        self.namespace = namespace
        self.wait_timeout = wait_timeout
        self._client = client if client is not None else socketio.Client()

    def _message(self, images, data: np.ndarray) -> dict:
        return {
            "streamId": str(images.stream_id),
            "imageId": str(images.image_id),
            "data": np.ascontiguousarray(data, dtype="<u8").tobytes(),
        }

    def emit(self, images) -> None:
        logger.info("Connecting to %s (namespace %s)", self.url, self.namespace)
        try:
            self._client.connect(self.url, namespaces=[self.namespace],
                                 wait_timeout=self.wait_timeout)
        except socketio.exceptions.ConnectionError:
            logger.error("Live sink could not connect to %s", self.url)
            raise

        try:
            for event, data in (("stem.bright", images.bright), ("stem.dark", images.dark)):
                self._client.emit(event, self._message(images, data), namespace=self.namespace)
                logger.info("Emitted %s for stream %03d", event, images.stream_id)
        finally:
            self._client.disconnect()
