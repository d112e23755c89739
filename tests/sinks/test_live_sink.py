"""LiveSink event emission through a mocked socket.io client."""

from unittest.mock import MagicMock, call

import numpy as np
import pytest
import socketio

pytestmark = pytest.mark.unit

from stemstream.pipeline.aggregator import StemImages
from stemstream.sinks import LiveSink


@pytest.fixture
def images():
    bright = np.array([[1, 2], [3, 4]], dtype=np.uint64)
    dark = np.array([[5, 6], [7, 8]], dtype=np.uint64)
    return StemImages(stream_id=7, image_id=1, width=2, height=2, bright=bright, dark=dark)


def test_emits_bright_then_dark(images):
    client = MagicMock()
    sink = LiveSink("http://localhost:5000", client=client)

    sink.emit(images)

    client.connect.assert_called_once_with(
        "http://localhost:5000", namespaces=["/stem"], wait_timeout=10.0
    )
    events = [c.args[0] for c in client.emit.call_args_list]
    assert events == ["stem.bright", "stem.dark"]
    client.disconnect.assert_called_once()


def test_message_payload(images):
    client = MagicMock()
    LiveSink("http://h", namespace="/custom", client=client).emit(images)

    first = client.emit.call_args_list[0]
    message = first.args[1]
    assert message["streamId"] == "7"
    assert message["imageId"] == "1"
    assert np.frombuffer(message["data"], dtype="<u8").tolist() == [1, 2, 3, 4]
    assert first.kwargs == {"namespace": "/custom"}


def test_disconnects_when_emit_fails(images):
    client = MagicMock()
    client.emit.side_effect = socketio.exceptions.BadNamespaceError("/stem")

    with pytest.raises(socketio.exceptions.BadNamespaceError):
        LiveSink("http://h", client=client).emit(images)

    client.disconnect.assert_called_once()


def test_connection_error_propagates(images, caplog):
    client = MagicMock()
    client.connect.side_effect = socketio.exceptions.ConnectionError("refused")

    with pytest.raises(socketio.exceptions.ConnectionError):
        LiveSink("http://h", client=client).emit(images)

    client.emit.assert_not_called()
    assert "could not connect" in caplog.text
