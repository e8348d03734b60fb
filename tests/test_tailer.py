"""Tests for LogTailer."""

import asyncio
import math

import pytest

from conftest import FakeCluster, FakeLogStream
from kubelogdetails.buffer import StreamBuffer
from kubelogdetails.errors import StreamOpenError, StreamReadError
from kubelogdetails.tailer import LogTailer


class UpdateCounter:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1


@pytest.mark.asyncio
async def test_streams_chunks_into_buffer():
    """Every chunk is appended and triggers one update."""
    data = "".join(f"log line {i}\n" for i in range(300)).encode()
    stream = FakeLogStream(data)
    cluster = FakeCluster(streams={"web-0": stream})
    buffer = StreamBuffer("web-0")
    updates = UpdateCounter()

    tailer = LogTailer(cluster, "default", buffer, on_update=updates, chunk_size=1024)
    await tailer.run()

    assert buffer.get_lines() == [f"log line {i}" for i in range(300)]
    assert updates.calls == math.ceil(len(data) / 1024)
    assert set(stream.read_sizes) == {1024}
    assert tailer.bytes_read == len(data)
    assert tailer.done
    assert stream.closed


@pytest.mark.asyncio
async def test_requests_tail_lines_and_container():
    cluster = FakeCluster()
    tailer = LogTailer(
        cluster,
        "prod",
        StreamBuffer("api-1"),
        on_update=UpdateCounter(),
        tail_lines=50,
        container="sidecar",
    )

    await tailer.run()

    assert cluster.opened == [("prod", "api-1", 50, "sidecar")]


@pytest.mark.asyncio
async def test_open_failure_replaces_pane_content():
    """A stream that cannot open leaves one error message in the buffer."""
    cluster = FakeCluster(
        streams={"web-0": StreamOpenError("web-0", "container is waiting to start")}
    )
    buffer = StreamBuffer("web-0")
    updates = UpdateCounter()

    await LogTailer(cluster, "default", buffer, on_update=updates).run()

    assert buffer.get_text() == "Error getting logs: container is waiting to start"
    assert buffer.failed
    assert updates.calls == 1


@pytest.mark.asyncio
async def test_read_error_stops_silently():
    """A mid-stream failure keeps the content read so far."""
    stream = FakeLogStream(b"before\n", error=StreamReadError("web-0", "reset by peer"))
    cluster = FakeCluster(streams={"web-0": stream})
    buffer = StreamBuffer("web-0")

    await LogTailer(cluster, "default", buffer, on_update=UpdateCounter()).run()

    assert buffer.get_lines() == ["before"]
    assert not buffer.failed
    assert stream.closed


@pytest.mark.asyncio
async def test_one_failure_does_not_affect_others():
    """Tailers run independently; a failing one leaves siblings intact."""
    cluster = FakeCluster(
        streams={
            "a": StreamOpenError("a", "forbidden"),
            "b": FakeLogStream(b"hello from b\n"),
        }
    )
    buffers = [StreamBuffer("a"), StreamBuffer("b")]

    await asyncio.gather(
        *(LogTailer(cluster, "default", b, on_update=UpdateCounter()).run() for b in buffers)
    )

    assert buffers[0].failed
    assert buffers[1].get_lines() == ["hello from b"]


@pytest.mark.asyncio
async def test_cancellation_closes_stream():
    """Cancelling a tailer blocked on a live stream closes the stream."""
    stream = FakeLogStream(b"first\n", hold_open=True)
    cluster = FakeCluster(streams={"web-0": stream})
    buffer = StreamBuffer("web-0")
    tailer = LogTailer(cluster, "default", buffer, on_update=UpdateCounter())

    task = asyncio.create_task(tailer.run())
    while buffer.get_lines() != ["first"]:
        await asyncio.sleep(0.01)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert stream.closed
    assert tailer.done


@pytest.mark.asyncio
async def test_unexpected_read_error_stops_silently():
    """An unwrapped transport error ends the tail instead of escaping."""
    stream = FakeLogStream(b"before\n", error=ConnectionResetError("peer reset"))
    cluster = FakeCluster(streams={"web-0": stream})
    buffer = StreamBuffer("web-0")
    tailer = LogTailer(cluster, "default", buffer, on_update=UpdateCounter())

    await tailer.run()

    assert buffer.get_lines() == ["before"]
    assert not buffer.failed
    assert tailer.done
    assert stream.closed


@pytest.mark.asyncio
async def test_unexpected_open_error_replaces_pane_content():
    cluster = FakeCluster(streams={"web-0": OSError("network unreachable")})
    buffer = StreamBuffer("web-0")

    await LogTailer(cluster, "default", buffer, on_update=UpdateCounter()).run()

    assert buffer.get_text() == "Error getting logs: network unreachable"
    assert buffer.failed
