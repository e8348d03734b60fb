"""
LogTailer for streaming one pod's logs into its StreamBuffer.

Each tailer runs as its own asyncio task inside the session's TaskGroup:
- Opens a following log stream (last tail_lines lines plus live output)
- Reads fixed-size chunks and appends them to the buffer
- Requests a render after every chunk
- Stops silently on stream end or read error (no retry, no reconnect)

A tailer's failure never escapes its task, whatever the stream raises.
If the stream cannot be opened, the error message replaces the pane's
content instead.
"""

import logging
from collections.abc import Callable

from kubelogdetails.buffer import StreamBuffer
from kubelogdetails.cluster import ClusterClient, LogStream
from kubelogdetails.errors import ClusterError, StreamOpenError, StreamReadError

logger = logging.getLogger(__name__)

DEFAULT_TAIL_LINES = 200
DEFAULT_CHUNK_SIZE = 1024


class LogTailer:
    """
    Streams one pod's log output into a StreamBuffer.

    Example:
        buffer = StreamBuffer("web-0")
        tailer = LogTailer(cluster, "default", buffer, on_update=request_render)
        tg.create_task(tailer.run())
    """

    def __init__(
        self,
        cluster: ClusterClient,
        namespace: str,
        buffer: StreamBuffer,
        on_update: Callable[[], None],
        tail_lines: int = DEFAULT_TAIL_LINES,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        container: str | None = None,
    ) -> None:
        """
        Initialize tailer.

        Args:
            cluster: Cluster collaborator that opens the log stream
            namespace: Namespace of the pod
            buffer: Buffer this tailer exclusively writes to; its title is the pod name
            on_update: Callback invoked after each buffer change
            tail_lines: Lines of history to request (default 200)
            chunk_size: Bytes per read (default 1024)
            container: Container to stream, or None for the pod default
        """
        self._cluster = cluster
        self._namespace = namespace
        self._buffer = buffer
        self._on_update = on_update
        self._tail_lines = tail_lines
        self._chunk_size = chunk_size
        self._container = container
        self.bytes_read = 0
        self.done = False

    @property
    def name(self) -> str:
        """Pod name this tailer follows."""
        return self._buffer.title

    @property
    def buffer(self) -> StreamBuffer:
        return self._buffer

    async def run(self) -> None:
        """
        Tail the pod until the stream ends, fails, or the task is cancelled.

        Never raises except for asyncio.CancelledError.
        """
        try:
            stream = await self._cluster.open_log_stream(
                self._namespace,
                self.name,
                tail_lines=self._tail_lines,
                container=self._container,
            )
        except (StreamOpenError, ClusterError) as exc:
            logger.warning(f"Error getting logs for {self.name}: {exc}")
            self._fail(f"Error getting logs: {exc}")
            return
        except Exception as exc:
            logger.exception(f"Unexpected error opening log stream for {self.name}")
            self._fail(f"Error getting logs: {exc}")
            return

        try:
            while True:
                try:
                    chunk = await stream.read(self._chunk_size)
                except StreamReadError as exc:
                    logger.debug(f"{exc}")
                    break
                except Exception:
                    logger.exception(f"Unexpected error reading logs for {self.name}")
                    break
                if not chunk:
                    logger.debug(f"Log stream for {self.name} ended")
                    break
                self.bytes_read += len(chunk)
                self._buffer.append(chunk)
                self._on_update()
        finally:
            self._buffer.finish()
            self.done = True
            await self._close(stream)

    def _fail(self, message: str) -> None:
        self._buffer.set_error(message)
        self.done = True
        self._on_update()

    async def _close(self, stream: LogStream) -> None:
        try:
            await stream.aclose()
        except Exception:
            logger.exception(f"Error closing log stream for {self.name}")
