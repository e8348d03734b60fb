"""
StreamBuffer for accumulating one pod's log output.

This module implements a bounded line store fed with raw byte chunks from
a log stream. Chunks arrive at arbitrary boundaries, so the buffer:
- Decodes UTF-8 incrementally (a character may straddle two chunks)
- Normalizes CRLF and lone CR to LF (a CRLF may straddle two chunks)
- Joins the first fragment of each chunk onto the current partial line
- Keeps only the most recent max_lines lines, dropping from the front

Appending a byte sequence in any number of pieces gives the same content
as appending it in one piece.

Every public method holds the buffer's lock, so a tailer may append while
the presenter reads.
"""

import codecs
import threading
from collections import deque
from collections.abc import Iterator

DEFAULT_MAX_LINES = 1000


class StreamBuffer:
    """
    Bounded, append-only text buffer for one pod.

    Example:
        buffer = StreamBuffer("web-0", max_lines=1000)
        buffer.append(b"line 1\\nline ")
        buffer.append(b"2\\n")
        print(buffer.get_text())  # "line 1\\nline 2"
    """

    def __init__(self, title: str, max_lines: int = DEFAULT_MAX_LINES) -> None:
        """
        Initialize an empty buffer.

        Args:
            title: Display title (the pod name)
            max_lines: Maximum number of lines to retain (default 1000)
        """
        if max_lines < 1:
            raise ValueError("max_lines must be at least 1")
        self.title = title
        self.max_lines = max_lines
        self._lock = threading.Lock()
        self._lines: deque[str] = deque()
        self._partial = ""
        self._after_cr = False
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._failed = False

    def append(self, chunk: bytes | str) -> None:
        """
        Append a chunk of stream output.

        Args:
            chunk: Raw bytes from the stream (or already-decoded text)
        """
        with self._lock:
            if isinstance(chunk, bytes):
                text = self._decoder.decode(chunk)
            else:
                text = chunk
            self._append_text(text)

    def finish(self) -> None:
        """Flush bytes held by the decoder once the stream has ended."""
        with self._lock:
            self._append_text(self._decoder.decode(b"", final=True))

    def set_error(self, message: str) -> None:
        """
        Replace the buffer content with an error message.

        Args:
            message: Error text shown in place of log output
        """
        with self._lock:
            self._reset()
            self._failed = True
            self._append_text(message)

    @property
    def failed(self) -> bool:
        """Return True if the stream failed and the content is an error."""
        with self._lock:
            return self._failed

    def get_lines(self, n: int | None = None) -> list[str]:
        """
        Get last n lines (or all if n is None).

        The trailing partial line is included when non-empty.

        Args:
            n: Number of lines to return, or None for all lines

        Returns:
            List of lines, newest last
        """
        with self._lock:
            lines = self._snapshot()
        if n is not None:
            if n <= 0:
                return []
            return lines[-n:]
        return lines

    def get_text(self, n: int | None = None) -> str:
        """
        Get lines as newline-joined string.

        Args:
            n: Number of lines to return, or None for all lines

        Returns:
            Lines joined with newlines
        """
        return "\n".join(self.get_lines(n))

    def __len__(self) -> int:
        """Return number of retained lines."""
        with self._lock:
            return len(self._lines) + (1 if self._partial else 0)

    def __iter__(self) -> Iterator[str]:
        """Iterate over a snapshot of the retained lines."""
        return iter(self.get_lines())

    def clear(self) -> None:
        """Clear all lines from buffer."""
        with self._lock:
            self._reset()

    def _snapshot(self) -> list[str]:
        lines = list(self._lines)
        if self._partial:
            lines.append(self._partial)
        return lines

    def _reset(self) -> None:
        self._lines.clear()
        self._partial = ""
        self._after_cr = False
        self._decoder.reset()
        self._failed = False

    def _append_text(self, text: str) -> None:
        if not text:
            return
        # The LF of a CRLF split across chunks was already counted
        if self._after_cr and text.startswith("\n"):
            text = text[1:]
        self._after_cr = text.endswith("\r")
        text = text.replace("\r\n", "\n").replace("\r", "\n")

        fragments = text.split("\n")
        self._partial += fragments[0]
        for fragment in fragments[1:]:
            self._lines.append(self._partial)
            self._partial = fragment
        self._trim()

    def _trim(self) -> None:
        excess = len(self._lines) + (1 if self._partial else 0) - self.max_lines
        for _ in range(excess):
            if self._lines:
                self._lines.popleft()
