"""
Quit-key reader for the live grid.

stdin is put in cbreak mode for the lifetime of the reader so single
keypresses arrive without Enter. Reads happen in the default executor,
each bounded by a select() timeout, so stop() is honoured within one
poll interval. When stdin is not a terminal (piped, CI) no keys are read
and run() just waits for stop().
"""

import asyncio
import logging
import select
import sys
import termios
import tty
from collections.abc import Callable
from typing import TextIO

logger = logging.getLogger(__name__)

ESCAPE_FOLLOWUP_TIMEOUT = 0.05


def _readkey_with_timeout(stream: TextIO, timeout: float) -> str | None:
    """Return one key from stream, or None if nothing arrives within timeout.

    Arrow keys and similar arrive as ESC [ X and are returned whole.
    The terminal must already be in cbreak mode.
    """
    if not select.select([stream], [], [], timeout)[0]:
        return None
    key = stream.read(1)
    if key != "\x1b":
        return key
    while len(key) < 3 and select.select([stream], [], [], ESCAPE_FOLLOWUP_TIMEOUT)[0]:
        key += stream.read(1)
        if key != "\x1b[":
            break
    return key


def _is_terminal(stream: TextIO) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError, OSError):
        return False


class KeyboardTask:
    """Delivers keypresses from a terminal to on_key until stopped."""

    def __init__(
        self,
        on_key: Callable[[str], None],
        stream: TextIO | None = None,
        poll_interval: float = 0.3,
    ) -> None:
        self._on_key = on_key
        self._stream = stream if stream is not None else sys.stdin
        self._poll_interval = poll_interval
        self._stopped = asyncio.Event()

    async def run(self) -> None:
        if not _is_terminal(self._stream):
            logger.debug("stdin is not a terminal; quit key disabled")
            await self._stopped.wait()
            return

        loop = asyncio.get_running_loop()
        fd = self._stream.fileno()
        saved_mode = termios.tcgetattr(fd)
        tty.setcbreak(fd)
        try:
            while not self._stopped.is_set():
                key = await loop.run_in_executor(
                    None, _readkey_with_timeout, self._stream, self._poll_interval
                )
                if key is not None:
                    self._on_key(key)
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, saved_mode)

    def stop(self) -> None:
        self._stopped.set()
