"""
SessionController wiring resolution, tailing and rendering together.

State machine:
    RESOLVING -> DISCOVERING -> STREAMING -> TERMINATED

- RESOLVING: fetch the pod and classify its controller
- DISCOVERING: list sibling pods for the controller
- STREAMING: one StreamBuffer + LogTailer per sibling, grid on screen
- TERMINATED: quit key, SIGINT/SIGTERM, or a fatal resolution error

Resolution errors propagate before the live display is entered, so there
is never partial UI state to clean up.

While streaming, every tailer chunk and every terminal resize requests a
render. The render loop coalesces requests so that at most one render
happens per render_interval, and the request flag is cleared before the
buffers are read so the last write is always drawn.

On quit, all tailer tasks are cancelled and joined by the TaskGroup
before the live display is released.
"""

import asyncio
import functools
import logging
import signal
from enum import Enum
from typing import TextIO

from rich.console import Console
from rich.live import Live

from kubelogdetails.buffer import StreamBuffer
from kubelogdetails.cluster import ClusterClient
from kubelogdetails.config import SessionConfig
from kubelogdetails.keyboard import KeyboardTask
from kubelogdetails.presenter import GridPresenter
from kubelogdetails.resolver import ControllerResolver
from kubelogdetails.tailer import LogTailer
from kubelogdetails.types import ControllerClassification

logger = logging.getLogger(__name__)

QUIT_KEYS = ("q", "Q")


class SessionState(Enum):
    """Lifecycle states of a session."""

    RESOLVING = "resolving"
    DISCOVERING = "discovering"
    STREAMING = "streaming"
    TERMINATED = "terminated"


def format_header(
    config: SessionConfig,
    classification: ControllerClassification,
    instances: list[str],
) -> str:
    """Build the header line shown above the grid."""
    if classification.has_owner:
        controller = f"Found controller: {classification.describe()}"
    else:
        controller = f"No controller found for {config.instance_name}"
    return (
        f"{controller} | namespace: {config.namespace} | "
        f"pods: {len(instances)} | q: quit"
    )


class SessionController:
    """
    Runs one kubelogdetails session from resolution to quit.

    Example:
        session = SessionController(config, cluster)
        exit_code = await session.run()  # Runs until 'q' or Ctrl+C
    """

    def __init__(
        self,
        config: SessionConfig,
        cluster: ClusterClient,
        console: Console | None = None,
        input_stream: TextIO | None = None,
        screen: bool = True,
    ) -> None:
        """
        Initialize session.

        Args:
            config: Immutable session configuration
            cluster: Cluster collaborator
            console: Rich Console to draw on (creates default if None)
            input_stream: Keyboard input (defaults to sys.stdin)
            screen: Use the terminal's alternate screen
        """
        self.config = config
        self.console = console if console is not None else Console()
        self._cluster = cluster
        self._resolver = ControllerResolver(cluster)
        self._keyboard = KeyboardTask(on_key=self.handle_key, stream=input_stream)
        self._screen = screen
        self._state = SessionState.RESOLVING
        self._shutdown = asyncio.Event()
        self._render_requested = asyncio.Event()
        self._presenter: GridPresenter | None = None
        self._tailers: list[LogTailer] = []
        self.classification: ControllerClassification | None = None
        self.instances: list[str] = []
        self.render_count = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def buffers(self) -> list[StreamBuffer]:
        return [tailer.buffer for tailer in self._tailers]

    @property
    def tailers(self) -> list[LogTailer]:
        return list(self._tailers)

    @property
    def presenter(self) -> GridPresenter | None:
        return self._presenter

    async def run(self) -> int:
        """
        Resolve, discover and stream until quit.

        Returns:
            Process exit code (0 on normal quit)

        Raises:
            KubeLogDetailsError: On any resolution or discovery failure
        """
        try:
            self._state = SessionState.RESOLVING
            instance, self.classification = await self._resolver.classify(
                self.config.namespace, self.config.instance_name
            )

            self._state = SessionState.DISCOVERING
            self.instances = await self._resolver.discover(instance, self.classification)
            logger.info(f"Streaming logs for {len(self.instances)} pods: {self.instances}")

            await self._stream()
        finally:
            self._state = SessionState.TERMINATED
        return 0

    def request_render(self) -> None:
        """Ask the render loop to redraw (called by tailers and on resize)."""
        self._render_requested.set()

    def quit(self) -> None:
        """Stop streaming and release the display."""
        self._shutdown.set()
        self._keyboard.stop()
        # Wake the render loop so it sees the shutdown
        self._render_requested.set()

    def handle_key(self, key: str) -> None:
        """
        Handle a keypress.

        Args:
            key: Key pressed (raw character or escape sequence)
        """
        if key in QUIT_KEYS:
            self.quit()

    def _handle_signal(self, sig: signal.Signals) -> None:
        logger.info(f"Received {sig.name}, shutting down")
        self.quit()

    async def _stream(self) -> None:
        config = self.config
        self._tailers = [
            LogTailer(
                self._cluster,
                config.namespace,
                StreamBuffer(name, max_lines=config.max_lines),
                on_update=self.request_render,
                tail_lines=config.tail_lines,
                chunk_size=config.chunk_size,
                container=config.container,
            )
            for name in self.instances
        ]
        self._presenter = GridPresenter(
            self.buffers,
            format_header(config, self.classification, self.instances),
        )

        loop = asyncio.get_running_loop()
        handled = (signal.SIGINT, signal.SIGTERM, signal.SIGWINCH)
        # Register signal handlers BEFORE Live context so Ctrl+C works during startup
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, functools.partial(self._handle_signal, sig))
        loop.add_signal_handler(signal.SIGWINCH, self.request_render)

        try:
            width, height = self.console.size
            self._presenter.layout(width, height)
            with Live(
                self._presenter.render_all(),
                console=self.console,
                screen=self._screen,
                auto_refresh=False,
            ) as live:
                self._state = SessionState.STREAMING
                live.refresh()
                self.render_count += 1

                # TaskGroup joins every tailer before Live restores the terminal
                async with asyncio.TaskGroup() as tg:
                    tasks = [
                        tg.create_task(tailer.run(), name=f"tail-{tailer.name}")
                        for tailer in self._tailers
                    ]
                    tg.create_task(self._keyboard.run(), name="keyboard")
                    await self._render_loop(live)
                    for task in tasks:
                        task.cancel()
                    self._keyboard.stop()
        finally:
            for sig in handled:
                loop.remove_signal_handler(sig)

    async def _render_loop(self, live: Live) -> None:
        """
        Redraw on request until shutdown.

        Args:
            live: Rich Live context for refreshing display
        """
        while not self._shutdown.is_set():
            await self._render_requested.wait()
            if self._shutdown.is_set():
                break
            # Clear before reading buffers so a concurrent write triggers another pass
            self._render_requested.clear()

            width, height = self.console.size
            if (width, height) != self._presenter.size:
                logger.debug(f"Terminal resized to {width}x{height}")
                self._presenter.layout(width, height)
            self._presenter.render_all()
            live.refresh()
            self.render_count += 1

            try:
                await asyncio.wait_for(
                    self._shutdown.wait(), timeout=self.config.render_interval
                )
            except asyncio.TimeoutError:
                pass  # Normal render interval
