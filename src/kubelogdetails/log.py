"""Logging setup for the CLI.

Records go through a RichHandler bound to the stderr console so they are
printed above the live grid instead of tearing it, or to a file when one
is given.
"""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(
    level: str = "WARNING",
    log_file: Path | None = None,
    console: Console | None = None,
) -> None:
    """
    Configure root logging for the process.

    Args:
        level: Level name (e.g., "INFO", "DEBUG")
        log_file: Write records to this file instead of the terminal
        console: Console for terminal output (stderr console if None)
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    if log_file is not None:
        handler: logging.Handler = logging.FileHandler(log_file)
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    else:
        handler = RichHandler(
            console=console if console is not None else Console(stderr=True),
            show_path=False,
        )

    logging.basicConfig(level=log_level, handlers=[handler], force=True)

    # The API client logs every request at DEBUG
    logging.getLogger("kubernetes_asyncio").setLevel(max(log_level, logging.INFO))
