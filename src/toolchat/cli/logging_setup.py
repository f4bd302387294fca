"""Logging configuration for the command line entry points.

The Textual surface owns the terminal, so interactive sessions log to a file.
One-shot commands log to stderr through rich.
"""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: str = "WARNING",
    log_file: str | Path | None = None,
    console: bool = True,
) -> None:
    """Configure the ``toolchat`` logger hierarchy.

    Args:
        level: Level name (debug, info, warning, error)
        log_file: Write records to this file when given
        console: Also render records on stderr with rich
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)
    package_logger = logging.getLogger("toolchat")
    package_logger.setLevel(numeric_level)
    package_logger.handlers.clear()
    package_logger.propagate = False

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_path), mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(file_handler)

    if console:
        package_logger.addHandler(
            RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
        )

    if not package_logger.handlers:
        package_logger.addHandler(logging.NullHandler())
