"""Logging setup shared by the CLI commands."""

import logging
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure root logging with a rich console handler and an optional file.

    Args:
        level: Logging level name
        log_file: Optional path that also receives every record
    """
    handlers = [RichHandler(rich_tracebacks=True, show_path=False)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True
    )
