"""Logging setup shared by the CLI and scripts."""

from __future__ import annotations

import logging

from rich.logging import RichHandler


def configure_logging(level: str | int = "INFO", *, force: bool = False) -> None:
    """Route the root logger through a rich handler.

    Args:
        level: Logging level name or number
        force: Replace handlers installed by an earlier call
    """
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=force,
    )
