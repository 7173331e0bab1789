"""Shared Rich Console, style definitions and logging setup.

All human-facing chrome goes to stderr via ``err_console``; stdout is
reserved for command results.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

IMS_THEME = Theme(
    {
        "info": "cyan",
        "success": "bold green",
        "warning": "bold yellow",
        "error": "bold red",
        "heading": "bold cyan",
        "muted": "dim",
        "current": "bold green",
    }
)

err_console = Console(stderr=True, theme=IMS_THEME)


def configure_logging(verbose: bool) -> None:
    """Route ``imscli`` log records to stderr through Rich."""
    package_logger = logging.getLogger("imscli")
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        handler = RichHandler(console=err_console, show_path=False, rich_tracebacks=False)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        package_logger.addHandler(handler)
    package_logger.propagate = False
