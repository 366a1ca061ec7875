"""Console logging via Rich."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "peerbrowse-rich"


def setup_logging(level: str = "INFO", console: Console | None = None) -> None:
    """Install a RichHandler on the root logger.

    Safe to call more than once; later calls only adjust the level.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    for handler in root.handlers:
        if handler.get_name() == _HANDLER_NAME:
            handler.setLevel(level.upper())
            return

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(level.upper())
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    root.addHandler(handler)

    # httpx logs every request at INFO; the status poller would flood the console
    logging.getLogger("httpx").setLevel(logging.WARNING)
