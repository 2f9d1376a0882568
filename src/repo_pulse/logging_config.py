"""Logging for repo-pulse.

Everything is logged under the ``repo_pulse`` namespace and rendered by
rich on stderr, so diagnostics interleave cleanly with the scan progress
bars and never end up in ``--json`` output on stdout.

Levels follow the ``verbosity`` setting:

    quiet    ERROR and above
    normal   WARNING and above (failed repositories, skipped merges)
    verbose  DEBUG (skipped numstat lines, dropped records, thread hand-offs)
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "repo_pulse"

LEVELS = {
    "quiet": logging.ERROR,
    "normal": logging.WARNING,
    "verbose": logging.DEBUG,
}

_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(
    verbosity: str = "normal",
    log_file: Optional[str] = None,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Attach handlers to the ``repo_pulse`` logger and return it.

    Calling this again replaces the handlers installed by a previous call,
    so repeated CLI invocations in one process do not duplicate output.
    Unknown verbosity names log at the ``normal`` level.
    """
    level = LEVELS.get(verbosity, logging.WARNING)
    debugging = level <= logging.DEBUG

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(
        RichHandler(
            console=console or Console(stderr=True),
            level=level,
            markup=False,
            rich_tracebacks=True,
            tracebacks_show_locals=debugging,
            show_path=debugging,
            log_time_format="[%X]",
        )
    )
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    logger.setLevel(level)
    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger for ``name`` placed under the ``repo_pulse`` namespace.

    ``get_logger(__name__)`` inside the package returns the module logger
    unchanged; ``get_logger("scan")`` returns ``repo_pulse.scan``.
    """
    if not name or name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    if name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
