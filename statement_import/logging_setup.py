"""Logging configuration for the ``statement_import`` package.

Two public helpers:

- ``configure_logging(...)``: attach exactly one handler to the package root
  logger (``"statement_import"``). Interactive terminals get a
  ``rich.logging.RichHandler``; pipes and files get a plain
  ``StreamHandler``. Called once by the CLI root callback.
- ``get_logger(name)``: acquire a module logger, making sure the package root
  logger carries a ``NullHandler`` until an application configures it.

Library modules never attach handlers of their own; they call
``get_logger(__name__)`` and log. Sheet, row and page degradations are
WARNING/DEBUG, run summaries INFO, rolled-back imports ERROR with traceback.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

from rich.console import Console
from rich.logging import RichHandler

_PKG_LOGGER_NAME = "statement_import"
_LEVEL_ENV = "STATEMENT_IMPORT_LOG_LEVEL"
_DEFAULT_FMT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``level`` (or ``STATEMENT_IMPORT_LOG_LEVEL``) into a numeric level.

    Accepts ints, numeric strings and level names in any case. Unknown names
    raise ``ValueError`` so a typo on the command line is reported instead of
    silently logging at INFO.
    """

    if level is None:
        level = os.getenv(_LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelNamesMapping().get(name)
    if numeric is None:
        raise ValueError(f"unknown log level: {level!r}")
    return numeric


def _build_handler(stream: IO[str], fmt: str | None) -> logging.Handler:
    if fmt is None and stream.isatty():
        return RichHandler(
            console=Console(file=stream),
            show_path=False,
            rich_tracebacks=True,
        )
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FMT))
    return handler


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Configure the package root logger once per process.

    Parameters
    ----------
    level:
        Logging level as ``int`` or level name. ``None`` defers to
        ``STATEMENT_IMPORT_LOG_LEVEL``, then ``INFO``.
    fmt:
        Format string for the plain handler. Passing one also opts out of the
        rich handler on terminals.
    stream:
        Output stream; defaults to ``sys.stderr`` at call time so stdout
        stays free for command output.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    numeric = resolve_level(level)
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = _build_handler(stream if stream is not None else sys.stderr, fmt)
    handler.setLevel(numeric)
    logger.setLevel(numeric)
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
