"""Logging for depsync: a single ``depsync`` logger tree with console and file sinks."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, MutableMapping, Tuple

_ROOT_LOGGER = "depsync"
_CONSOLE_FORMAT = "[depsync] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s]: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``depsync.<name>``, or the root depsync logger."""
    return logging.getLogger(f"{_ROOT_LOGGER}.{name}" if name else _ROOT_LOGGER)


class RepositoryLogger(logging.LoggerAdapter):
    """Prefixes messages with the repository a worker is handling."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        return f"{self.extra['repository']}: {msg}", kwargs


def repository_logger(component: str, repository: str) -> RepositoryLogger:
    return RepositoryLogger(get_logger(component), {"repository": repository})


def _attach(
    logger: logging.Logger, handler: logging.Handler, fmt: str, level: int
) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Install console (and optionally file) output on the depsync logger.

    Calling it again replaces the previous handlers, so the CLI can first
    configure the console and later add the file sink named in .depsync.yml.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    _attach(logger, logging.StreamHandler(sys.stderr), _CONSOLE_FORMAT, level)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        _attach(logger, logging.FileHandler(log_file, encoding="utf-8"), _FILE_FORMAT, level)
    return logger


__all__ = ["RepositoryLogger", "configure_logging", "get_logger", "repository_logger"]
