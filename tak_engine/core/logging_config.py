"""Unified logging configuration for the Tak engine.

Engine modules log through ``logging.getLogger(__name__)``. The level of
the ``tak_engine`` package logger follows ``EngineConfig.log_level`` and
is applied by :func:`configure_logging` whenever a game is started; hosts
that want output call :func:`setup_logging` to attach handlers.

Usage:
    from tak_engine.core.logging_config import setup_logging

    logger = setup_logging("tak_engine", level="DEBUG")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from ..config import EngineConfig, get_engine_config

PACKAGE_LOGGER = "tak_engine"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
COMPACT_FORMAT = "%(levelname)s %(name)s: %(message)s"
DETAILED_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
)
STRUCTURED_FORMAT = (
    '{"time": "%(asctime)s", "logger": "%(name)s", '
    '"level": "%(levelname)s", "message": "%(message)s"}'
)

_FORMATS = {
    "default": DEFAULT_FORMAT,
    "compact": COMPACT_FORMAT,
    "detailed": DETAILED_FORMAT,
    "structured": STRUCTURED_FORMAT,
}


def setup_logging(
    name: str,
    level: Union[int, str] = logging.INFO,
    format_style: str = "default",
    log_file: Optional[Union[str, Path]] = None,
    log_dir: Optional[Union[str, Path]] = None,
    console: bool = True,
    propagate: bool = False,
) -> logging.Logger:
    """Configure and return the logger called ``name``.

    Safe to call repeatedly: handlers are only attached once per
    destination.

    Args:
        name: Logger name, usually the package or script name.
        level: Logging level as an int or a name such as ``"DEBUG"``.
        format_style: One of default/compact/detailed/structured; unknown
            styles fall back to default.
        log_file: Explicit file to log to.
        log_dir: Directory for ``<name>.log`` when ``log_file`` is unset.
        console: Attach a stream handler.
        propagate: Let records bubble to the root logger.
    """
    logger = logging.getLogger(name)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger.setLevel(level)
    logger.propagate = propagate

    formatter = logging.Formatter(_FORMATS.get(format_style, DEFAULT_FORMAT))

    if console and not any(
        type(h) is logging.StreamHandler for h in logger.handlers
    ):
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if log_file is None and log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"{name.replace('.', '_')}.log"

    if log_file is not None:
        path = str(Path(log_file).resolve())
        if not any(
            isinstance(h, logging.FileHandler) and h.baseFilename == path
            for h in logger.handlers
        ):
            file_handler = logging.FileHandler(path, delay=False)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext:
    """Temporarily change a logger's level.

        with LogContext(logger, logging.DEBUG):
            GameEngine.submit_command(...)
    """

    def __init__(self, logger: logging.Logger, level: Union[int, str]):
        self.logger = logger
        self.level = level
        self._previous = logger.level

    def __enter__(self) -> logging.Logger:
        self._previous = self.logger.level
        self.logger.setLevel(self.level)
        return self.logger

    def __exit__(self, exc_type, exc, tb) -> None:
        self.logger.setLevel(self._previous)


def configure_logging(
    config: Optional[EngineConfig] = None, console: bool = False
) -> logging.Logger:
    """Apply ``config.log_level`` to the ``tak_engine`` package logger.

    Records keep propagating to the host's handlers; pass ``console=True``
    to also attach a stream handler when the host configures none.
    """
    config = config or get_engine_config()
    return setup_logging(
        PACKAGE_LOGGER, level=config.log_level, console=console, propagate=True
    )
