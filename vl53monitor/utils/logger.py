"""Logging utilities for the vl53monitor package.

All modules log through children of the ``vl53monitor`` logger. The handler
configuration is applied with :func:`logging.config.dictConfig` the first
time :func:`get_logger` or :func:`configure_logging` is called.

Example:

.. code-block:: python

    from vl53monitor.utils.logger import get_logger

    get_logger(__name__).info("This is an info message.")

"""

import copy
import logging
import logging.config
import os
from typing import Optional, Union

ROOT_LOGGER = "vl53monitor"


class FileHandler(logging.FileHandler):
    """A file handler which creates the directory if it doesn't exist."""

    def __init__(self, filename, *args, **kwargs):
        directory = os.path.dirname(filename)
        if directory:
            os.makedirs(directory, exist_ok=True)

        super().__init__(filename, *args, **kwargs)


LOGGING_CONFIG = {
    "version": 1,
    "handlers": {
        "stdout": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
            "stream": "ext://sys.stdout",
            "level": logging.DEBUG,
        },
    },
    "loggers": {
        ROOT_LOGGER: {
            "level": logging.WARNING,
            "handlers": ["stdout"],
            # Keep records out of the root logger to avoid double output
            "propagate": False,
        },
    },
    "formatters": {
        "simple": {
            "format": "%(levelname)-8s | %(module)s.%(funcName)s:%(lineno)d :: %(message)s"
        },
        "timestamped": {
            "format": "%(asctime)s %(levelname)-8s | %(name)s :: %(message)s"
        },
    },
    "disable_existing_loggers": False,
}

_configured = False


def configure_logging(
    level: Union[int, str] = logging.WARNING, log_file: Optional[str] = None
) -> logging.Logger:
    """
    (Re)configure the package logger.

    Args:
        level: Level for the ``vl53monitor`` logger (name or number)
        log_file: Optional path of an additional log file

    Returns:
        The configured package logger
    """
    global _configured

    if isinstance(level, str):
        level = getattr(logging, level.upper())

    config = copy.deepcopy(LOGGING_CONFIG)
    config["loggers"][ROOT_LOGGER]["level"] = level
    if log_file:
        config["handlers"]["file"] = {
            "()": FileHandler,
            "filename": log_file,
            "formatter": "timestamped",
            "level": logging.DEBUG,
        }
        config["loggers"][ROOT_LOGGER]["handlers"].append("file")

    logging.config.dictConfig(config)
    _configured = True
    return logging.getLogger(ROOT_LOGGER)


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Return a logger under the package hierarchy, configuring it on first use."""
    if not _configured:
        configure_logging()
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
