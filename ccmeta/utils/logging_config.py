"""Logging configuration for ccmeta.

The codec itself only emits records through module loggers; this module is
what the CLI calls to route them to a console.
"""

from __future__ import annotations

import logging
import logging.config
import sys
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:  # pragma: no cover
    from ccmeta.models import ObservabilityConfig

ROOT_LOGGER = "ccmeta"


def create_rich_handler(level: str, console: Console | None = None) -> RichHandler:
    """Create a RichHandler writing to stderr."""
    if console is None:
        console = Console(stderr=True)
    handler = RichHandler(
        console=console,
        level=level,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    return handler


def setup_logging(config: ObservabilityConfig) -> None:
    """Set up logging for the ``ccmeta`` logger hierarchy."""
    logging_config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "simple": {
                "format": config.log_format,
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {},
        "loggers": {
            ROOT_LOGGER: {
                "level": config.log_level.value,
                "handlers": [],
                "propagate": False,
            },
        },
    }

    if not config.rich_console:
        logging_config["handlers"]["console"] = {
            "class": "logging.StreamHandler",
            "level": config.log_level.value,
            "formatter": "simple",
            "stream": sys.stderr,
        }
        logging_config["loggers"][ROOT_LOGGER]["handlers"] = ["console"]

    logging.config.dictConfig(logging_config)

    # RichHandler takes a Console object, which dictConfig cannot build
    if config.rich_console:
        logging.getLogger(ROOT_LOGGER).addHandler(
            create_rich_handler(config.log_level.value)
        )


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``ccmeta`` namespace."""
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
