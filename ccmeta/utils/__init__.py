"""Shared utilities and infrastructure."""

from __future__ import annotations

from ccmeta.utils.exceptions import (
    BencodeError,
    CCMetaError,
    ConfigurationError,
    SchemaError,
    TorrentError,
    ValidationError,
)
from ccmeta.utils.logging_config import get_logger, setup_logging

__all__ = [
    # Exceptions
    "BencodeError",
    "CCMetaError",
    "ConfigurationError",
    "SchemaError",
    "TorrentError",
    "ValidationError",
    # Logging
    "get_logger",
    "setup_logging",
]
