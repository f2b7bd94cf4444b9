"""Pytest configuration and shared fixtures for ccmeta tests."""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Callable

import pytest

from ccmeta.config.config import reset_config
from ccmeta.core.bencode import encode


def pytest_configure(config):
    """Register all project markers to avoid warnings when ini isn't loaded."""
    markers = [
        ("unit", "marks tests as unit tests"),
        ("core", "marks tests as core functionality tests"),
        ("property", "marks tests as property-based tests"),
        ("cli", "marks tests as CLI tests"),
        ("config", "marks tests as configuration tests"),
    ]
    for name, desc in markers:
        config.addinivalue_line("markers", f"{name}: {desc}")


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch, tmp_path):
    """Keep tests away from real config files and CCMETA_* variables."""
    for name in (
        "CCMETA_MAX_DEPTH",
        "CCMETA_ALLOW_TRAILING",
        "CCMETA_BIG_INTEGERS",
        "CCMETA_UNKNOWN_FIELDS",
        "CCMETA_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def cleanup_logging():
    """Clean up logging handlers after each test to prevent closed file errors."""
    yield
    for logger_name in list(logging.Logger.manager.loggerDict.keys()):
        logger = logging.getLogger(logger_name)
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)
    # setup_logging() turns propagation off; restore it for caplog
    logging.getLogger("ccmeta").propagate = True


def root_of(seed: bytes) -> bytes:
    """Deterministic 32-byte pieces root for test files."""
    return hashlib.sha256(seed).digest()


@pytest.fixture
def v1_single_info() -> dict[bytes, Any]:
    """Single-file v1 info dictionary."""
    return {
        b"name": b"file.bin",
        b"piece length": 16384,
        b"pieces": b"\x01" * 20,
        b"length": 1000,
    }


@pytest.fixture
def v1_multi_info() -> dict[bytes, Any]:
    """Multi-file v1 info dictionary with a padding file."""
    return {
        b"name": b"album",
        b"piece length": 16384,
        b"pieces": b"\x02" * 40,
        b"files": [
            {b"length": 20000, b"path": [b"disc1", b"track1.flac"]},
            {b"attr": b"p", b"length": 12768, b"path": [b".pad", b"12768"]},
            {b"length": 5, b"path": [b"cover.jpg"]},
        ],
    }


@pytest.fixture
def v2_info() -> dict[bytes, Any]:
    """v2 info dictionary with a nested directory and an empty file."""
    return {
        b"name": b"tree",
        b"piece length": 16384,
        b"meta version": 2,
        b"file tree": {
            b"a.txt": {b"": {b"length": 5, b"pieces root": root_of(b"a")}},
            b"dir": {
                b"big.bin": {
                    b"": {b"length": 40000, b"pieces root": root_of(b"big")}
                },
                b"empty": {b"": {b"length": 0}},
            },
        },
    }


@pytest.fixture
def hybrid_info() -> dict[bytes, Any]:
    """Hybrid info dictionary whose v1 and v2 halves agree."""
    return {
        b"name": b"hybrid",
        b"piece length": 16384,
        b"pieces": b"\x03" * 60,
        b"meta version": 2,
        b"files": [
            {b"length": 20000, b"path": [b"a.bin"]},
            {b"attr": b"p", b"length": 12768, b"path": [b".pad", b"12768"]},
            {b"length": 7, b"path": [b"b.txt"]},
        ],
        b"file tree": {
            b"a.bin": {b"": {b"length": 20000, b"pieces root": root_of(b"a.bin")}},
            b"b.txt": {b"": {b"length": 7, b"pieces root": root_of(b"b.txt")}},
        },
    }


@pytest.fixture
def make_torrent() -> Callable[..., bytes]:
    """Build encoded torrent bytes around an info dictionary."""

    def _make(info: dict[bytes, Any], top: dict[bytes, Any] | None = None) -> bytes:
        document: dict[bytes, Any] = dict(top or {})
        document[b"info"] = info
        return encode(document)

    return _make
