"""Tracker, web seed and DHT node addresses."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import SplitResult, urlsplit

from ccmeta.utils.exceptions import SchemaError, SchemaErrorKind

# Local schemes such as file:// are rejected
SANCTIONED_SCHEMES = frozenset(
    {
        "ed2k",
        "ftp",
        "http",
        "https",
        "gopher",
        "magnet",
        "sftp",
        "tcp",
        "tftp",
        "udp",
        "ws",
        "wss",
    }
)

_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*)://")


def _split(text: str) -> SplitResult:
    """Split ``text`` into URI parts, treating ``host[:port]`` as an authority."""
    if _SCHEME_RE.match(text):
        return urlsplit(text)
    if "://" in text:
        msg = f"Malformed URI scheme in {text!r}"
        raise ValueError(msg)
    parts = urlsplit(f"//{text}")
    if parts.path or parts.query or parts.fragment:
        msg = f"Relative URI without a host: {text!r}"
        raise ValueError(msg)
    return parts


@dataclass(frozen=True)
class UriWrapper:
    """Absolute URI with a host and an allowed scheme.

    ``text`` is kept exactly as it appeared so that the field re-encodes
    unchanged; the scheme is checked and exposed in lowercase.
    """

    text: str
    where: str = field(default="", compare=False, repr=False)

    def __post_init__(self) -> None:
        """Validate the URI."""
        if not isinstance(self.text, str):
            msg = f"URI must be text, got {type(self.text).__name__}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE, self.where)
        try:
            parts = _split(self.text)
            # Accessing .port validates it
            _ = parts.port
        except ValueError as e:
            msg = f"Invalid URI {self.text!r}: {e}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_URI, self.where) from e
        if not parts.hostname:
            msg = f"Relative URI without a host: {self.text!r}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_URI, self.where)
        scheme = parts.scheme.lower()
        if scheme and scheme not in SANCTIONED_SCHEMES:
            msg = f"Invalid URI scheme {scheme!r} in {self.text!r}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_URI, self.where)

    @property
    def scheme(self) -> str:
        """Lowercased scheme, empty for a bare ``host[:port]``."""
        return _split(self.text).scheme.lower()

    @property
    def host(self) -> str:
        """Host name or address."""
        return _split(self.text).hostname or ""

    @property
    def port(self) -> int | None:
        """Explicit port, if any."""
        return _split(self.text).port

    def __str__(self) -> str:
        return self.text

    def to_bencode(self) -> str:
        """Return the value written to the metainfo."""
        return self.text


@dataclass(frozen=True)
class Node:
    """DHT bootstrap node (BEP 5), stored in metainfo as ``[host, port]``."""

    host: str
    port: int

    def __post_init__(self) -> None:
        """Validate host and port."""
        if not isinstance(self.host, str) or not self.host:
            msg = f"Node host must be nonempty text, got {self.host!r}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_VALUE, "nodes")
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            msg = f"Node port must be an integer, got {type(self.port).__name__}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE, "nodes")
        if not 0 <= self.port <= 65535:
            msg = f"Node port out of range: {self.port}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_VALUE, "nodes")

    @classmethod
    def from_bencode(cls, value: Any) -> Node:
        """Build a node from its decoded ``[host, port]`` form."""
        if not isinstance(value, list) or len(value) != 2:
            msg = f"Node must be a [host, port] pair, got {value!r}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE, "nodes")
        host, port = value
        if not isinstance(host, bytes):
            msg = f"Node host must be a byte string, got {type(host).__name__}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE, "nodes")
        try:
            host_text = host.decode("utf-8")
        except UnicodeDecodeError as e:
            msg = f"Node host is not valid UTF-8: {host!r}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_VALUE, "nodes") from e
        return cls(host_text, port)

    def to_bencode(self) -> list[Any]:
        """Return the ``[host, port]`` pair written to the metainfo."""
        return [self.host, self.port]

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"
