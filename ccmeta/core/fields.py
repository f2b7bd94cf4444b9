"""Typed field access over decoded Bencode dictionaries.

Every schema module reads its dictionary through these helpers so that the
same rules produce the same error kinds everywhere: a missing key is
``MISSING_FIELD``, a value of the wrong Bencode type is ``INVALID_TYPE`` and
text that is not UTF-8 is ``INVALID_VALUE``.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Mapping, TypeVar

from ccmeta.models import UnknownFieldPolicy
from ccmeta.utils.exceptions import SchemaError, SchemaErrorKind

logger = logging.getLogger(__name__)

T = TypeVar("T")

EMPTY: Mapping[bytes, Any] = MappingProxyType({})

_MISSING = object()


def join(where: str, key: bytes | str) -> str:
    """Append ``key`` to the dotted field path ``where``."""
    if isinstance(key, bytes):
        key = key.decode("utf-8", errors="replace")
    return f"{where}.{key}" if where else key


def frozen(mapping: Mapping[Any, Any] | None) -> Mapping[Any, Any]:
    """Return a read-only copy of ``mapping``."""
    if not mapping:
        return EMPTY
    return MappingProxyType(dict(mapping))


def expect_dict(value: Any, where: str) -> dict[bytes, Any]:
    """Return ``value`` if it is a dictionary."""
    if not isinstance(value, dict):
        msg = f"{where or 'value'} must be a dictionary, got {type(value).__name__}"
        raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE, where)
    return value


def require(data: dict[bytes, Any], key: bytes, where: str) -> Any:
    """Return ``data[key]`` or raise ``MISSING_FIELD``."""
    value = data.get(key, _MISSING)
    if value is _MISSING:
        msg = f"Missing required field {key.decode()!r} in {where or 'torrent'}"
        raise SchemaError(msg, SchemaErrorKind.MISSING_FIELD, join(where, key))
    return value


def as_int(value: Any, where: str, minimum: int | None = None) -> int:
    """Validate a Bencode integer, optionally bounded below."""
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{where} must be an integer, got {type(value).__name__}"
        raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE, where)
    if minimum is not None and value < minimum:
        msg = f"{where} must be at least {minimum}, got {value}"
        raise SchemaError(msg, SchemaErrorKind.INVALID_VALUE, where)
    return value


def as_bytes(value: Any, where: str) -> bytes:
    """Validate a Bencode byte string."""
    if not isinstance(value, bytes):
        msg = f"{where} must be a byte string, got {type(value).__name__}"
        raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE, where)
    return value


def as_text(value: Any, where: str) -> str:
    """Validate a UTF-8 Bencode byte string and return it as text."""
    raw = as_bytes(value, where)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        msg = f"{where} is not valid UTF-8: {raw[:32]!r}"
        raise SchemaError(msg, SchemaErrorKind.INVALID_VALUE, where) from e


def as_list(value: Any, where: str) -> list[Any]:
    """Validate a Bencode list."""
    if not isinstance(value, list):
        msg = f"{where} must be a list, got {type(value).__name__}"
        raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE, where)
    return value


def path_segment(
    value: Any,
    where: str,
    kind: SchemaErrorKind = SchemaErrorKind.INVALID_VALUE,
) -> str:
    """Validate one component of a file path.

    Components must be nonempty UTF-8, must not be ``.`` or ``..`` and must
    not contain ``/``.
    """
    if not isinstance(value, bytes):
        msg = f"Path component in {where} must be a byte string"
        raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE, where)
    try:
        name = value.decode("utf-8")
    except UnicodeDecodeError as e:
        msg = f"Path component {value!r} in {where} is not valid UTF-8"
        raise SchemaError(msg, kind, where) from e
    if not name or name in (".", "..") or "/" in name:
        msg = f"Invalid path component {name!r} in {where}"
        raise SchemaError(msg, kind, where)
    return name


def unknown_fields(
    data: dict[bytes, Any],
    known: frozenset[bytes],
    policy: UnknownFieldPolicy,
    where: str,
) -> Mapping[bytes, Any]:
    """Apply the unknown-field policy to the keys of ``data`` not in ``known``.

    Returns:
        The retained unknown entries (empty unless the policy is RETAIN)

    Raises:
        SchemaError: ``UNKNOWN_FIELD`` for the first unknown key under STRICT

    """
    extra = {key: value for key, value in data.items() if key not in known}
    if not extra:
        return EMPTY

    if policy is UnknownFieldPolicy.STRICT:
        key = next(iter(extra))
        msg = f"Unknown field {key!r} in {where or 'torrent'}"
        raise SchemaError(msg, SchemaErrorKind.UNKNOWN_FIELD, join(where, key))
    if policy is UnknownFieldPolicy.DROP:
        logger.debug("Dropping unknown fields in %s: %s", where or "torrent", list(extra))
        return EMPTY

    logger.debug("Retaining unknown fields in %s: %s", where or "torrent", list(extra))
    return MappingProxyType(extra)


def digest(hash_type: type[T], value: Any, where: str) -> T:
    """Build a hash wrapper from a byte string, reporting ``where`` on failure."""
    raw = as_bytes(value, where)
    try:
        return hash_type(raw)
    except SchemaError as e:
        raise SchemaError(e.message, e.kind, where) from e
