"""Fixed-length hash wrappers used by metainfo fields."""

from __future__ import annotations

import binascii
from dataclasses import dataclass
from typing import ClassVar

from ccmeta.utils.exceptions import SchemaError, SchemaErrorKind


@dataclass(frozen=True)
class _Digest:
    """Raw digest of a fixed size."""

    digest: bytes

    size: ClassVar[int] = 0
    algorithm: ClassVar[str] = ""

    def __post_init__(self) -> None:
        """Validate digest type and length."""
        if not isinstance(self.digest, (bytes, bytearray, memoryview)):
            msg = (
                f"{self.algorithm} hash must be bytes, "
                f"got {type(self.digest).__name__}"
            )
            raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE)
        raw = bytes(self.digest)
        if len(raw) != self.size:
            msg = (
                f"{self.algorithm} hash must be {self.size} bytes, got {len(raw)}"
            )
            raise SchemaError(msg, SchemaErrorKind.INVALID_HASH)
        object.__setattr__(self, "digest", raw)

    def hex(self) -> str:
        """Return the digest as lowercase hex."""
        return self.digest.hex()

    def __bytes__(self) -> bytes:
        return self.digest

    def __str__(self) -> str:
        return self.hex()


@dataclass(frozen=True)
class Sha1Hash(_Digest):
    """20-byte SHA-1 digest (v1 pieces, ``sha1`` file field, v1 info hash)."""

    size: ClassVar[int] = 20
    algorithm: ClassVar[str] = "SHA-1"


@dataclass(frozen=True)
class Sha256Hash(_Digest):
    """32-byte SHA-256 digest (v2 pieces roots and piece layers)."""

    size: ClassVar[int] = 32
    algorithm: ClassVar[str] = "SHA-256"


@dataclass(frozen=True)
class Md5Hash:
    """MD5 checksum from the optional BEP 3 ``md5sum`` field.

    The field is specified as 32 hex characters, but some producers write
    the 16 raw bytes instead. Both are accepted and the original form is
    kept in ``value`` so the field re-encodes unchanged.
    """

    value: bytes

    def __post_init__(self) -> None:
        """Validate the checksum in either of its two encodings."""
        if not isinstance(self.value, (bytes, bytearray, memoryview)):
            msg = f"md5sum must be a byte string, got {type(self.value).__name__}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE)
        raw = bytes(self.value)
        object.__setattr__(self, "value", raw)
        if len(raw) == 16:
            return
        if len(raw) == 32:
            try:
                binascii.unhexlify(raw)
            except (binascii.Error, ValueError) as e:
                msg = f"md5sum is not valid hex: {raw!r}"
                raise SchemaError(msg, SchemaErrorKind.INVALID_HASH) from e
            return
        msg = f"md5sum must be 16 raw bytes or 32 hex characters, got {len(raw)} bytes"
        raise SchemaError(msg, SchemaErrorKind.INVALID_HASH)

    @property
    def digest(self) -> bytes:
        """The 16-byte digest."""
        if len(self.value) == 16:
            return self.value
        return binascii.unhexlify(self.value)

    def hex(self) -> str:
        """Return the digest as lowercase hex."""
        return self.digest.hex()

    def __str__(self) -> str:
        return self.hex()
