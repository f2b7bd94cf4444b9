"""Piece geometry: piece length, v1 piece hashes and v2 piece layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from ccmeta.core.hashes import Sha1Hash, Sha256Hash
from ccmeta.utils.exceptions import SchemaError, SchemaErrorKind

MIN_PIECE_LENGTH = 16


@dataclass(frozen=True)
class PieceLength:
    """Bytes per piece: a power of two, at least 16."""

    value: int

    def __post_init__(self) -> None:
        """Validate piece length."""
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            msg = f"piece length must be an integer, got {type(self.value).__name__}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE, "piece length")
        if self.value < MIN_PIECE_LENGTH:
            msg = f"piece length must be at least {MIN_PIECE_LENGTH}, got {self.value}"
            raise SchemaError(
                msg, SchemaErrorKind.INVALID_PIECE_LENGTH, "piece length"
            )
        if self.value & (self.value - 1):
            msg = f"piece length must be a power of two, got {self.value}"
            raise SchemaError(
                msg, SchemaErrorKind.INVALID_PIECE_LENGTH, "piece length"
            )

    def __int__(self) -> int:
        return self.value

    def piece_count(self, total_length: int) -> int:
        """Number of pieces needed to cover ``total_length`` bytes."""
        return -(-total_length // self.value)


@dataclass(frozen=True)
class Pieces:
    """Concatenated SHA-1 piece hashes of a v1 torrent."""

    data: bytes

    def __post_init__(self) -> None:
        """Validate that the data splits into whole SHA-1 digests."""
        if not isinstance(self.data, (bytes, bytearray, memoryview)):
            msg = f"pieces must be a byte string, got {type(self.data).__name__}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE, "pieces")
        raw = bytes(self.data)
        if len(raw) % Sha1Hash.size:
            msg = (
                f"pieces length must be a multiple of {Sha1Hash.size}, "
                f"got {len(raw)}"
            )
            raise SchemaError(msg, SchemaErrorKind.INVALID_PIECES, "pieces")
        object.__setattr__(self, "data", raw)

    def __len__(self) -> int:
        return len(self.data) // Sha1Hash.size

    def __getitem__(self, index: int) -> Sha1Hash:
        count = len(self)
        if index < 0:
            index += count
        if not 0 <= index < count:
            msg = f"Piece index {index} out of range (0-{count - 1})"
            raise IndexError(msg)
        start = index * Sha1Hash.size
        return Sha1Hash(self.data[start : start + Sha1Hash.size])

    def __iter__(self) -> Iterator[Sha1Hash]:
        for start in range(0, len(self.data), Sha1Hash.size):
            yield Sha1Hash(self.data[start : start + Sha1Hash.size])


@dataclass(frozen=True)
class PieceLayer:
    """Concatenated SHA-256 piece hashes of one v2 file.

    Entries of the top-level ``piece layers`` dictionary, keyed by the
    file's ``pieces root``.
    """

    data: bytes

    def __post_init__(self) -> None:
        """Validate piece layer data."""
        if not isinstance(self.data, (bytes, bytearray, memoryview)):
            msg = f"Piece layer must be a byte string, got {type(self.data).__name__}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE, "piece layers")
        raw = bytes(self.data)
        if not raw or len(raw) % Sha256Hash.size:
            msg = (
                "Piece layer length must be a nonzero multiple of "
                f"{Sha256Hash.size} bytes (SHA-256), got {len(raw)}"
            )
            raise SchemaError(
                msg, SchemaErrorKind.INVALID_PIECE_LAYERS, "piece layers"
            )
        object.__setattr__(self, "data", raw)

    def num_pieces(self) -> int:
        """Get the number of pieces in this layer."""
        return len(self.data) // Sha256Hash.size

    def get_piece_hash(self, index: int) -> Sha256Hash:
        """Get the SHA-256 hash for a piece at the given index."""
        if index < 0 or index >= self.num_pieces():
            msg = f"Piece index {index} out of range (0-{self.num_pieces() - 1})"
            raise IndexError(msg)
        start = index * Sha256Hash.size
        return Sha256Hash(self.data[start : start + Sha256Hash.size])

    def __len__(self) -> int:
        return self.num_pieces()

    def __iter__(self) -> Iterator[Sha256Hash]:
        for start in range(0, len(self.data), Sha256Hash.size):
            yield Sha256Hash(self.data[start : start + Sha256Hash.size])
