"""Exception hierarchy for ccmeta.

Every error raised by the codec is classified: Bencode syntax errors carry a
:class:`BencodeErrorKind` and the byte offset where parsing stopped, schema
errors carry a :class:`SchemaErrorKind` and the dotted path of the field
that failed.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class BencodeErrorKind(str, Enum):
    """Classes of Bencode syntax errors."""

    UNEXPECTED_END = "unexpected_end"
    INVALID_TOKEN = "invalid_token"
    MALFORMED_INTEGER = "malformed_integer"
    INTEGER_OUT_OF_RANGE = "integer_out_of_range"
    BAD_LENGTH_PREFIX = "bad_length_prefix"
    LENGTH_OUT_OF_RANGE = "length_out_of_range"
    UNTERMINATED = "unterminated"
    INVALID_KEY = "invalid_key"
    UNSORTED_KEYS = "unsorted_keys"
    DUPLICATE_KEY = "duplicate_key"
    DEPTH_EXCEEDED = "depth_exceeded"
    TRAILING_BYTES = "trailing_bytes"


class SchemaErrorKind(str, Enum):
    """Classes of metainfo schema errors."""

    NOT_A_DICTIONARY = "not_a_dictionary"
    UNRECOGNIZED_INFO = "unrecognized_info"
    INVALID_PIECE_LENGTH = "invalid_piece_length"
    INVALID_PIECES = "invalid_pieces"
    INVALID_PIECE_LAYERS = "invalid_piece_layers"
    INVALID_FILE_TREE = "invalid_file_tree"
    UNKNOWN_FIELD = "unknown_field"
    INVALID_PRIVATE = "invalid_private"
    MISSING_FIELD = "missing_field"
    INVALID_TYPE = "invalid_type"
    INVALID_HASH = "invalid_hash"
    INVALID_URI = "invalid_uri"
    INVALID_VALUE = "invalid_value"
    CONFLICTING_FIELDS = "conflicting_fields"


class CCMetaError(Exception):
    """Base exception for all ccmeta errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize ccmeta error."""
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class ValidationError(CCMetaError):
    """Data validation errors."""


class ConfigurationError(ValidationError):
    """Configuration validation errors."""


class BencodeError(ValidationError):
    """Bencode encoding/decoding errors."""


class BencodeDecodeError(BencodeError):
    """Malformed Bencode input."""

    def __init__(self, message: str, kind: BencodeErrorKind, position: int):
        """Initialize decode error with its kind and byte offset."""
        super().__init__(message, {"kind": kind.value, "position": position})
        self.kind = kind
        self.position = position


class BencodeEncodeError(BencodeError):
    """Value that cannot be represented in Bencode.

    Only raised for objects that never came out of the decoder, so it always
    points at a programming error in the caller.
    """


class SchemaError(ValidationError):
    """Metainfo that is valid Bencode but violates the torrent schema."""

    def __init__(self, message: str, kind: SchemaErrorKind, field: str = ""):
        """Initialize schema error with its kind and the failing field path."""
        details: dict[str, Any] = {"kind": kind.value}
        if field:
            details["field"] = field
        super().__init__(message, details)
        self.kind = kind
        self.field = field


TorrentError = SchemaError
