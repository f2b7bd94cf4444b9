"""BEP 47: padding files and extended file attributes.

The ``attr`` field of a file entry is a short string of flag characters:

- ``p``: padding file
- ``l``: symbolic link (``symlink path`` holds the target)
- ``x``: executable
- ``h``: hidden
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntFlag
from typing import Any

from ccmeta.utils.exceptions import SchemaError, SchemaErrorKind

logger = logging.getLogger(__name__)


class FileAttribute(IntFlag):
    """File attribute flags from BEP 47."""

    NONE = 0  # No attributes
    PADDING = 1 << 0  # Padding file (bit 0)
    SYMLINK = 1 << 1  # Symbolic link (bit 1)
    EXECUTABLE = 1 << 2  # Executable file (bit 2)
    HIDDEN = 1 << 3  # Hidden file (bit 3)


_FLAG_CHARS = {
    "p": FileAttribute.PADDING,
    "l": FileAttribute.SYMLINK,
    "x": FileAttribute.EXECUTABLE,
    "h": FileAttribute.HIDDEN,
}


def _split_flags(attr_str: str) -> tuple[FileAttribute, str]:
    flags = FileAttribute.NONE
    unknown = ""
    for char in attr_str:
        flag = _FLAG_CHARS.get(char)
        if flag is None:
            unknown += char
        else:
            flags |= flag
    return flags, unknown


def parse_attributes(
    attr_str: str | None,
    strict: bool = False,
    where: str = "attr",
) -> FileAttribute:
    """Parse attribute string into FileAttribute flags.

    Args:
        attr_str: Attribute string (e.g., "px", "lh", "x")
        strict: Raise on unknown characters instead of ignoring them
        where: Field path reported in errors

    Returns:
        FileAttribute flags combined with bitwise OR

    Raises:
        SchemaError: If ``strict`` and an unknown character is present

    Examples:
        >>> parse_attributes("p") == FileAttribute.PADDING
        True
        >>> parse_attributes("px") == (FileAttribute.PADDING | FileAttribute.EXECUTABLE)
        True
        >>> parse_attributes(None) == FileAttribute.NONE
        True

    """
    if not attr_str:
        return FileAttribute.NONE

    flags, unknown = _split_flags(attr_str)
    if unknown and strict:
        msg = f"Unknown attribute characters {unknown!r} in {attr_str!r}"
        raise SchemaError(msg, SchemaErrorKind.INVALID_VALUE, where)
    for char in unknown:
        logger.warning("Unknown attribute character: %s", char)

    return flags


@dataclass(frozen=True)
class FileAttributes:
    """Parsed ``attr`` field that keeps its original text for re-encoding."""

    text: str
    flags: FileAttribute = field(init=False, compare=False)

    def __post_init__(self) -> None:
        """Derive the flags; unknown characters are kept in ``text`` only."""
        object.__setattr__(self, "flags", _split_flags(self.text)[0])

    @classmethod
    def from_bencode(
        cls,
        value: Any,
        strict: bool = False,
        where: str = "attr",
    ) -> FileAttributes:
        """Parse a decoded ``attr`` byte string."""
        if not isinstance(value, bytes):
            msg = f"attr must be a byte string, got {type(value).__name__}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE, where)
        try:
            text = value.decode("utf-8")
        except UnicodeDecodeError as e:
            msg = f"attr is not valid UTF-8: {value!r}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_VALUE, where) from e
        parse_attributes(text, strict=strict, where=where)
        return cls(text)

    @classmethod
    def from_flags(cls, flags: FileAttribute) -> FileAttributes:
        """Build the canonical ``attr`` text for ``flags``."""
        text = "".join(char for char, flag in _FLAG_CHARS.items() if flag in flags)
        return cls(text)

    @property
    def is_padding(self) -> bool:
        """Whether the file is a BEP 47 padding file."""
        return bool(self.flags & FileAttribute.PADDING)

    @property
    def is_symlink(self) -> bool:
        """Whether the file is a symbolic link."""
        return bool(self.flags & FileAttribute.SYMLINK)

    def __str__(self) -> str:
        return self.text


def is_padding_file(attributes: FileAttributes | None) -> bool:
    """Check if attributes indicate a padding file."""
    return attributes is not None and attributes.is_padding


def validate_symlink(
    attributes: FileAttributes | None,
    symlink_path: tuple[str, ...] | None,
) -> bool:
    """Validate symlink attributes and path are consistent.

    Returns:
        True if valid (either not a symlink, or symlink with path)
        False if symlink attribute without path

    """
    if attributes is not None and attributes.is_symlink:
        return bool(symlink_path)
    return True


def get_attribute_display_string(attributes: FileAttributes | None) -> str:
    """Get human-readable display string for attributes.

    Examples:
        >>> get_attribute_display_string(FileAttributes.from_flags(FileAttribute.PADDING))
        '[p]'
        >>> get_attribute_display_string(None)
        ''

    """
    if attributes is None:
        return ""
    return "".join(
        f"[{char}]" for char, flag in _FLAG_CHARS.items() if flag in attributes.flags
    )
