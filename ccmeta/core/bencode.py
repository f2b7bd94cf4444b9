"""Bencode encoding and decoding (BEP 3).

The decoder is a strict parser over an in-memory buffer. Open containers
live on an explicit stack capped at ``max_depth``, so hostile nesting fails
with ``DEPTH_EXCEEDED`` instead of exhausting the interpreter stack. It accepts only canonical input: minimal integers, minimal length prefixes
and dictionaries whose keys are byte strings in strictly ascending order.
Anything else raises :class:`BencodeDecodeError` classified by
:class:`BencodeErrorKind`; no partially built value is ever returned.

Decoded values use plain Python types::

    int    <- i42e
    bytes  <- 4:spam
    list   <- l...e
    dict   <- d...e   (keys are bytes, iteration order is key order)

The encoder is the inverse. Dictionary keys are sorted on every call, so the
output does not depend on insertion order.
"""

from __future__ import annotations

from typing import Any, Union

from ccmeta.models import DecodeOptions
from ccmeta.utils.exceptions import (
    BencodeDecodeError,
    BencodeEncodeError,
    BencodeErrorKind,
)


BencodeValue = Union[int, bytes, list, dict]

# Signed 128-bit range used when big integers are disabled
INT_MIN = -(1 << 127)
INT_MAX = (1 << 127) - 1
# Longest decimal rendering of a value inside that range, sign excluded
_NATIVE_DIGITS = len(str(INT_MAX))

_DIGITS = frozenset(b"0123456789")
_DEFAULT_OPTIONS = DecodeOptions()


class _Container:
    """An open list or dictionary on the decoder stack."""

    __slots__ = ("key", "previous", "start", "value")

    def __init__(self, start: int, value: list | dict) -> None:
        self.start = start
        self.value = value
        self.key: bytes | None = None
        self.previous: bytes | None = None


class _Open:
    """Marker returned when a value opens a container instead of completing."""


_OPEN = _Open()


class BencodeDecoder:
    """Decode one Bencode value from a byte buffer.

    Args:
        data: Buffer holding the encoded value
        options: Decoder options (depth bound, trailer and integer policy)
        offset: Position of the first byte of the value

    """

    def __init__(
        self,
        data: bytes | bytearray | memoryview,
        options: DecodeOptions | None = None,
        offset: int = 0,
    ) -> None:
        """Initialize the decoder over ``data``."""
        if not isinstance(data, (bytes, bytearray, memoryview)):
            msg = f"Bencode input must be bytes-like, not {type(data).__name__}"
            raise TypeError(msg)
        self.data = bytes(data)
        self.options = options or _DEFAULT_OPTIONS
        self.pos = offset

    def decode(self) -> BencodeValue:
        """Decode the root value.

        Raises:
            BencodeDecodeError: If the input is malformed, or if bytes follow
                the root value and ``allow_trailing`` is off.

        """
        value = self.decode_value()
        if self.pos != len(self.data) and not self.options.allow_trailing:
            self._fail(
                BencodeErrorKind.TRAILING_BYTES,
                f"{len(self.data) - self.pos} unexpected bytes after the root value",
            )
        return value

    def decode_value(self) -> BencodeValue:
        """Decode the value at the cursor and leave the cursor right after it.

        Open containers are kept on an explicit stack bounded by
        ``max_depth``, so nesting never consumes interpreter frames.
        """
        stack: list[_Container] = []
        while True:
            if stack:
                top = stack[-1]
                if self.pos >= len(self.data):
                    kind = "dictionary" if isinstance(top.value, dict) else "list"
                    self._fail(
                        BencodeErrorKind.UNTERMINATED, f"Unterminated {kind}", top.start
                    )
                if self.data[self.pos] == 0x65:  # e
                    self.pos += 1
                    value = stack.pop().value
                else:
                    if isinstance(top.value, dict):
                        top.key = self._decode_key(top.previous)
                    value = self._start_value(stack)
                    if value is _OPEN:
                        continue
            else:
                value = self._start_value(stack)
                if value is _OPEN:
                    continue

            if not stack:
                return value
            parent = stack[-1]
            if isinstance(parent.value, list):
                parent.value.append(value)
            else:
                parent.value[parent.key] = value
                parent.previous = parent.key

    def _fail(self, kind: BencodeErrorKind, message: str, position: int | None = None):
        at = self.pos if position is None else position
        raise BencodeDecodeError(f"{message} at offset {at}", kind, at)

    def _peek(self) -> int:
        if self.pos >= len(self.data):
            self._fail(BencodeErrorKind.UNEXPECTED_END, "Unexpected end of input")
        return self.data[self.pos]

    def _start_value(self, stack: list[_Container]) -> Any:
        """Decode a scalar, or push a new container and return ``_OPEN``."""
        token = self._peek()
        if token == 0x69:  # i
            return self._decode_int()
        if token in _DIGITS:
            return self._decode_bytes()
        if token in (0x6C, 0x64):  # l, d
            start = self.pos
            if len(stack) >= self.options.max_depth:
                self._fail(
                    BencodeErrorKind.DEPTH_EXCEEDED,
                    f"Nesting deeper than {self.options.max_depth} levels",
                    start,
                )
            self.pos += 1
            stack.append(_Container(start, [] if token == 0x6C else {}))
            return _OPEN
        self._fail(
            BencodeErrorKind.INVALID_TOKEN,
            f"Invalid token {bytes([token])!r}",
        )
        return None  # pragma: no cover - _fail always raises

    def _decode_key(self, previous: bytes | None) -> bytes:
        if self.data[self.pos] not in _DIGITS:
            self._fail(
                BencodeErrorKind.INVALID_KEY,
                "Dictionary keys must be byte strings",
            )
        key_start = self.pos
        key = self._decode_bytes()
        if previous is not None:
            if key == previous:
                self._fail(
                    BencodeErrorKind.DUPLICATE_KEY,
                    f"Duplicate dictionary key {key!r}",
                    key_start,
                )
            if key < previous:
                self._fail(
                    BencodeErrorKind.UNSORTED_KEYS,
                    f"Dictionary key {key!r} sorts before {previous!r}",
                    key_start,
                )
        return key

    def _decode_int(self) -> int:
        start = self.pos
        end = self.data.find(b"e", start + 1)
        if end == -1:
            self._fail(
                BencodeErrorKind.UNEXPECTED_END, "Integer is missing its 'e'", start
            )
        body = self.data[start + 1 : end]
        negative = body[:1] == b"-"
        digits = body[1:] if negative else body

        if not digits or not all(ch in _DIGITS for ch in digits):
            self._fail(
                BencodeErrorKind.MALFORMED_INTEGER, f"Malformed integer {body!r}", start
            )
        if digits[0] == 0x30 and (negative or len(digits) > 1):
            # Covers i-0e, i03e and i-03e
            self._fail(
                BencodeErrorKind.MALFORMED_INTEGER,
                f"Non-canonical integer {body!r}",
                start,
            )
        if not self.options.big_integers and len(digits) > _NATIVE_DIGITS:
            self._fail(
                BencodeErrorKind.INTEGER_OUT_OF_RANGE,
                "Integer exceeds the signed 128-bit range",
                start,
            )

        try:
            value = int(body)
        except ValueError:
            # Interpreter limit on int/str conversion of huge digit strings
            self._fail(
                BencodeErrorKind.INTEGER_OUT_OF_RANGE,
                f"Integer with {len(digits)} digits is too large",
                start,
            )

        if not self.options.big_integers and not INT_MIN <= value <= INT_MAX:
            self._fail(
                BencodeErrorKind.INTEGER_OUT_OF_RANGE,
                "Integer exceeds the signed 128-bit range",
                start,
            )
        self.pos = end + 1
        return value

    def _decode_bytes(self) -> bytes:
        start = self.pos
        colon = self.pos
        limit = len(self.data)
        while colon < limit and self.data[colon] in _DIGITS:
            colon += 1
        if colon >= limit:
            self._fail(
                BencodeErrorKind.UNEXPECTED_END, "Byte string length is unterminated"
            )
        if self.data[colon] != 0x3A:  # :
            self._fail(
                BencodeErrorKind.BAD_LENGTH_PREFIX,
                "Byte string length must be followed by ':'",
                colon,
            )

        prefix = self.data[start:colon]
        if len(prefix) > 1 and prefix[0] == 0x30:
            self._fail(
                BencodeErrorKind.BAD_LENGTH_PREFIX,
                f"Non-canonical length prefix {prefix!r}",
                start,
            )
        remaining = limit - colon - 1
        # A prefix with more digits than the buffer size cannot fit
        if len(prefix) > len(str(remaining)) or int(prefix) > remaining:
            self._fail(
                BencodeErrorKind.LENGTH_OUT_OF_RANGE,
                f"Declared length {prefix.decode('ascii')} exceeds the "
                f"{remaining} bytes available",
                start,
            )

        length = int(prefix)
        self.pos = colon + 1 + length
        return self.data[colon + 1 : self.pos]



class _End:
    """Marker closing a list or dictionary on the encoder stack."""


_END = _End()


class BencodeEncoder:
    """Encode Python values into canonical Bencode."""

    def encode(self, obj: Any) -> bytes:
        """Encode ``obj``.

        Accepts ``int``, ``bool``, ``bytes``-like, ``str`` (UTF-8), ``list``,
        ``tuple`` and ``dict`` with ``bytes`` or ``str`` keys.

        Raises:
            BencodeEncodeError: If ``obj`` holds a type Bencode cannot express
                or a dictionary whose keys collide once converted to bytes.

        """
        out: list[bytes] = []
        stack: list[Any] = [obj]
        while stack:
            item = stack.pop()
            if item is _END:
                out.append(b"e")
            elif isinstance(item, (bytes, bytearray, memoryview)):
                raw = bytes(item)
                out.append(b"%d:%s" % (len(raw), raw))
            elif isinstance(item, str):
                raw = item.encode("utf-8")
                out.append(b"%d:%s" % (len(raw), raw))
            elif isinstance(item, bool):
                out.append(b"i1e" if item else b"i0e")
            elif isinstance(item, int):
                try:
                    out.append(b"i%de" % item)
                except ValueError as e:
                    # Interpreter limit on int/str conversion
                    msg = f"Integer too large to encode: {e}"
                    raise BencodeEncodeError(msg) from e
            elif isinstance(item, (list, tuple)):
                out.append(b"l")
                stack.append(_END)
                stack.extend(reversed(item))
            elif isinstance(item, dict):
                out.append(b"d")
                stack.append(_END)
                for key, value in reversed(self._sorted_items(item)):
                    stack.append(value)
                    stack.append(key)
            else:
                msg = f"Cannot bencode object of type {type(item).__name__}"
                raise BencodeEncodeError(msg)
        return b"".join(out)

    @staticmethod
    def _sorted_items(mapping: dict[Any, Any]) -> list[tuple[bytes, Any]]:
        items: dict[bytes, Any] = {}
        for key, value in mapping.items():
            if isinstance(key, str):
                raw = key.encode("utf-8")
            elif isinstance(key, (bytes, bytearray, memoryview)):
                raw = bytes(key)
            else:
                msg = f"Dictionary keys must be bytes or str, not {type(key).__name__}"
                raise BencodeEncodeError(msg)
            if raw in items:
                msg = f"Dictionary key {raw!r} appears more than once"
                raise BencodeEncodeError(msg)
            items[raw] = value
        return sorted(items.items(), key=lambda pair: pair[0])


_ENCODER = BencodeEncoder()


def decode(
    data: bytes | bytearray | memoryview,
    options: DecodeOptions | None = None,
) -> BencodeValue:
    """Decode a complete Bencode buffer.

    Args:
        data: Encoded bytes
        options: Decoder options; defaults reject trailing bytes

    Returns:
        The decoded value

    Raises:
        BencodeDecodeError: If the buffer is not exactly one canonical value

    """
    return BencodeDecoder(data, options).decode()


def decode_prefix(
    data: bytes | bytearray | memoryview,
    offset: int = 0,
    options: DecodeOptions | None = None,
) -> tuple[BencodeValue, int]:
    """Decode the value starting at ``offset`` and ignore whatever follows.

    Returns:
        ``(value, consumed)`` where ``consumed`` counts the bytes that belong
        to the value, so ``offset + consumed`` is where the next value starts.

    """
    decoder = BencodeDecoder(data, options, offset)
    value = decoder.decode_value()
    return value, decoder.pos - offset


def encode(obj: Any) -> bytes:
    """Encode ``obj`` to canonical Bencode bytes."""
    return _ENCODER.encode(obj)
