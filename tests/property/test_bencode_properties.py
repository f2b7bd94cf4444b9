"""Property-based tests for bencode encoding/decoding.

Tests invariants and properties of the bencode implementation
using Hypothesis for automatic test case generation.
"""

from __future__ import annotations

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from ccmeta.core.bencode import INT_MAX, INT_MIN, decode, decode_prefix, encode
from ccmeta.utils.exceptions import BencodeDecodeError

pytestmark = [pytest.mark.property]

# Autouse fixtures in conftest are function scoped
_settings = settings(suppress_health_check=[HealthCheck.function_scoped_fixture])

native_ints = st.integers(min_value=INT_MIN, max_value=INT_MAX)

bencode_values = st.recursive(
    native_ints | st.binary(max_size=64),
    lambda children: st.lists(children, max_size=5)
    | st.dictionaries(st.binary(max_size=16), children, max_size=5),
    max_leaves=30,
)


class TestBencodeProperties:
    """Property-based tests for bencode operations."""

    @_settings
    @given(st.binary())
    def test_string_roundtrip(self, data):
        """Test that encoding and decoding binary data preserves it."""
        assert decode(encode(data)) == data

    @_settings
    @given(st.text())
    def test_text_encoding(self, text):
        """Test text encoding converts to bytes."""
        decoded = decode(encode(text))
        assert isinstance(decoded, bytes)
        assert decoded.decode("utf-8") == text

    @_settings
    @given(native_ints)
    def test_integer_roundtrip(self, i):
        """Test that encoding and decoding an integer preserves it."""
        assert decode(encode(i)) == i

    @_settings
    @given(bencode_values)
    def test_value_roundtrip(self, value):
        """decode(encode(v)) == v for every value."""
        assert decode(encode(value)) == value

    @_settings
    @given(bencode_values)
    def test_encoding_is_canonical(self, value):
        """Re-encoding a decoded buffer reproduces it byte for byte."""
        data = encode(value)
        assert encode(decode(data)) == data

    @_settings
    @given(bencode_values, st.binary(min_size=1, max_size=16))
    def test_prefix_consumed(self, value, trailer):
        """decode_prefix consumes exactly the encoded value."""
        data = encode(value)
        decoded, consumed = decode_prefix(data + trailer)
        assert decoded == value
        assert consumed == len(data)

    @_settings
    @given(st.binary(max_size=64))
    def test_arbitrary_input_never_crashes(self, data):
        """Random bytes either decode or raise a classified error."""
        try:
            value = decode(data)
        except BencodeDecodeError as e:
            assert e.kind is not None
            assert 0 <= e.position <= len(data)
        else:
            assert encode(value) == data
