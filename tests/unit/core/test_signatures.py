"""Unit tests for BEP 35 signature entries."""

from __future__ import annotations

import pytest

from ccmeta.core.signatures import Signature, parse_signatures
from ccmeta.models import UnknownFieldPolicy
from ccmeta.utils.exceptions import SchemaError, SchemaErrorKind

pytestmark = [pytest.mark.unit, pytest.mark.core]

RETAIN = UnknownFieldPolicy.RETAIN
STRICT = UnknownFieldPolicy.STRICT


class TestSignature:
    """Test single signature entries."""

    def test_minimal(self):
        """Only the signature bytes are required."""
        entry = Signature.from_bencode({b"signature": b"\x01" * 64}, RETAIN, "sig")
        assert entry.signature == b"\x01" * 64
        assert entry.certificate is None
        assert entry.info is None
        assert entry.to_dict() == {b"signature": b"\x01" * 64}

    def test_full(self):
        """Certificate and info are kept as given."""
        raw = {
            b"certificate": b"\x30\x82\x01\x0a",
            b"info": {b"expires": 1700000000},
            b"signature": b"\x02" * 256,
        }
        entry = Signature.from_bencode(raw, STRICT, "sig")
        assert entry.certificate == b"\x30\x82\x01\x0a"
        assert entry.info == {b"expires": 1700000000}
        assert entry.to_dict() == raw

    def test_missing_signature(self):
        """An entry without signature bytes is MISSING_FIELD."""
        with pytest.raises(SchemaError) as exc_info:
            Signature.from_bencode({b"certificate": b"x"}, RETAIN, "signatures.alice")
        assert exc_info.value.kind is SchemaErrorKind.MISSING_FIELD
        assert exc_info.value.field == "signatures.alice.signature"

    def test_empty_signature(self):
        """Empty signature bytes are rejected with the entry path."""
        with pytest.raises(SchemaError) as exc_info:
            Signature.from_bencode({b"signature": b""}, RETAIN, "signatures.alice")
        assert exc_info.value.kind is SchemaErrorKind.INVALID_VALUE
        assert exc_info.value.field == "signatures.alice.signature"

    @pytest.mark.parametrize(
        ("raw", "field"),
        [
            ({b"signature": 1}, "sig.signature"),
            ({b"certificate": 1, b"signature": b"s"}, "sig.certificate"),
            ({b"info": b"x", b"signature": b"s"}, "sig.info"),
        ],
    )
    def test_wrong_types(self, raw, field):
        """Each field has a fixed Bencode type."""
        with pytest.raises(SchemaError) as exc_info:
            Signature.from_bencode(raw, RETAIN, "sig")
        assert exc_info.value.kind is SchemaErrorKind.INVALID_TYPE
        assert exc_info.value.field == field

    def test_unknown_keys(self):
        """Unknown keys follow the policy."""
        raw = {b"signature": b"s", b"x-note": b"hi"}
        entry = Signature.from_bencode(raw, RETAIN, "sig")
        assert entry.extra == {b"x-note": b"hi"}
        assert entry.to_dict() == raw

        with pytest.raises(SchemaError) as exc_info:
            Signature.from_bencode(raw, STRICT, "sig")
        assert exc_info.value.kind is SchemaErrorKind.UNKNOWN_FIELD
        assert exc_info.value.field == "sig.x-note"

    def test_construct_directly(self):
        """Entries built in code are validated."""
        assert Signature(b"s").to_dict() == {b"signature": b"s"}
        with pytest.raises(SchemaError):
            Signature("text")


class TestParseSignatures:
    """Test the signatures dictionary."""

    def test_by_name(self):
        """Entries are keyed by signer name."""
        parsed = parse_signatures(
            {b"alice": {b"signature": b"a"}, b"bob": {b"signature": b"b"}}, RETAIN
        )
        assert list(parsed) == ["alice", "bob"]
        assert parsed["bob"].signature == b"b"

    def test_not_a_dict(self):
        """signatures must be a dictionary."""
        with pytest.raises(SchemaError) as exc_info:
            parse_signatures([b"x"], RETAIN)
        assert exc_info.value.kind is SchemaErrorKind.INVALID_TYPE
        assert exc_info.value.field == "signatures"

    def test_name_not_utf8(self):
        """Signer names are text."""
        with pytest.raises(SchemaError) as exc_info:
            parse_signatures({b"\xff": {b"signature": b"a"}}, RETAIN)
        assert exc_info.value.kind is SchemaErrorKind.INVALID_VALUE

    def test_nested_error_path(self):
        """Errors inside an entry name the signer."""
        with pytest.raises(SchemaError) as exc_info:
            parse_signatures({b"alice": {}}, RETAIN)
        assert exc_info.value.field == "signatures.alice.signature"
