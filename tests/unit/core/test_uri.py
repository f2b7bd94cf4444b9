"""Unit tests for tracker URIs and DHT nodes."""

from __future__ import annotations

import pytest

from ccmeta.core.uri import Node, UriWrapper
from ccmeta.utils.exceptions import SchemaError, SchemaErrorKind

pytestmark = [pytest.mark.unit, pytest.mark.core]


class TestUriWrapper:
    """Test UriWrapper validation."""

    @pytest.mark.parametrize(
        "text",
        [
            "http://tracker.example.com/announce",
            "https://tracker.example.com:8443/announce?key=1",
            "udp://tracker.example.com:6969",
            "wss://tracker.example.com/ws",
            "HTTP://Tracker.Example.com/announce",
            "http://[2001:db8::1]:6969/announce",
        ],
    )
    def test_valid(self, text):
        """Absolute URIs with a sanctioned scheme are accepted unchanged."""
        uri = UriWrapper(text)
        assert uri.text == text
        assert str(uri) == text
        assert uri.to_bencode() == text

    def test_scheme_is_lowercased(self):
        """The scheme property is normalized, the text is not."""
        uri = UriWrapper("HTTP://example.com/")
        assert uri.scheme == "http"
        assert uri.text == "HTTP://example.com/"

    def test_host_and_port(self):
        """Host and port are exposed."""
        uri = UriWrapper("udp://tracker.example.com:6969/announce")
        assert uri.host == "tracker.example.com"
        assert uri.port == 6969

    def test_bare_authority(self):
        """host[:port] without a scheme is accepted."""
        uri = UriWrapper("tracker.example.com:6969")
        assert uri.scheme == ""
        assert uri.host == "tracker.example.com"
        assert uri.port == 6969

    @pytest.mark.parametrize(
        "text",
        [
            "file:///etc/passwd",
            "javascript://example.com/alert",
            "/announce",
            "tracker.example.com/announce",
            "http://",
            "http://example.com:notaport/",
            "://example.com",
            "magnet:?xt=urn:btih:0000000000000000000000000000000000000000",
        ],
    )
    def test_invalid(self, text):
        """Local schemes, relative URIs and bad ports are INVALID_URI."""
        with pytest.raises(SchemaError) as exc_info:
            UriWrapper(text, "announce")
        assert exc_info.value.kind is SchemaErrorKind.INVALID_URI
        assert exc_info.value.field == "announce"

    def test_not_text(self):
        """Bytes must be decoded before wrapping."""
        with pytest.raises(SchemaError) as exc_info:
            UriWrapper(b"http://example.com/")
        assert exc_info.value.kind is SchemaErrorKind.INVALID_TYPE

    def test_equality_ignores_location(self):
        """Two wrappers of the same text are equal wherever they came from."""
        a = UriWrapper("http://example.com/", "announce")
        b = UriWrapper("http://example.com/", "url-list[0]")
        assert a == b
        assert hash(a) == hash(b)


class TestNode:
    """Test DHT nodes."""

    def test_from_bencode(self):
        """Nodes decode from [host, port]."""
        node = Node.from_bencode([b"router.example.com", 6881])
        assert node == Node("router.example.com", 6881)
        assert node.to_bencode() == ["router.example.com", 6881]
        assert str(node) == "router.example.com:6881"

    def test_ipv6_display(self):
        """IPv6 hosts are bracketed for display."""
        assert str(Node("2001:db8::1", 6881)) == "[2001:db8::1]:6881"

    @pytest.mark.parametrize(
        "value",
        [[b"host"], [b"host", 1, 2], b"host:1", [1, 6881], [b"host", b"6881"]],
    )
    def test_bad_shape(self, value):
        """Anything but a [bytes, int] pair is INVALID_TYPE."""
        with pytest.raises(SchemaError) as exc_info:
            Node.from_bencode(value)
        assert exc_info.value.kind is SchemaErrorKind.INVALID_TYPE

    @pytest.mark.parametrize("port", [-1, 65536])
    def test_port_range(self, port):
        """Ports outside 0-65535 are INVALID_VALUE."""
        with pytest.raises(SchemaError) as exc_info:
            Node.from_bencode([b"host", port])
        assert exc_info.value.kind is SchemaErrorKind.INVALID_VALUE

    def test_empty_host(self):
        """An empty host is INVALID_VALUE."""
        with pytest.raises(SchemaError) as exc_info:
            Node.from_bencode([b"", 6881])
        assert exc_info.value.kind is SchemaErrorKind.INVALID_VALUE
