"""Bencoding module for BitTorrent metainfo.

This module provides a convenient interface to the core bencode functionality.
"""

from __future__ import annotations

from ccmeta.core.bencode import (
    BencodeDecoder,
    BencodeEncoder,
    BencodeValue,
    decode,
    decode_prefix,
    encode,
)

__all__ = [
    "BencodeDecoder",
    "BencodeEncoder",
    "BencodeValue",
    "decode",
    "decode_prefix",
    "encode",
]
