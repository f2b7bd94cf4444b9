"""ccmeta - BitTorrent metainfo codec.

Strict Bencode decoding and encoding, and a typed schema for v1, v2 and
hybrid ``.torrent`` files.
"""

from __future__ import annotations

__version__ = "0.1.0"

from ccmeta.core.bencode import decode, decode_prefix, encode
from ccmeta.core.files import FileTree, FileTreePathView
from ccmeta.core.info import Hybrid, MetaV1, MetaV2, MetaVersion
from ccmeta.core.torrent import Torrent, TorrentParser, decode_torrent, encode_torrent
from ccmeta.models import Config, DecodeOptions, SchemaOptions, UnknownFieldPolicy
from ccmeta.utils.exceptions import (
    BencodeDecodeError,
    BencodeEncodeError,
    BencodeErrorKind,
    CCMetaError,
    SchemaError,
    SchemaErrorKind,
)

__all__ = [
    "BencodeDecodeError",
    "BencodeEncodeError",
    "BencodeErrorKind",
    "CCMetaError",
    "Config",
    "DecodeOptions",
    "FileTree",
    "FileTreePathView",
    "Hybrid",
    "MetaV1",
    "MetaV2",
    "MetaVersion",
    "SchemaError",
    "SchemaErrorKind",
    "SchemaOptions",
    "Torrent",
    "TorrentParser",
    "UnknownFieldPolicy",
    "__version__",
    "decode",
    "decode_prefix",
    "decode_torrent",
    "encode",
    "encode_torrent",
]
