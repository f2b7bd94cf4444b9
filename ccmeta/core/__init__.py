"""Core metainfo codec.

This module contains the format components:
- Bencoding (encoding/decoding)
- Hash, piece and URI value types
- v1/v2 file listings and info dictionaries
- Torrent parsing and info hashes
- BEP 35 signatures
"""

from __future__ import annotations

from ccmeta.core.bencode import (
    BencodeDecoder,
    BencodeEncoder,
    decode,
    decode_prefix,
    encode,
)
from ccmeta.core.files import (
    FileDisplayInfo,
    FileTree,
    FileTreeEntry,
    FileTreeInfo,
    FileTreePathView,
    FlatFile,
)
from ccmeta.core.hashes import Md5Hash, Sha1Hash, Sha256Hash
from ccmeta.core.info import (
    Hybrid,
    Info,
    MetaV1,
    MetaV2,
    MetaVersion,
    detect_meta_version,
    parse_info,
)
from ccmeta.core.pieces import PieceLayer, PieceLength, Pieces
from ccmeta.core.signatures import Signature, parse_signatures
from ccmeta.core.torrent import (
    InfoHash,
    Torrent,
    TorrentParser,
    decode_torrent,
    encode_torrent,
)
from ccmeta.core.torrent_attributes import FileAttribute, FileAttributes
from ccmeta.core.uri import Node, UriWrapper

__all__ = [
    # Bencoding
    "BencodeDecoder",
    "BencodeEncoder",
    "decode",
    "decode_prefix",
    "encode",
    # Value types
    "FileAttribute",
    "FileAttributes",
    "Md5Hash",
    "Node",
    "PieceLayer",
    "PieceLength",
    "Pieces",
    "Sha1Hash",
    "Sha256Hash",
    "Signature",
    "UriWrapper",
    # Files
    "FileDisplayInfo",
    "FileTree",
    "FileTreeEntry",
    "FileTreeInfo",
    "FileTreePathView",
    "FlatFile",
    # Info
    "Hybrid",
    "Info",
    "MetaV1",
    "MetaV2",
    "MetaVersion",
    "detect_meta_version",
    "parse_info",
    # Torrent
    "InfoHash",
    "Torrent",
    "TorrentParser",
    "decode_torrent",
    "encode_torrent",
    "parse_signatures",
]
