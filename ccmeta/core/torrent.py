"""Torrent metainfo parsing, serialization and info hashes.

This module maps a whole ``.torrent`` document onto :class:`Torrent`,
computes its v1 (SHA-1) and v2 (SHA-256) info hashes and writes it back to
canonical Bencode.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, NamedTuple

from ccmeta.core import fields
from ccmeta.core.bencode import BencodeDecoder, encode
from ccmeta.core.files import FileDisplayInfo, FileTreeInfo, FileTreePathView
from ccmeta.core.hashes import Sha1Hash, Sha256Hash
from ccmeta.core.info import Hybrid, Info, MetaV1, MetaV2, MetaVersion, parse_info
from ccmeta.core.pieces import PieceLayer
from ccmeta.core.signatures import Signature, parse_signatures
from ccmeta.core.uri import Node, UriWrapper
from ccmeta.models import Config, UnknownFieldPolicy
from ccmeta.utils.exceptions import SchemaError, SchemaErrorKind

logger = logging.getLogger(__name__)

TORRENT_KEYS = frozenset(
    {
        b"announce",
        b"announce-list",
        b"comment",
        b"created by",
        b"creation date",
        b"encoding",
        b"httpseeds",
        b"info",
        b"nodes",
        b"piece layers",
        b"publisher",
        b"publisher-url",
        b"signatures",
        b"url-list",
    }
)


class InfoHash(NamedTuple):
    """Info hashes of a torrent; each is None when the layout lacks it."""

    v1: Sha1Hash | None
    v2: Sha256Hash | None


@dataclass(frozen=True)
class Torrent:
    """A parsed metainfo document."""

    info: Info
    announce: UriWrapper | None = None
    announce_list: tuple[tuple[UriWrapper, ...], ...] | None = None
    comment: str | None = None
    created_by: str | None = None
    creation_date: int | None = None
    encoding: str | None = None
    url_list: tuple[UriWrapper, ...] | None = None
    httpseeds: tuple[UriWrapper, ...] | None = None
    nodes: tuple[Node, ...] | None = None
    piece_layers: Mapping[Sha256Hash, PieceLayer] | None = None
    publisher: str | None = None
    publisher_url: UriWrapper | None = None
    signatures: Mapping[str, Signature] | None = None
    extra: Mapping[bytes, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Normalize sequences and check piece layers against the file tree."""
        if not isinstance(self.info, (MetaV1, MetaV2, Hybrid)):
            msg = f"info must be MetaV1, MetaV2 or Hybrid, got {type(self.info).__name__}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE, "info")
        if self.announce_list is not None:
            object.__setattr__(
                self,
                "announce_list",
                tuple(tuple(tier) for tier in self.announce_list),
            )
        for name in ("url_list", "httpseeds", "nodes"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, tuple(value))
        if self.creation_date is not None:
            fields.as_int(self.creation_date, "creation date", minimum=0)
        if self.piece_layers is not None:
            object.__setattr__(self, "piece_layers", fields.frozen(self.piece_layers))
            self._check_piece_layers()
        if self.signatures is not None:
            for name, signature in self.signatures.items():
                if not isinstance(name, str) or not isinstance(signature, Signature):
                    msg = "signatures must map signer names to Signature"
                    raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE, "signatures")
            object.__setattr__(self, "signatures", fields.frozen(self.signatures))
        object.__setattr__(self, "extra", fields.frozen(self.extra))

    def _check_piece_layers(self) -> None:
        if isinstance(self.info, MetaV1):
            msg = "piece layers require a v2 or hybrid info dictionary"
            raise SchemaError(msg, SchemaErrorKind.INVALID_PIECE_LAYERS, "piece layers")

        lengths = {
            view.info.pieces_root: view.info.length
            for view in self.info.file_tree.iter_dfs()
            if view.info.pieces_root is not None
        }
        piece_length = self.info.piece_length
        for root, layer in self.piece_layers.items():
            if not isinstance(root, Sha256Hash) or not isinstance(layer, PieceLayer):
                msg = "piece layers must map Sha256Hash to PieceLayer"
                raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE, "piece layers")
            where = f"piece layers.{root.hex()}"
            if root not in lengths:
                msg = f"Piece layer {root.hex()} matches no pieces root in the file tree"
                raise SchemaError(msg, SchemaErrorKind.INVALID_PIECE_LAYERS, where)
            if lengths[root] <= piece_length.value:
                # The pieces root already is the only hash of such a file
                msg = (
                    f"Piece layer {root.hex()} belongs to a file no larger "
                    "than one piece"
                )
                raise SchemaError(msg, SchemaErrorKind.INVALID_PIECE_LAYERS, where)
            expected = piece_length.piece_count(lengths[root])
            if layer.num_pieces() != expected:
                msg = (
                    f"Piece layer {root.hex()} has {layer.num_pieces()} hashes, "
                    f"file needs {expected}"
                )
                raise SchemaError(msg, SchemaErrorKind.INVALID_PIECE_LAYERS, where)

    @property
    def name(self) -> str:
        """Suggested file or directory name."""
        return self.info.name

    @property
    def private(self) -> bool:
        """Whether the torrent is private (BEP 27)."""
        return self.info.private

    @property
    def meta_version(self) -> MetaVersion:
        """Layout of the info dictionary."""
        return self.info.version

    @property
    def total_length(self) -> int:
        """Total content length in bytes."""
        return self.info.total_length

    def iter_files(self) -> Iterator[FileDisplayInfo]:
        """Iterate over the files of the torrent."""
        return self.info.iter_files()

    def trackers(self) -> list[UriWrapper]:
        """All tracker URLs, ``announce`` first, without duplicates."""
        seen: dict[UriWrapper, None] = {}
        if self.announce is not None:
            seen[self.announce] = None
        for tier in self.announce_list or ():
            for uri in tier:
                seen.setdefault(uri, None)
        return list(seen)

    def piece_hashes_for(
        self, leaf: FileTreeInfo | FileTreePathView
    ) -> tuple[Sha256Hash, ...]:
        """Return the per-piece SHA-256 hashes of a v2 file.

        A file no larger than one piece is covered by its pieces root alone;
        larger files take their hashes from ``piece layers``. Empty files
        have no hashes.

        Raises:
            SchemaError: If the torrent has no v2 layout, or if the layer of
                a multi-piece file is missing

        """
        if isinstance(self.info, MetaV1):
            msg = "v1 torrents have no per-file piece hashes"
            raise SchemaError(msg, SchemaErrorKind.INVALID_VALUE, "info")
        if isinstance(leaf, FileTreePathView):
            leaf = leaf.info
        if leaf.pieces_root is None:
            return ()
        if leaf.length <= self.info.piece_length.value:
            return (leaf.pieces_root,)
        layer = (self.piece_layers or {}).get(leaf.pieces_root)
        if layer is None:
            msg = f"No piece layer for pieces root {leaf.pieces_root.hex()}"
            raise SchemaError(msg, SchemaErrorKind.MISSING_FIELD, "piece layers")
        return tuple(layer)

    def info_bytes(self) -> bytes:
        """Canonical Bencode of the info dictionary."""
        return encode(self.info.to_dict())

    def info_hash_v1(self) -> Sha1Hash | None:
        """SHA-1 of the info dictionary, for v1 and hybrid torrents."""
        if isinstance(self.info, MetaV2):
            return None
        # SHA-1 is the identifier mandated by BEP 3
        return Sha1Hash(hashlib.sha1(self.info_bytes()).digest())  # nosec B324

    def info_hash_v2(self) -> Sha256Hash | None:
        """SHA-256 of the info dictionary, for v2 and hybrid torrents."""
        if isinstance(self.info, MetaV1):
            return None
        return Sha256Hash(hashlib.sha256(self.info_bytes()).digest())

    def info_hash(self) -> InfoHash:
        """Both info hashes that apply to this torrent's layout."""
        raw = self.info_bytes()
        v1 = None
        v2 = None
        if not isinstance(self.info, MetaV2):
            v1 = Sha1Hash(hashlib.sha1(raw).digest())  # nosec B324
        if not isinstance(self.info, MetaV1):
            v2 = Sha256Hash(hashlib.sha256(raw).digest())
        logger.debug(
            "Computed info hash v1=%s v2=%s",
            v1.hex() if v1 else None,
            v2.hex() if v2 else None,
        )
        return InfoHash(v1, v2)

    def to_dict(self) -> dict[bytes, Any]:
        """Return the Bencode dictionary of the whole torrent."""
        result: dict[bytes, Any] = dict(self.extra)
        result[b"info"] = self.info.to_dict()
        if self.announce is not None:
            result[b"announce"] = self.announce.to_bencode().encode("utf-8")
        if self.announce_list is not None:
            result[b"announce-list"] = [
                [uri.to_bencode().encode("utf-8") for uri in tier]
                for tier in self.announce_list
            ]
        for key, text in (
            (b"comment", self.comment),
            (b"created by", self.created_by),
            (b"encoding", self.encoding),
            (b"publisher", self.publisher),
        ):
            if text is not None:
                result[key] = text.encode("utf-8")
        if self.creation_date is not None:
            result[b"creation date"] = self.creation_date
        if self.url_list is not None:
            result[b"url-list"] = [
                uri.to_bencode().encode("utf-8") for uri in self.url_list
            ]
        if self.httpseeds is not None:
            result[b"httpseeds"] = [
                uri.to_bencode().encode("utf-8") for uri in self.httpseeds
            ]
        if self.nodes is not None:
            result[b"nodes"] = [
                [node.host.encode("utf-8"), node.port] for node in self.nodes
            ]
        if self.piece_layers is not None:
            result[b"piece layers"] = {
                root.digest: layer.data for root, layer in self.piece_layers.items()
            }
        if self.publisher_url is not None:
            result[b"publisher-url"] = self.publisher_url.to_bencode().encode("utf-8")
        if self.signatures is not None:
            result[b"signatures"] = {
                name.encode("utf-8"): signature.to_dict()
                for name, signature in self.signatures.items()
            }
        return result

    def to_bytes(self) -> bytes:
        """Canonical Bencode of the whole torrent."""
        return encode(self.to_dict())


def _uri(value: Any, where: str) -> UriWrapper:
    return UriWrapper(fields.as_text(value, where), where)


def _uri_list(value: Any, where: str) -> tuple[UriWrapper, ...]:
    return tuple(
        _uri(item, f"{where}[{index}]")
        for index, item in enumerate(fields.as_list(value, where))
    )


class TorrentParser:
    """Parser for BitTorrent metainfo documents."""

    def __init__(self, config: Config | None = None) -> None:
        """Initialize the torrent parser.

        Args:
            config: Decoder and schema options; defaults to lenient parsing

        """
        self.config = config or Config()
        # A torrent is exactly one dictionary, whatever the trailer setting
        self.decode_options = self.config.bencode.model_copy(
            update={"allow_trailing": False}
        )
        self.policy: UnknownFieldPolicy = self.config.schema_.unknown_fields

    def parse(self, data: bytes | bytearray | memoryview) -> Torrent:
        """Parse a metainfo document.

        Args:
            data: Raw ``.torrent`` bytes

        Returns:
            Torrent object

        Raises:
            BencodeDecodeError: If the bytes are not canonical Bencode
            SchemaError: If the document violates the metainfo schema

        """
        decoded = BencodeDecoder(data, self.decode_options).decode()
        torrent = self.from_value(decoded)
        logger.debug(
            "Parsed %s torrent %r (%d bytes)",
            torrent.meta_version.name,
            torrent.name,
            len(data),
        )
        return torrent

    def from_value(self, value: Any) -> Torrent:
        """Build a torrent from an already decoded Bencode value."""
        if not isinstance(value, dict):
            msg = f"Torrent must be a dictionary, got {type(value).__name__}"
            raise SchemaError(msg, SchemaErrorKind.NOT_A_DICTIONARY)

        info = parse_info(fields.require(value, b"info", ""), self.policy, "info")

        return Torrent(
            info=info,
            announce=self._optional(value, b"announce", _uri),
            announce_list=self._optional(value, b"announce-list", self._announce_list),
            comment=self._optional(value, b"comment", fields.as_text),
            created_by=self._optional(value, b"created by", fields.as_text),
            creation_date=self._optional(value, b"creation date", self._creation_date),
            encoding=self._optional(value, b"encoding", fields.as_text),
            url_list=self._optional(value, b"url-list", self._url_list),
            httpseeds=self._optional(value, b"httpseeds", _uri_list),
            nodes=self._optional(value, b"nodes", self._nodes),
            piece_layers=self._optional(value, b"piece layers", self._piece_layers),
            publisher=self._optional(value, b"publisher", fields.as_text),
            publisher_url=self._optional(value, b"publisher-url", _uri),
            signatures=self._optional(value, b"signatures", self._signatures),
            extra=fields.unknown_fields(value, TORRENT_KEYS, self.policy, ""),
        )

    @staticmethod
    def _optional(data: dict[bytes, Any], key: bytes, convert: Any) -> Any:
        if key not in data:
            return None
        return convert(data[key], key.decode("ascii"))

    @staticmethod
    def _announce_list(value: Any, where: str) -> tuple[tuple[UriWrapper, ...], ...]:
        return tuple(
            _uri_list(tier, f"{where}[{index}]")
            for index, tier in enumerate(fields.as_list(value, where))
        )

    @staticmethod
    def _creation_date(value: Any, where: str) -> int:
        return fields.as_int(value, where, minimum=0)

    @staticmethod
    def _url_list(value: Any, where: str) -> tuple[UriWrapper, ...]:
        # BEP 19 allows a single URL in place of the list
        if isinstance(value, bytes):
            return (_uri(value, where),) if value else ()
        return _uri_list(value, where)

    @staticmethod
    def _nodes(value: Any, where: str) -> tuple[Node, ...]:
        return tuple(Node.from_bencode(item) for item in fields.as_list(value, where))

    def _signatures(self, value: Any, where: str) -> dict[str, Signature]:
        return parse_signatures(value, self.policy, where)

    @staticmethod
    def _piece_layers(value: Any, where: str) -> dict[Sha256Hash, PieceLayer]:
        if not isinstance(value, dict):
            msg = f"{where} must be a dictionary, got {type(value).__name__}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_PIECE_LAYERS, where)
        layers: dict[Sha256Hash, PieceLayer] = {}
        for key, data in value.items():
            root = fields.digest(Sha256Hash, key, where)
            try:
                layers[root] = PieceLayer(data)
            except SchemaError as e:
                raise SchemaError(e.message, e.kind, f"{where}.{root.hex()}") from e
            logger.debug(
                "Parsed piece layer: pieces_root=%s, num_pieces=%d",
                root.hex()[:16],
                layers[root].num_pieces(),
            )
        return layers


def decode_torrent(
    data: bytes | bytearray | memoryview,
    config: Config | None = None,
) -> Torrent:
    """Parse raw metainfo bytes into a :class:`Torrent`."""
    return TorrentParser(config).parse(data)


def encode_torrent(torrent: Torrent) -> bytes:
    """Serialize a :class:`Torrent` to canonical Bencode."""
    return torrent.to_bytes()
