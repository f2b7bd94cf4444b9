"""The ``info`` dictionary: v1, v2 and hybrid layouts.

Which layout an info dictionary uses is decided by the keys it carries:

- v1 markers: ``pieces``, ``length``, ``files``
- v2 markers: ``file tree``, ``meta version``

Both marker sets means hybrid (BEP 52 "hybrid torrent"). Each layout is a
frozen dataclass; all three share the same convenience surface
(``name``, ``private``, ``iter_files()``, ``total_length``, ``to_dict()``)
so callers rarely need to branch on the variant.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Iterator, Mapping, Union

from ccmeta.core import fields
from ccmeta.core.files import FileDisplayInfo, FileTree, FlatFile
from ccmeta.core.hashes import Md5Hash, Sha1Hash
from ccmeta.core.pieces import PieceLength, Pieces
from ccmeta.models import UnknownFieldPolicy
from ccmeta.utils.exceptions import SchemaError, SchemaErrorKind

logger = logging.getLogger(__name__)

V1_MARKERS = frozenset({b"pieces", b"length", b"files"})
V2_MARKERS = frozenset({b"file tree", b"meta version"})

_COMMON_KEYS = frozenset({b"name", b"piece length", b"private"})
V1_KEYS = _COMMON_KEYS | {b"files", b"length", b"md5sum", b"pieces"}
V2_KEYS = _COMMON_KEYS | {b"file tree", b"meta version", b"root hash"}
HYBRID_KEYS = V1_KEYS | V2_KEYS

SUPPORTED_META_VERSION = 2


class MetaVersion(str, Enum):
    """Metainfo layout of an info dictionary."""

    V1 = "1"
    V2 = "2"
    HYBRID = "hybrid"


def detect_meta_version(info: Mapping[bytes, Any]) -> MetaVersion:
    """Classify an info dictionary by its marker keys.

    Raises:
        SchemaError: ``UNRECOGNIZED_INFO`` if neither marker set is present

    """
    has_v1 = any(key in info for key in V1_MARKERS)
    has_v2 = any(key in info for key in V2_MARKERS)
    if has_v1 and has_v2:
        return MetaVersion.HYBRID
    if has_v2:
        return MetaVersion.V2
    if has_v1:
        return MetaVersion.V1
    msg = "info has neither v1 (pieces/length/files) nor v2 (file tree/meta version) keys"
    raise SchemaError(msg, SchemaErrorKind.UNRECOGNIZED_INFO, "info")


def _parse_private(data: dict[bytes, Any], where: str) -> tuple[bool, bool]:
    """Return ``(private, present)``; absent means not private."""
    if b"private" not in data:
        return False, False
    value = data[b"private"]
    if isinstance(value, int) and not isinstance(value, bool) and value in (0, 1):
        return bool(value), True
    msg = f"private must be 0 or 1, got {value!r}"
    raise SchemaError(msg, SchemaErrorKind.INVALID_PRIVATE, f"{where}.private")


def _parse_common(
    data: dict[bytes, Any], where: str
) -> tuple[str, PieceLength, bool, bool]:
    name = fields.as_text(fields.require(data, b"name", where), f"{where}.name")
    raw_piece_length = fields.require(data, b"piece length", where)
    fields.as_int(raw_piece_length, f"{where}.piece length")
    try:
        piece_length = PieceLength(raw_piece_length)
    except SchemaError as e:
        raise SchemaError(e.message, e.kind, f"{where}.piece length") from e
    private, private_present = _parse_private(data, where)
    return name, piece_length, private, private_present


def _parse_v1_layout(
    data: dict[bytes, Any],
    policy: UnknownFieldPolicy,
    where: str,
) -> tuple[Pieces, int | None, tuple[FlatFile, ...] | None, Md5Hash | None]:
    raw_pieces = fields.as_bytes(fields.require(data, b"pieces", where), f"{where}.pieces")
    try:
        pieces = Pieces(raw_pieces)
    except SchemaError as e:
        raise SchemaError(e.message, e.kind, f"{where}.pieces") from e

    has_length = b"length" in data
    has_files = b"files" in data
    if has_length and has_files:
        msg = f"{where} has both 'length' and 'files'"
        raise SchemaError(msg, SchemaErrorKind.CONFLICTING_FIELDS, where)
    if not has_length and not has_files:
        msg = f"{where} needs either 'length' (single file) or 'files' (multi-file)"
        raise SchemaError(msg, SchemaErrorKind.MISSING_FIELD, f"{where}.length")

    length = None
    files = None
    if has_length:
        length = fields.as_int(data[b"length"], f"{where}.length", minimum=0)
    else:
        raw_files = fields.as_list(data[b"files"], f"{where}.files")
        if not raw_files:
            msg = f"{where}.files must not be empty"
            raise SchemaError(msg, SchemaErrorKind.INVALID_VALUE, f"{where}.files")
        files = tuple(
            FlatFile.from_bencode(entry, policy, f"{where}.files[{index}]")
            for index, entry in enumerate(raw_files)
        )

    md5sum = None
    if b"md5sum" in data:
        md5sum = fields.digest(Md5Hash, data[b"md5sum"], f"{where}.md5sum")
    return pieces, length, files, md5sum


def _parse_v2_layout(
    data: dict[bytes, Any],
    policy: UnknownFieldPolicy,
    where: str,
) -> tuple[int, FileTree, Sha1Hash | None]:
    meta_version = fields.as_int(
        fields.require(data, b"meta version", where), f"{where}.meta version"
    )
    if meta_version != SUPPORTED_META_VERSION:
        msg = f"Unsupported meta version {meta_version}"
        raise SchemaError(msg, SchemaErrorKind.INVALID_VALUE, f"{where}.meta version")
    file_tree = FileTree.from_bencode(
        fields.require(data, b"file tree", where), policy, f"{where}.file tree"
    )
    root_hash = None
    if b"root hash" in data:
        # BEP 30 Merkle root hash
        root_hash = fields.digest(Sha1Hash, data[b"root hash"], f"{where}.root hash")
    return meta_version, file_tree, root_hash


def _check_v1_layout(length: int | None, files: tuple[FlatFile, ...] | None) -> None:
    if (length is None) == (files is None):
        msg = "Exactly one of length or files must be set"
        raise SchemaError(msg, SchemaErrorKind.CONFLICTING_FIELDS, "info")
    if files is not None and not files:
        msg = "files must not be empty"
        raise SchemaError(msg, SchemaErrorKind.INVALID_VALUE, "info.files")


def _v1_files(
    name: str, length: int | None, files: tuple[FlatFile, ...] | None
) -> Iterator[FileDisplayInfo]:
    if files is None:
        yield FileDisplayInfo((), name, length or 0)
        return
    for entry in files:
        yield FileDisplayInfo(entry.path[:-1], entry.path[-1], entry.length, entry.attr)


def _tree_files(file_tree: FileTree) -> Iterator[FileDisplayInfo]:
    for view in file_tree.iter_dfs():
        yield FileDisplayInfo(view.directory, view.name, view.info.length, view.info.attr)


def _common_dict(info: Any) -> dict[bytes, Any]:
    result: dict[bytes, Any] = dict(info.extra)
    result[b"name"] = info.name.encode("utf-8")
    result[b"piece length"] = info.piece_length.value
    if info.private or info.private_present:
        result[b"private"] = int(info.private)
    return result


def _v1_dict(info: Any, result: dict[bytes, Any]) -> None:
    result[b"pieces"] = info.pieces.data
    if info.length is not None:
        result[b"length"] = info.length
    else:
        result[b"files"] = [entry.to_dict() for entry in info.files]
    if info.md5sum is not None:
        result[b"md5sum"] = info.md5sum.value


def _v2_dict(info: Any, result: dict[bytes, Any]) -> None:
    result[b"meta version"] = info.meta_version
    result[b"file tree"] = info.file_tree.to_dict()
    if info.root_hash is not None:
        result[b"root hash"] = info.root_hash.digest


def _freeze_common(info: Any) -> None:
    if not isinstance(info.piece_length, PieceLength):
        object.__setattr__(info, "piece_length", PieceLength(info.piece_length))
    if hasattr(info, "pieces") and not isinstance(info.pieces, Pieces):
        object.__setattr__(info, "pieces", Pieces(info.pieces))
    root_hash = getattr(info, "root_hash", None)
    if root_hash is not None and not isinstance(root_hash, Sha1Hash):
        object.__setattr__(info, "root_hash", Sha1Hash(root_hash))
    if info.private:
        object.__setattr__(info, "private_present", True)
    object.__setattr__(info, "extra", fields.frozen(info.extra))


@dataclass(frozen=True)
class MetaV1:
    """BEP 3 info dictionary: SHA-1 pieces over the concatenated files."""

    name: str
    piece_length: PieceLength
    pieces: Pieces
    length: int | None = None
    files: tuple[FlatFile, ...] | None = None
    md5sum: Md5Hash | None = None
    private: bool = False
    private_present: bool = field(default=False, compare=False)
    extra: Mapping[bytes, Any] = field(default_factory=dict)

    version: ClassVar[MetaVersion] = MetaVersion.V1
    KNOWN_KEYS: ClassVar[frozenset[bytes]] = V1_KEYS

    def __post_init__(self) -> None:
        """Validate the single-file/multi-file layout."""
        if self.files is not None:
            object.__setattr__(self, "files", tuple(self.files))
        _check_v1_layout(self.length, self.files)
        _freeze_common(self)

    @property
    def meta_version_label(self) -> str:
        """Short label of the layout."""
        return self.version.value

    @property
    def is_multi_file(self) -> bool:
        """Whether the torrent lists its files in ``files``."""
        return self.files is not None

    def iter_files(self) -> Iterator[FileDisplayInfo]:
        """Iterate over the files of the torrent."""
        return _v1_files(self.name, self.length, self.files)

    @property
    def total_length(self) -> int:
        """Total length of all non-padding files."""
        return sum(f.length for f in self.iter_files() if not f.is_padding)

    def to_dict(self) -> dict[bytes, Any]:
        """Return the Bencode info dictionary."""
        result = _common_dict(self)
        _v1_dict(self, result)
        return result


@dataclass(frozen=True)
class MetaV2:
    """BEP 52 info dictionary: a file tree with per-file Merkle roots."""

    name: str
    piece_length: PieceLength
    file_tree: FileTree
    meta_version: int = SUPPORTED_META_VERSION
    root_hash: Sha1Hash | None = None
    private: bool = False
    private_present: bool = field(default=False, compare=False)
    extra: Mapping[bytes, Any] = field(default_factory=dict)

    version: ClassVar[MetaVersion] = MetaVersion.V2
    KNOWN_KEYS: ClassVar[frozenset[bytes]] = V2_KEYS

    def __post_init__(self) -> None:
        """Validate meta version."""
        if self.meta_version != SUPPORTED_META_VERSION:
            msg = f"Unsupported meta version {self.meta_version}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_VALUE, "info.meta version")
        _freeze_common(self)

    @property
    def meta_version_label(self) -> str:
        """Short label of the layout."""
        return self.version.value

    def iter_files(self) -> Iterator[FileDisplayInfo]:
        """Iterate over the files of the torrent in file tree order."""
        return _tree_files(self.file_tree)

    @property
    def total_length(self) -> int:
        """Total length of all files."""
        return self.file_tree.total_length()

    def to_dict(self) -> dict[bytes, Any]:
        """Return the Bencode info dictionary."""
        result = _common_dict(self)
        _v2_dict(self, result)
        return result


@dataclass(frozen=True)
class Hybrid:
    """Info dictionary carrying both the v1 and the v2 layout.

    The two halves describe the same content. Disagreement between them
    raises ``CONFLICTING_FIELDS``; neither side is preferred.
    """

    name: str
    piece_length: PieceLength
    pieces: Pieces
    file_tree: FileTree
    length: int | None = None
    files: tuple[FlatFile, ...] | None = None
    md5sum: Md5Hash | None = None
    meta_version: int = SUPPORTED_META_VERSION
    root_hash: Sha1Hash | None = None
    private: bool = False
    private_present: bool = field(default=False, compare=False)
    extra: Mapping[bytes, Any] = field(default_factory=dict)

    version: ClassVar[MetaVersion] = MetaVersion.HYBRID
    KNOWN_KEYS: ClassVar[frozenset[bytes]] = HYBRID_KEYS

    def __post_init__(self) -> None:
        """Validate both layouts and their agreement."""
        if self.files is not None:
            object.__setattr__(self, "files", tuple(self.files))
        _check_v1_layout(self.length, self.files)
        if self.meta_version != SUPPORTED_META_VERSION:
            msg = f"Unsupported meta version {self.meta_version}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_VALUE, "info.meta version")
        self._check_consistency()
        _freeze_common(self)

    def _check_consistency(self) -> None:
        tree_files = list(self.file_tree.iter_dfs())
        if self.length is not None:
            if len(tree_files) != 1:
                msg = (
                    "Single-file hybrid torrent has "
                    f"{len(tree_files)} files in its file tree"
                )
                raise SchemaError(msg, SchemaErrorKind.CONFLICTING_FIELDS, "info.file tree")
            if tree_files[0].info.length != self.length:
                msg = (
                    f"v1 length {self.length} does not match file tree "
                    f"length {tree_files[0].info.length}"
                )
                raise SchemaError(msg, SchemaErrorKind.CONFLICTING_FIELDS, "info.length")
            return

        v1_files = [entry for entry in self.files if not entry.is_padding]
        if len(v1_files) != len(tree_files):
            msg = (
                f"v1 files list {len(v1_files)} files but the file tree "
                f"holds {len(tree_files)}"
            )
            raise SchemaError(msg, SchemaErrorKind.CONFLICTING_FIELDS, "info.files")
        v1_total = sum(entry.length for entry in v1_files)
        v2_total = sum(view.info.length for view in tree_files)
        if v1_total != v2_total:
            msg = (
                f"v1 files total {v1_total} bytes but the file tree "
                f"totals {v2_total}"
            )
            raise SchemaError(msg, SchemaErrorKind.CONFLICTING_FIELDS, "info.files")

    @property
    def meta_version_label(self) -> str:
        """Short label of the layout."""
        return self.version.value

    @property
    def is_multi_file(self) -> bool:
        """Whether the v1 half lists its files in ``files``."""
        return self.files is not None

    def iter_files(self) -> Iterator[FileDisplayInfo]:
        """Iterate over the files of the torrent in file tree order."""
        return _tree_files(self.file_tree)

    @property
    def total_length(self) -> int:
        """Total length of all files."""
        return self.file_tree.total_length()

    def to_dict(self) -> dict[bytes, Any]:
        """Return the Bencode info dictionary."""
        result = _common_dict(self)
        _v1_dict(self, result)
        _v2_dict(self, result)
        return result


Info = Union[MetaV1, MetaV2, Hybrid]


def parse_info(
    value: Any,
    policy: UnknownFieldPolicy = UnknownFieldPolicy.RETAIN,
    where: str = "info",
) -> Info:
    """Build the matching :data:`Info` variant from a decoded info dictionary.

    Args:
        value: Decoded ``info`` value
        policy: What to do with keys the variant does not know
        where: Field path reported in errors

    Returns:
        ``MetaV1``, ``MetaV2`` or ``Hybrid``

    Raises:
        SchemaError: If the dictionary does not satisfy its layout

    """
    if not isinstance(value, dict):
        msg = f"{where} must be a dictionary, got {type(value).__name__}"
        raise SchemaError(msg, SchemaErrorKind.NOT_A_DICTIONARY, where)

    version = detect_meta_version(value)
    logger.debug("Detected %s info dictionary", version.name)
    name, piece_length, private, private_present = _parse_common(value, where)

    if version is MetaVersion.V1:
        pieces, length, files, md5sum = _parse_v1_layout(value, policy, where)
        return MetaV1(
            name=name,
            piece_length=piece_length,
            pieces=pieces,
            length=length,
            files=files,
            md5sum=md5sum,
            private=private,
            private_present=private_present,
            extra=fields.unknown_fields(value, V1_KEYS, policy, where),
        )

    if version is MetaVersion.V2:
        meta_version, file_tree, root_hash = _parse_v2_layout(value, policy, where)
        return MetaV2(
            name=name,
            piece_length=piece_length,
            file_tree=file_tree,
            meta_version=meta_version,
            root_hash=root_hash,
            private=private,
            private_present=private_present,
            extra=fields.unknown_fields(value, V2_KEYS, policy, where),
        )

    pieces, length, files, md5sum = _parse_v1_layout(value, policy, where)
    meta_version, file_tree, root_hash = _parse_v2_layout(value, policy, where)
    return Hybrid(
        name=name,
        piece_length=piece_length,
        pieces=pieces,
        file_tree=file_tree,
        length=length,
        files=files,
        md5sum=md5sum,
        meta_version=meta_version,
        root_hash=root_hash,
        private=private,
        private_present=private_present,
        extra=fields.unknown_fields(value, HYBRID_KEYS, policy, where),
    )
