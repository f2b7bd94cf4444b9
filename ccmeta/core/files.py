"""File listings of v1 and v2 metainfo.

v1 multi-file torrents list their files in ``info.files`` as flat entries
with a path list. v2 torrents (BEP 52) nest them in ``info.file tree``::

    {"dir": {"a.txt": {"": {"length": 5, "pieces root": <32 bytes>}}}}

A node holding the empty key is a file; any other node is a directory.
Building, walking and serializing a :class:`FileTree` all use explicit
stacks, so arbitrarily deep trees never hit the interpreter recursion limit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, NamedTuple, Union

from ccmeta.core import fields
from ccmeta.core.hashes import Md5Hash, Sha1Hash, Sha256Hash
from ccmeta.core.torrent_attributes import (
    FileAttributes,
    is_padding_file,
    validate_symlink,
)
from ccmeta.models import UnknownFieldPolicy
from ccmeta.utils.exceptions import SchemaError, SchemaErrorKind

logger = logging.getLogger(__name__)


def _check_segments(segments: tuple[str, ...], where: str) -> None:
    for segment in segments:
        if not isinstance(segment, str):
            msg = f"Path components in {where} must be text"
            raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE, where)
        fields.path_segment(segment.encode("utf-8"), where)


@dataclass(frozen=True)
class FlatFile:
    """One entry of a v1 ``files`` list."""

    length: int
    path: tuple[str, ...]
    attr: FileAttributes | None = None
    md5sum: Md5Hash | None = None
    sha1: Sha1Hash | None = None
    symlink_path: tuple[str, ...] | None = None
    extra: Mapping[bytes, Any] = field(default_factory=dict)

    KNOWN_KEYS = frozenset(
        {b"attr", b"length", b"md5sum", b"path", b"sha1", b"symlink path"}
    )

    def __post_init__(self) -> None:
        """Validate length and path."""
        fields.as_int(self.length, "files.length", minimum=0)
        object.__setattr__(self, "path", tuple(self.path))
        if not self.path:
            msg = "files.path must have at least one component"
            raise SchemaError(msg, SchemaErrorKind.INVALID_VALUE, "files.path")
        _check_segments(self.path, "files.path")
        if self.symlink_path is not None:
            object.__setattr__(self, "symlink_path", tuple(self.symlink_path))
        object.__setattr__(self, "extra", fields.frozen(self.extra))

    @property
    def is_padding(self) -> bool:
        """Whether this entry is a BEP 47 padding file."""
        return is_padding_file(self.attr)

    @property
    def name(self) -> str:
        """Last path component."""
        return self.path[-1]

    @classmethod
    def from_bencode(
        cls,
        value: Any,
        policy: UnknownFieldPolicy,
        where: str = "info.files",
    ) -> FlatFile:
        """Build a file entry from its decoded dictionary."""
        data = fields.expect_dict(value, where)
        length = fields.as_int(
            fields.require(data, b"length", where), f"{where}.length", minimum=0
        )

        raw_path = fields.as_list(fields.require(data, b"path", where), f"{where}.path")
        if not raw_path:
            msg = f"{where}.path must have at least one component"
            raise SchemaError(msg, SchemaErrorKind.INVALID_VALUE, f"{where}.path")
        path = tuple(fields.path_segment(seg, f"{where}.path") for seg in raw_path)

        attr = None
        if b"attr" in data:
            attr = FileAttributes.from_bencode(
                data[b"attr"],
                strict=policy is UnknownFieldPolicy.STRICT,
                where=f"{where}.attr",
            )
        md5sum = None
        if b"md5sum" in data:
            md5sum = fields.digest(Md5Hash, data[b"md5sum"], f"{where}.md5sum")
        sha1 = None
        if b"sha1" in data:
            sha1 = fields.digest(Sha1Hash, data[b"sha1"], f"{where}.sha1")
        symlink_path = None
        if b"symlink path" in data:
            raw_target = fields.as_list(data[b"symlink path"], f"{where}.symlink path")
            # Targets may climb out of the file's directory, so ".." is allowed
            symlink_path = tuple(
                fields.as_text(seg, f"{where}.symlink path") for seg in raw_target
            )
        if not validate_symlink(attr, symlink_path):
            msg = f"{where} has the symlink attribute but no symlink path"
            raise SchemaError(msg, SchemaErrorKind.MISSING_FIELD, f"{where}.symlink path")

        return cls(
            length=length,
            path=path,
            attr=attr,
            md5sum=md5sum,
            sha1=sha1,
            symlink_path=symlink_path,
            extra=fields.unknown_fields(data, cls.KNOWN_KEYS, policy, where),
        )

    def to_dict(self) -> dict[bytes, Any]:
        """Return the Bencode dictionary for this entry."""
        result: dict[bytes, Any] = dict(self.extra)
        result[b"length"] = self.length
        result[b"path"] = [seg.encode("utf-8") for seg in self.path]
        if self.attr is not None:
            result[b"attr"] = self.attr.text.encode("utf-8")
        if self.md5sum is not None:
            result[b"md5sum"] = self.md5sum.value
        if self.sha1 is not None:
            result[b"sha1"] = self.sha1.digest
        if self.symlink_path is not None:
            result[b"symlink path"] = [seg.encode("utf-8") for seg in self.symlink_path]
        return result


@dataclass(frozen=True)
class FileTreeInfo:
    """Leaf of a v2 file tree, stored under the empty key."""

    length: int
    pieces_root: Sha256Hash | None = None
    attr: FileAttributes | None = None
    extra: Mapping[bytes, Any] = field(default_factory=dict)

    KNOWN_KEYS = frozenset({b"attr", b"length", b"pieces root"})

    def __post_init__(self) -> None:
        """Validate length and pieces root."""
        fields.as_int(self.length, "length", minimum=0)
        if self.length > 0 and self.pieces_root is None:
            msg = "Nonempty file must have a pieces root"
            raise SchemaError(msg, SchemaErrorKind.MISSING_FIELD, "pieces root")
        if self.pieces_root is not None and not isinstance(self.pieces_root, Sha256Hash):
            msg = "pieces root must be a Sha256Hash"
            raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE, "pieces root")
        object.__setattr__(self, "extra", fields.frozen(self.extra))

    @classmethod
    def from_bencode(
        cls,
        value: Any,
        policy: UnknownFieldPolicy,
        where: str,
    ) -> FileTreeInfo:
        """Build a leaf from the dictionary stored under the empty key."""
        if not isinstance(value, dict):
            msg = f"File entry at {where} must be a dictionary"
            raise SchemaError(msg, SchemaErrorKind.INVALID_FILE_TREE, where)
        length = fields.as_int(
            fields.require(value, b"length", where), f"{where}.length", minimum=0
        )

        pieces_root = None
        if b"pieces root" in value:
            pieces_root = fields.digest(
                Sha256Hash, value[b"pieces root"], f"{where}.pieces root"
            )
        elif length > 0:
            msg = f"Nonempty file at {where} is missing its pieces root"
            raise SchemaError(msg, SchemaErrorKind.MISSING_FIELD, f"{where}.pieces root")

        attr = None
        if b"attr" in value:
            attr = FileAttributes.from_bencode(
                value[b"attr"],
                strict=policy is UnknownFieldPolicy.STRICT,
                where=f"{where}.attr",
            )
        return cls(
            length=length,
            pieces_root=pieces_root,
            attr=attr,
            extra=fields.unknown_fields(value, cls.KNOWN_KEYS, policy, where),
        )

    def to_dict(self) -> dict[bytes, Any]:
        """Return the Bencode dictionary stored under the empty key."""
        result: dict[bytes, Any] = dict(self.extra)
        result[b"length"] = self.length
        if self.pieces_root is not None:
            result[b"pieces root"] = self.pieces_root.digest
        if self.attr is not None:
            result[b"attr"] = self.attr.text.encode("utf-8")
        return result


@dataclass(frozen=True)
class FileTreeEntry:
    """Name slot holding exactly one file: ``{name: {"": {...}}}``."""

    info: FileTreeInfo


class FileTreePathView(NamedTuple):
    """A file found while walking a :class:`FileTree`."""

    directory: tuple[str, ...]
    name: str
    info: FileTreeInfo

    @property
    def path(self) -> tuple[str, ...]:
        """Full path of the file, name included."""
        return (*self.directory, self.name)


class FileDisplayInfo(NamedTuple):
    """Version-agnostic description of one file of a torrent."""

    path: tuple[str, ...]
    name: str
    length: int
    attr: FileAttributes | None = None

    @property
    def full_path(self) -> str:
        """Slash-separated path relative to the torrent root."""
        return "/".join((*self.path, self.name))

    @property
    def is_padding(self) -> bool:
        """Whether this is a BEP 47 padding file."""
        return is_padding_file(self.attr)


FileTreeNode = Union["FileTree", FileTreeEntry]


@dataclass(frozen=True)
class FileTree:
    """Directory of a v2 file tree.

    ``children`` maps names to subdirectories or file entries and is kept in
    ascending byte order of the UTF-8 names.
    """

    children: Mapping[str, FileTreeNode]

    def __post_init__(self) -> None:
        """Validate and order the children."""
        if not self.children:
            msg = "Directory in file tree must not be empty"
            raise SchemaError(msg, SchemaErrorKind.INVALID_FILE_TREE, "file tree")
        for name in self.children:
            if not isinstance(name, str):
                msg = f"File tree names must be text, got {type(name).__name__}"
                raise SchemaError(msg, SchemaErrorKind.INVALID_TYPE, "file tree")
        ordered: dict[str, FileTreeNode] = {}
        # UTF-8 byte order equals code point order
        for name in sorted(self.children):
            child = self.children[name]
            fields.path_segment(
                name.encode("utf-8"), "file tree", SchemaErrorKind.INVALID_FILE_TREE
            )
            if not isinstance(child, (FileTree, FileTreeEntry)):
                msg = f"File tree child {name!r} must be a FileTree or FileTreeEntry"
                raise SchemaError(msg, SchemaErrorKind.INVALID_FILE_TREE, "file tree")
            ordered[name] = child
        object.__setattr__(self, "children", fields.frozen(ordered))

    def __getitem__(self, name: str) -> FileTreeNode:
        return self.children[name]

    def __contains__(self, name: object) -> bool:
        return name in self.children

    @classmethod
    def from_bencode(
        cls,
        value: Any,
        policy: UnknownFieldPolicy,
        where: str = "info.file tree",
    ) -> FileTree:
        """Build a tree from the decoded ``file tree`` dictionary.

        Raises:
            SchemaError: ``INVALID_FILE_TREE`` for structural violations, or
                the leaf's own error kind for an invalid file entry

        """
        if not isinstance(value, dict):
            msg = f"{where} must be a dictionary, got {type(value).__name__}"
            raise SchemaError(msg, SchemaErrorKind.INVALID_FILE_TREE, where)
        if b"" in value:
            msg = f"{where} root must be a directory, not a file"
            raise SchemaError(msg, SchemaErrorKind.INVALID_FILE_TREE, where)

        # Pre-order pass: validate and index every directory. Children always
        # get a higher index than their parent.
        slots: list[list[tuple[str, FileTreeEntry | int]]] = []
        stack: list[tuple[str, dict[bytes, Any], int, int]] = [(where, value, -1, -1)]
        while stack:
            node_where, node, parent, slot = stack.pop()
            if not node:
                msg = f"Directory at {node_where} is empty"
                raise SchemaError(msg, SchemaErrorKind.INVALID_FILE_TREE, node_where)
            index = len(slots)
            if parent >= 0:
                name = slots[parent][slot][0]
                slots[parent][slot] = (name, index)
            items: list[tuple[str, FileTreeEntry | int]] = []
            slots.append(items)

            for key, child in node.items():
                name = fields.path_segment(
                    key, node_where, SchemaErrorKind.INVALID_FILE_TREE
                )
                child_where = f"{node_where}/{name}" if parent >= 0 else f"{node_where}.{name}"
                if not isinstance(child, dict):
                    msg = f"Node at {child_where} must be a dictionary"
                    raise SchemaError(
                        msg, SchemaErrorKind.INVALID_FILE_TREE, child_where
                    )
                if b"" in child:
                    if len(child) != 1:
                        msg = f"File node at {child_where} has sibling keys"
                        raise SchemaError(
                            msg, SchemaErrorKind.INVALID_FILE_TREE, child_where
                        )
                    leaf = FileTreeInfo.from_bencode(child[b""], policy, child_where)
                    items.append((name, FileTreeEntry(leaf)))
                else:
                    items.append((name, -1))
                    stack.append((child_where, child, index, len(items) - 1))

        built: list[FileTree | None] = [None] * len(slots)
        for index in range(len(slots) - 1, -1, -1):
            children: dict[str, FileTreeNode] = {}
            for name, ref in slots[index]:
                if isinstance(ref, int):
                    children[name] = built[ref]
                    built[ref] = None
                else:
                    children[name] = ref
            built[index] = cls(children)
        return built[0]

    def to_dict(self) -> dict[bytes, Any]:
        """Return the Bencode ``file tree`` dictionary."""
        root: dict[bytes, Any] = {}
        stack: list[tuple[FileTree, dict[bytes, Any]]] = [(self, root)]
        while stack:
            node, out = stack.pop()
            for name, child in node.children.items():
                key = name.encode("utf-8")
                if isinstance(child, FileTreeEntry):
                    out[key] = {b"": child.info.to_dict()}
                else:
                    sub: dict[bytes, Any] = {}
                    out[key] = sub
                    stack.append((child, sub))
        return root

    def iter_dfs(self) -> Iterator[FileTreePathView]:
        """Walk every file depth-first, siblings in ascending name order."""
        stack: list[FileTreePathView | tuple[tuple[str, ...], FileTree]] = [
            ((), self)
        ]
        while stack:
            item = stack.pop()
            if isinstance(item, FileTreePathView):
                yield item
                continue
            directory, node = item
            for name, child in reversed(list(node.children.items())):
                if isinstance(child, FileTreeEntry):
                    stack.append(FileTreePathView(directory, name, child.info))
                else:
                    stack.append(((*directory, name), child))

    def __iter__(self) -> Iterator[tuple[tuple[str, ...], FileTreeInfo]]:
        for view in self.iter_dfs():
            yield view.path, view.info

    def total_length(self) -> int:
        """Sum of all file lengths."""
        return sum(view.info.length for view in self.iter_dfs())

    def file_count(self) -> int:
        """Number of files in the tree."""
        return sum(1 for _ in self.iter_dfs())

    def pieces_roots(self) -> set[Sha256Hash]:
        """Pieces roots of all nonempty files."""
        return {
            view.info.pieces_root
            for view in self.iter_dfs()
            if view.info.pieces_root is not None
        }
