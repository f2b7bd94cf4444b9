"""Command line interface for ccmeta.

Inspect, validate and dump BitTorrent metainfo files:

- ``ccmeta inspect FILE...``: summary and file listing
- ``ccmeta validate FILE...``: OK or the classified error per file
- ``ccmeta dump FILE``: raw Bencode value tree
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from ccmeta.config.config import init_config
from ccmeta.core.bencode import decode
from ccmeta.core.torrent import Torrent, TorrentParser
from ccmeta.core.torrent_attributes import get_attribute_display_string
from ccmeta.models import Config, LogLevel, SchemaOptions, UnknownFieldPolicy
from ccmeta.utils.exceptions import (
    BencodeDecodeError,
    CCMetaError,
    ConfigurationError,
    SchemaError,
)
from ccmeta.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

_VERBOSITY_LEVELS = {1: LogLevel.INFO, 2: LogLevel.DEBUG}


def _format_size(size: int) -> str:
    """Format a byte count for display."""
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if value < 1024 or unit == "TiB":
            return f"{size} B" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"  # pragma: no cover


def _describe_error(error: CCMetaError) -> str:
    """One-line description of a classified error."""
    if isinstance(error, BencodeDecodeError):
        return f"bencode {error.kind.value} at offset {error.position}: {error.message}"
    if isinstance(error, SchemaError):
        where = f" [{error.field}]" if error.field else ""
        return f"schema {error.kind.value}{where}: {error.message}"
    return str(error)


def _get_config_from_context(ctx: click.Context) -> Config:
    return ctx.obj["config"]


def _parse_file(parser: TorrentParser, path: Path) -> Torrent:
    return parser.parse(path.read_bytes())


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Configuration file path",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (-v: info, -vv: debug)",
)
@click.option(
    "--strict/--lenient",
    default=None,
    help="Reject unknown fields (--strict) or keep them (--lenient)",
)
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: int, strict: bool | None):
    """Ccmeta - BitTorrent metainfo inspector."""
    ctx.ensure_object(dict)
    try:
        cfg = init_config(config).config
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    if strict is not None:
        policy = UnknownFieldPolicy.STRICT if strict else UnknownFieldPolicy.RETAIN
        cfg = cfg.model_copy(update={"schema_": SchemaOptions(unknown_fields=policy)})
    if verbose:
        level = _VERBOSITY_LEVELS.get(min(verbose, 2), LogLevel.DEBUG)
        cfg = cfg.model_copy(
            update={
                "observability": cfg.observability.model_copy(
                    update={"log_level": level}
                )
            }
        )

    setup_logging(cfg.observability)
    ctx.obj["config"] = cfg
    ctx.obj["verbosity"] = verbose


@cli.command()
@click.argument(
    "torrents",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.pass_context
def inspect(ctx: click.Context, torrents: tuple[Path, ...]) -> None:
    """Show metadata and files of TORRENTS."""
    console = Console()
    parser = TorrentParser(_get_config_from_context(ctx))
    failed = False

    for path in torrents:
        try:
            torrent = _parse_file(parser, path)
        except CCMetaError as e:
            console.print(
                f"[red]{escape(str(path))}: {escape(_describe_error(e))}[/red]",
                soft_wrap=True,
            )
            failed = True
            continue
        _print_torrent(console, path, torrent)

    if failed:
        ctx.exit(1)


def _print_torrent(console: Console, path: Path, torrent: Torrent) -> None:
    info = torrent.info
    hashes = torrent.info_hash()

    console.print(f"[bold]{escape(str(path))}[/bold]", soft_wrap=True)
    lines = [
        ("Name", torrent.name),
        ("Meta version", info.meta_version_label),
        ("Piece length", _format_size(info.piece_length.value)),
    ]
    if hasattr(info, "pieces"):
        lines.append(("Pieces", str(len(info.pieces))))
    lines.append(("Total size", _format_size(torrent.total_length)))
    lines.append(("Private", "yes" if torrent.private else "no"))
    if hashes.v1 is not None:
        lines.append(("Info hash v1", hashes.v1.hex()))
    if hashes.v2 is not None:
        lines.append(("Info hash v2", hashes.v2.hex()))
    root_hash = getattr(info, "root_hash", None)
    if root_hash is not None:
        lines.append(("Root hash", root_hash.hex()))
    for tracker in torrent.trackers():
        lines.append(("Tracker", str(tracker)))
    if torrent.comment:
        lines.append(("Comment", torrent.comment))
    if torrent.created_by:
        lines.append(("Created by", torrent.created_by))
    for signer in torrent.signatures or {}:
        lines.append(("Signed by", signer))
    for label, value in lines:
        console.print(f"  [cyan]{label}:[/cyan] {escape(value)}", soft_wrap=True)

    table = Table(title="Files")
    table.add_column("Path", style="white")
    table.add_column("Size", justify="right", style="green")
    table.add_column("Attr", style="yellow")
    for entry in torrent.iter_files():
        table.add_row(
            escape(entry.full_path),
            _format_size(entry.length),
            get_attribute_display_string(entry.attr),
        )
    console.print(table)


@cli.command()
@click.argument(
    "torrents",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.pass_context
def validate(ctx: click.Context, torrents: tuple[Path, ...]) -> None:
    """Check that each of TORRENTS is valid metainfo."""
    console = Console()
    parser = TorrentParser(_get_config_from_context(ctx))
    failed = 0

    for path in torrents:
        try:
            torrent = _parse_file(parser, path)
        except CCMetaError as e:
            console.print(
                f"[red]FAIL[/red] {escape(str(path))}: {escape(_describe_error(e))}",
                soft_wrap=True,
                highlight=False,
            )
            failed += 1
            continue
        console.print(
            f"[green]OK[/green] {escape(str(path))} ({torrent.info.meta_version_label})",
            soft_wrap=True,
            highlight=False,
        )

    if failed:
        logger.info("%d of %d files failed validation", failed, len(torrents))
        ctx.exit(1)


def _render_bytes(value: bytes, limit: int) -> str:
    try:
        text = value.decode("utf-8")
    except UnicodeDecodeError:
        text = None
    if text is None or not text.isprintable():
        shown = value[:limit].hex()
        suffix = "..." if len(value) > limit else ""
        return f"<{len(value)} bytes> {shown}{suffix}"
    if len(text) > limit:
        return repr(text[:limit]) + "..."
    return repr(text)


def _build_tree(value: Any, limit: int) -> Tree:
    """Render a decoded value as a rich tree, iteratively."""
    root = Tree("[bold]root[/bold]")
    stack: list[tuple[Tree, str, Any]] = [(root, "", value)]
    while stack:
        parent, label, item = stack.pop()
        prefix = f"{label}: " if label else ""
        if isinstance(item, dict):
            node = parent.add(f"{prefix}[magenta]dict[/magenta] ({len(item)})")
            for key, child in reversed(list(item.items())):
                stack.append((node, escape(_render_bytes(key, limit)), child))
        elif isinstance(item, list):
            node = parent.add(f"{prefix}[magenta]list[/magenta] ({len(item)})")
            for index in range(len(item) - 1, -1, -1):
                stack.append((node, f"[{index}]", item[index]))
        elif isinstance(item, bytes):
            parent.add(f"{prefix}[green]{escape(_render_bytes(item, limit))}[/green]")
        else:
            parent.add(f"{prefix}[cyan]{item}[/cyan]")
    return root


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--max-bytes",
    type=click.IntRange(min=1),
    default=64,
    show_default=True,
    help="Truncate byte strings longer than this",
)
@click.pass_context
def dump(ctx: click.Context, file: Path, max_bytes: int) -> None:
    """Print the raw Bencode structure of FILE."""
    console = Console()
    cfg = _get_config_from_context(ctx)
    try:
        value = decode(file.read_bytes(), cfg.bencode)
    except BencodeDecodeError as e:
        console.print(
            f"[red]{escape(str(file))}: {escape(_describe_error(e))}[/red]",
            soft_wrap=True,
        )
        ctx.exit(1)
        return
    console.print(_build_tree(value, max_bytes), highlight=False)


def main() -> None:
    """Entry point for the ``ccmeta`` console script."""
    cli(obj={})


if __name__ == "__main__":
    main()
