"""Tests for the ccmeta command line interface."""

from __future__ import annotations

import hashlib

import pytest
from click.testing import CliRunner

from ccmeta.cli.main import cli
from ccmeta.core.bencode import encode

pytestmark = [pytest.mark.cli]


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def v1_file(tmp_path, v1_multi_info):
    path = tmp_path / "album.torrent"
    path.write_bytes(
        encode(
            {
                b"announce": b"http://tracker.example.com/announce",
                b"comment": b"[bold]not markup[/bold]",
                b"info": v1_multi_info,
            }
        )
    )
    return path


@pytest.fixture
def v2_file(tmp_path, v2_info):
    path = tmp_path / "tree.torrent"
    path.write_bytes(encode({b"info": v2_info}))
    return path


@pytest.fixture
def broken_file(tmp_path):
    path = tmp_path / "broken.torrent"
    path.write_bytes(b"d4:infoi-0ee")
    return path


class TestInspect:
    """Test the inspect command."""

    def test_v1(self, runner, v1_file, v1_multi_info):
        """Summary lines and files are shown."""
        result = runner.invoke(cli, ["inspect", str(v1_file)])
        assert result.exit_code == 0, result.output
        assert "album" in result.output
        assert "Meta version: 1" in result.output
        assert "track1.flac" in result.output
        assert "[bold]not markup[/bold]" in result.output
        info_hash = hashlib.sha1(encode(v1_multi_info)).hexdigest()
        assert info_hash in result.output

    def test_v2(self, runner, v2_file, v2_info):
        """v2 torrents show the SHA-256 info hash."""
        result = runner.invoke(cli, ["inspect", str(v2_file)])
        assert result.exit_code == 0, result.output
        assert "Meta version: 2" in result.output
        assert hashlib.sha256(encode(v2_info)).hexdigest() in result.output

    def test_signed_v2(self, runner, tmp_path, v2_info):
        """Signers and the root hash are listed."""
        v2_info[b"root hash"] = b"\xab" * 20
        path = tmp_path / "signed.torrent"
        path.write_bytes(
            encode(
                {b"info": v2_info, b"signatures": {b"alice": {b"signature": b"s"}}}
            )
        )
        result = runner.invoke(cli, ["--strict", "inspect", str(path)])
        assert result.exit_code == 0, result.output
        assert "Signed by: alice" in result.output
        assert "Root hash: " + "ab" * 20 in result.output

    def test_failure_exit_code(self, runner, v1_file, broken_file):
        """A broken file is reported and the exit code is 1."""
        result = runner.invoke(cli, ["inspect", str(v1_file), str(broken_file)])
        assert result.exit_code == 1
        assert "malformed_integer" in result.output


class TestValidate:
    """Test the validate command."""

    def test_ok(self, runner, v1_file, v2_file):
        """Valid files print OK with their layout."""
        result = runner.invoke(cli, ["validate", str(v1_file), str(v2_file)])
        assert result.exit_code == 0, result.output
        assert "OK" in result.output
        assert "(1)" in result.output
        assert "(2)" in result.output

    def test_fail(self, runner, broken_file):
        """Invalid files print FAIL with the error kind."""
        result = runner.invoke(cli, ["validate", str(broken_file)])
        assert result.exit_code == 1
        assert "FAIL" in result.output
        assert "bencode malformed_integer" in result.output

    def test_strict_flag(self, runner, tmp_path, v1_single_info):
        """--strict rejects unknown keys that the default keeps."""
        path = tmp_path / "extra.torrent"
        path.write_bytes(encode({b"info": v1_single_info, b"x-extra": b"1"}))

        lenient = runner.invoke(cli, ["validate", str(path)])
        assert lenient.exit_code == 0, lenient.output

        strict = runner.invoke(cli, ["--strict", "validate", str(path)])
        assert strict.exit_code == 1
        assert "unknown_field" in strict.output

    def test_config_file(self, runner, tmp_path, v1_single_info):
        """Options from --config apply to parsing."""
        path = tmp_path / "extra.torrent"
        path.write_bytes(encode({b"info": v1_single_info, b"x-extra": b"1"}))
        config = tmp_path / "strict.toml"
        config.write_text('[schema]\nunknown_fields = "strict"\n')

        result = runner.invoke(cli, ["--config", str(config), "validate", str(path)])
        assert result.exit_code == 1

    def test_bad_config_file(self, runner, tmp_path, v1_file):
        """An invalid config file is a usage error."""
        config = tmp_path / "bad.toml"
        config.write_text("[bencode]\nmax_depth = 0\n")
        result = runner.invoke(cli, ["--config", str(config), "validate", str(v1_file)])
        assert result.exit_code != 0
        assert "Invalid configuration" in result.output


class TestDump:
    """Test the dump command."""

    def test_dump(self, runner, v1_file):
        """The raw value tree is printed."""
        result = runner.invoke(cli, ["dump", str(v1_file)])
        assert result.exit_code == 0, result.output
        assert "'announce'" in result.output
        assert "'piece length'" in result.output
        assert "16384" in result.output
        assert "<40 bytes>" in result.output

    def test_dump_truncates(self, runner, v1_file):
        """Long byte strings are truncated."""
        result = runner.invoke(cli, ["dump", "--max-bytes", "4", str(v1_file)])
        assert result.exit_code == 0, result.output
        assert "02020202..." in result.output

    def test_dump_error(self, runner, broken_file):
        """Decode errors exit with 1."""
        result = runner.invoke(cli, ["dump", str(broken_file)])
        assert result.exit_code == 1
        assert "malformed_integer" in result.output

    def test_verbose(self, runner, v1_file):
        """-vv enables debug logging without breaking output."""
        result = runner.invoke(cli, ["-vv", "dump", str(v1_file)])
        assert result.exit_code == 0, result.output
