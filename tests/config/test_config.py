"""Tests for ccmeta.config.config and the configuration models."""

from __future__ import annotations

import pytest
import toml
from pydantic import ValidationError as PydanticValidationError

from ccmeta.config.config import (
    ConfigManager,
    get_config,
    init_config,
    reset_config,
)
from ccmeta.models import (
    Config,
    DecodeOptions,
    LogLevel,
    SchemaOptions,
    UnknownFieldPolicy,
)
from ccmeta.utils.exceptions import ConfigurationError

pytestmark = [pytest.mark.unit, pytest.mark.config]


class TestModels:
    """Test configuration model defaults and bounds."""

    def test_defaults(self):
        """Defaults are lenient with a 256 level depth bound."""
        config = Config()
        assert config.bencode.max_depth == 256
        assert config.bencode.allow_trailing is False
        assert config.bencode.big_integers is False
        assert config.schema_.unknown_fields is UnknownFieldPolicy.RETAIN
        assert config.observability.log_level is LogLevel.WARNING

    @pytest.mark.parametrize("depth", [0, 513])
    def test_depth_bounds(self, depth):
        """max_depth stays within 1..512."""
        with pytest.raises(PydanticValidationError):
            DecodeOptions(max_depth=depth)

    def test_presets(self):
        """strict() and lenient() pick the unknown-field policy."""
        assert Config.strict().schema_.strict
        assert not Config.lenient().schema_.strict

    def test_options_are_frozen(self):
        """Decoder options cannot change after construction."""
        options = DecodeOptions()
        with pytest.raises(PydanticValidationError):
            options.max_depth = 3

    def test_schema_alias(self):
        """The schema section is accepted under its alias and field name."""
        by_alias = Config(schema={"unknown_fields": "strict"})
        by_name = Config(schema_=SchemaOptions(unknown_fields="drop"))
        assert by_alias.schema_.unknown_fields is UnknownFieldPolicy.STRICT
        assert by_name.schema_.unknown_fields is UnknownFieldPolicy.DROP


class TestConfigManager:
    """Test layered configuration loading."""

    def test_no_file(self):
        """Without a file the defaults apply."""
        manager = ConfigManager()
        assert manager.config_file is None
        assert manager.config == Config()

    def test_explicit_file(self, tmp_path):
        """An explicit TOML file overrides the defaults."""
        path = tmp_path / "custom.toml"
        path.write_text(
            "[bencode]\nmax_depth = 64\n\n[schema]\nunknown_fields = \"strict\"\n"
        )
        config = ConfigManager(path).config
        assert config.bencode.max_depth == 64
        assert config.schema_.unknown_fields is UnknownFieldPolicy.STRICT

    def test_file_in_working_directory(self, tmp_path):
        """ccmeta.toml in the working directory is found."""
        (tmp_path / "ccmeta.toml").write_text("[bencode]\nallow_trailing = true\n")
        manager = ConfigManager()
        assert manager.config_file == tmp_path / "ccmeta.toml"
        assert manager.config.bencode.allow_trailing is True

    def test_file_in_user_config_dir(self, tmp_path):
        """~/.config/ccmeta/ccmeta.toml is found."""
        config_dir = tmp_path / "home" / ".config" / "ccmeta"
        config_dir.mkdir(parents=True)
        (config_dir / "ccmeta.toml").write_text("[bencode]\nbig_integers = true\n")
        assert ConfigManager().config.bencode.big_integers is True

    def test_missing_explicit_file(self, tmp_path):
        """A named file that does not exist is an error."""
        with pytest.raises(ConfigurationError):
            ConfigManager(tmp_path / "missing.toml")

    def test_malformed_toml(self, tmp_path):
        """Unparsable TOML is an error."""
        path = tmp_path / "bad.toml"
        path.write_text("[bencode\nmax_depth = ")
        with pytest.raises(ConfigurationError):
            ConfigManager(path)

    def test_invalid_value(self, tmp_path):
        """Out-of-range values are reported as ConfigurationError."""
        path = tmp_path / "bad.toml"
        path.write_text("[bencode]\nmax_depth = 10000\n")
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(path)
        assert "errors" in exc_info.value.details

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        """Environment variables win over the file."""
        path = tmp_path / "c.toml"
        path.write_text("[bencode]\nmax_depth = 64\n")
        monkeypatch.setenv("CCMETA_MAX_DEPTH", "32")
        monkeypatch.setenv("CCMETA_ALLOW_TRAILING", "yes")
        monkeypatch.setenv("CCMETA_UNKNOWN_FIELDS", "drop")
        monkeypatch.setenv("CCMETA_LOG_LEVEL", "debug")
        config = ConfigManager(path).config
        assert config.bencode.max_depth == 32
        assert config.bencode.allow_trailing is True
        assert config.schema_.unknown_fields is UnknownFieldPolicy.DROP
        assert config.observability.log_level is LogLevel.DEBUG

    def test_invalid_env(self, monkeypatch):
        """A bad environment value is a ConfigurationError."""
        monkeypatch.setenv("CCMETA_UNKNOWN_FIELDS", "sometimes")
        with pytest.raises(ConfigurationError):
            ConfigManager()

    def test_export(self, tmp_path):
        """export() writes TOML that loads back to the same config."""
        manager = ConfigManager()
        path = tmp_path / "exported.toml"
        path.write_text(manager.export())
        assert toml.loads(manager.export())["schema"]["unknown_fields"] == "retain"
        assert ConfigManager(path).config == manager.config


class TestGlobalConfig:
    """Test the module-level configuration accessors."""

    def test_get_config_is_cached(self):
        """get_config() returns the same instance until reset."""
        first = get_config()
        assert get_config() is first
        reset_config()
        assert get_config() is not first

    def test_init_config(self, tmp_path):
        """init_config() replaces the global configuration."""
        path = tmp_path / "c.toml"
        path.write_text("[bencode]\nmax_depth = 8\n")
        manager = init_config(path)
        assert get_config() is manager.config
        assert get_config().bencode.max_depth == 8
