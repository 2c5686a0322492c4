"""
Tests for espkit.yaml parsing and command-line overrides.
"""

from argparse import Namespace

import pytest

from espkit.cli.parser import CLI
from espkit.config.parser import (
    DEFAULT_CONFIG_FILE,
    EspkitConfig,
    config_from_dict,
    load_config,
    merge_cli_overrides,
    parse_config,
)
from espkit.core.exceptions import ConfigError


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / DEFAULT_CONFIG_FILE
    path.write_text(
        "tools_path: /opt/espressif\n"
        "targets: esp32,esp32c3\n"
        "espidf_version: release/v4.4\n"
        "llvm_version: 13\n"
        "minified_espidf: true\n"
        "download_timeout: 120\n"
    )
    return path


class TestParseConfig:
    """Test parsing configuration files."""

    def test_full_file(self, config_file):
        config = parse_config(config_file)

        assert config.tools_path == "/opt/espressif"
        assert config.targets == "esp32,esp32c3"
        assert config.espidf_version == "release/v4.4"
        assert config.llvm_version == "13"
        assert config.minified_espidf is True
        assert config.download_timeout == 120
        assert config.export_file == "export-esp.sh"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "espkit.yaml"
        path.write_text("")

        assert parse_config(path) == EspkitConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            parse_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "espkit.yaml"
        path.write_text("targets: [esp32\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            parse_config(path)


class TestConfigFromDict:
    """Test validation of parsed mappings."""

    def test_defaults(self):
        config = config_from_dict({})
        assert config.targets == "all"
        assert config.espidf_version is None
        assert config.llvm_version == "14"
        assert config.minified_espidf is False
        assert config.download_timeout == 60

    def test_target_list(self):
        assert config_from_dict({"targets": ["esp32", "esp32s3"]}).targets == "esp32,esp32s3"

    def test_null_values_keep_defaults(self):
        assert config_from_dict({"espidf_version": None, "targets": None}) == EspkitConfig()

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="Unknown configuration keys: rust_version"):
            config_from_dict({"rust_version": "1.64"})

    def test_wrong_type(self):
        with pytest.raises(ConfigError, match="minified_espidf"):
            config_from_dict({"minified_espidf": "yes"})

    def test_bool_is_not_int(self):
        with pytest.raises(ConfigError, match="download_timeout"):
            config_from_dict({"download_timeout": True})

    def test_non_positive_timeout(self):
        with pytest.raises(ConfigError, match="positive"):
            config_from_dict({"download_timeout": 0})

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError, match="mapping"):
            config_from_dict(["esp32"])


class TestLoadConfig:
    """Test locating the configuration file."""

    def test_explicit_file(self, config_file):
        assert load_config(config_file).espidf_version == "release/v4.4"

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "nope.yaml")

    def test_default_file_in_project(self, config_file):
        assert load_config(None, project_root=config_file.parent).targets == "esp32,esp32c3"

    def test_default_file_optional(self, tmp_path):
        assert load_config(None, project_root=tmp_path) == EspkitConfig()


class TestMergeCliOverrides:
    """Test command-line values win over file values."""

    def test_overrides(self, config_file):
        args = Namespace(targets="esp32s2", export_file="out.sh", espidf_version=None)

        config = merge_cli_overrides(parse_config(config_file), args)

        assert config.targets == "esp32s2"
        assert config.export_file == "out.sh"
        assert config.espidf_version == "release/v4.4"

    def test_unset_flag_keeps_file_value(self, config_file):
        args = Namespace(minified_espidf=None)

        assert merge_cli_overrides(parse_config(config_file), args).minified_espidf is True

    def test_cli_can_disable_file_flag(self, config_file):
        args = CLI().parse_args(["install", "--no-minified-espidf"])

        assert merge_cli_overrides(parse_config(config_file), args).minified_espidf is False

    def test_unrelated_attributes_ignored(self):
        args = Namespace(command="install", verbose=True, config=None)

        assert merge_cli_overrides(EspkitConfig(), args) == EspkitConfig()
