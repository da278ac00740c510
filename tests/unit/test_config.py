"""
Unit tests for xcbazel configuration management.

Tests configuration loading, validation, and the pydantic models.
"""

import json
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from xcbazel.config.defaults import DEFAULT_CONFIG, get_default_config_yaml
from xcbazel.config.manager import ConfigManager, ValidationResult
from xcbazel.config.models import (
    Action,
    BazelConfig,
    CIConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    RunnerConfig,
    RunOptions,
    ToolchainPair,
    XcodeConfig,
)
from xcbazel.engine.exceptions import ConfigurationError
from xcbazel.engine.versions import Version


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run each test away from any settings.yaml in the working tree."""
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    return workdir


def write_yaml(path: Path, content: dict) -> Path:
    path.write_text(yaml.safe_dump(content))
    return path


class TestConfigManager:
    """Tests for loading and reading layered settings."""

    def test_starts_unloaded(self) -> None:
        """Test a new manager has read nothing yet."""
        manager = ConfigManager()
        assert manager.is_loaded is False
        assert manager.config_file is None

    def test_defaults_without_settings_file(self) -> None:
        """Test the built-in defaults apply without a settings file."""
        manager = ConfigManager()
        manager.load()

        assert manager.is_loaded is True
        assert manager.get("bazel.binary") == "bazel"
        assert manager.get("ci.build_number_envvar") == "KOKORO_BUILD_NUMBER"

    def test_unknown_key_fallback(self) -> None:
        """Test an unknown key returns the caller's fallback."""
        manager = ConfigManager()
        manager.load()
        assert manager.get("nonexistent.key", "default_value") == "default_value"

    def test_get_loads_lazily(self) -> None:
        """Test get() loads configuration on first use."""
        manager = ConfigManager()
        assert manager.get("bazel.simulator_device") == "iPhone 6"
        assert manager.is_loaded is True

    def test_set_overrides(self) -> None:
        """Test set() overrides a value for the process."""
        manager = ConfigManager()
        manager.load()
        manager.set("bazel.binary", "bazelisk")
        assert manager.get("bazel.binary") == "bazelisk"

    def test_to_dict_is_plain(self) -> None:
        """Test exporting configuration as plain dictionaries."""
        manager = ConfigManager()
        manager.load()

        config_dict = manager.to_dict()

        assert set(config_dict) == {"logging", "ci", "xcode", "bazel"}
        assert type(config_dict["xcode"]) is dict
        assert config_dict["xcode"]["matrix"][0] == {"xcode_version": "8.3.3", "sdk_version": "10.3"}
        json.dumps(config_dict)

    def test_runner_config_defaults(self) -> None:
        """Test the default matrix survives validation."""
        manager = ConfigManager()
        manager.load()

        config = manager.runner_config()

        assert isinstance(config, RunnerConfig)
        assert [p.xcode_version for p in config.xcode.matrix] == ["8.3.3", "9.0", "9.1", "9.2"]
        assert [p.sdk_version for p in config.xcode.matrix] == ["10.3", "11.0", "11.1", "11.2"]

    def test_load_yaml_file(self, tmp_path: Path) -> None:
        """Test a YAML file overrides single keys and keeps the rest."""
        config_path = write_yaml(
            tmp_path / "settings.yaml",
            {"logging": {"level": "DEBUG"}, "bazel": {"simulator_device": "iPhone 8"}},
        )

        manager = ConfigManager()
        manager.load(config_path)

        assert manager.config_file == config_path
        assert manager.get("logging.level") == "DEBUG"
        assert manager.get("bazel.simulator_device") == "iPhone 8"
        assert manager.get("bazel.binary") == "bazel"

    def test_load_json_file(self, tmp_path: Path) -> None:
        """Test a JSON settings file is accepted."""
        config_path = tmp_path / "settings.json"
        config_path.write_text(json.dumps({"ci": {"force_verbose": False}}))

        manager = ConfigManager()
        manager.load(config_path)

        assert manager.runner_config().ci.force_verbose is False

    def test_file_matrix_replaces_default(self, tmp_path: Path) -> None:
        """Test a matrix in the file is used instead of the default one."""
        config_path = tmp_path / "settings.yaml"
        config_path.write_text(
            "xcode:\n"
            "  matrix:\n"
            "    - xcode_version: 9.1\n"
            "      sdk_version: 11.1\n"
            "    - xcode_version: '9.2'\n"
            "      sdk_version: '11.2'\n"
        )

        manager = ConfigManager()
        manager.load(config_path)
        config = manager.runner_config()

        assert [(p.xcode_version, p.sdk_version) for p in config.xcode.matrix] == [
            ("9.1", "11.1"),
            ("9.2", "11.2"),
        ]
        assert config.xcode.kill_timeout == 10.0

    def test_environment_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test XCBAZEL_* variables override defaults."""
        monkeypatch.setenv("XCBAZEL_BAZEL__BINARY", "bazelisk")

        manager = ConfigManager()
        manager.load()

        assert manager.runner_config().bazel.binary == "bazelisk"

    def test_missing_settings_file(self) -> None:
        """Test an explicit missing file is an error."""
        manager = ConfigManager()
        with pytest.raises(FileNotFoundError):
            manager.load(Path("/nonexistent/config.yaml"))

    def test_malformed_settings_file(self, tmp_path: Path) -> None:
        """Test a YAML syntax error is raised as ConfigurationError on load."""
        config_path = tmp_path / "settings.yaml"
        config_path.write_text("xcode: [unclosed\n")

        manager = ConfigManager()
        with pytest.raises(ConfigurationError, match="Could not read settings"):
            manager.load(config_path)
        assert manager.is_loaded is False

    def test_runner_config_invalid(self) -> None:
        """Test schema errors surface as ConfigurationError."""
        manager = ConfigManager()
        manager.load()
        manager.set("xcode.kill_timeout", -1)

        with pytest.raises(ConfigurationError) as exc_info:
            manager.runner_config()

        assert exc_info.value.error_code == "CONFIG_001"


class TestValidate:
    """Tests for ConfigManager.validate()."""

    def test_validate_valid_config(self) -> None:
        """Test validation passes for the default configuration."""
        manager = ConfigManager()
        manager.load()

        result = manager.validate(strict=True)

        assert isinstance(result, ValidationResult)
        assert result.is_valid is True
        assert result.errors == []
        assert result.warnings == []

    def test_unknown_log_level(self) -> None:
        """Test an unknown log level is a schema error on logging.level."""
        manager = ConfigManager()
        manager.load()
        manager.set("logging.level", "INVALID_LEVEL")

        result = manager.validate()

        assert result.is_valid is False
        assert any(e.startswith("logging.level") for e in result.errors)

    def test_validate_bad_version(self, tmp_path: Path) -> None:
        """Test a malformed matrix version is reported with its location."""
        config_path = write_yaml(
            tmp_path / "settings.yaml",
            {"xcode": {"matrix": [{"xcode_version": "nine", "sdk_version": "11.0"}]}},
        )
        manager = ConfigManager()
        manager.load(config_path)

        result = manager.validate()

        assert result.is_valid is False
        assert any(e.startswith("xcode.matrix.0.xcode_version") for e in result.errors)

    def test_validate_unordered_matrix(self, tmp_path: Path) -> None:
        """Test an out-of-order matrix warns, and fails only in strict mode."""
        config_path = write_yaml(
            tmp_path / "settings.yaml",
            {
                "xcode": {
                    "matrix": [
                        {"xcode_version": "9.2", "sdk_version": "11.2"},
                        {"xcode_version": "9.1", "sdk_version": "11.1"},
                    ]
                }
            },
        )
        manager = ConfigManager()
        manager.load(config_path)

        assert manager.validate().is_valid is True
        strict = manager.validate(strict=True)
        assert strict.is_valid is False
        assert any("ascending" in w for w in strict.warnings)

    def test_validate_duplicate_versions(self, tmp_path: Path) -> None:
        """Test repeated Xcode versions produce a warning."""
        config_path = write_yaml(
            tmp_path / "settings.yaml",
            {
                "xcode": {
                    "matrix": [
                        {"xcode_version": "9.0", "sdk_version": "11.0"},
                        {"xcode_version": "9", "sdk_version": "11.0"},
                    ]
                }
            },
        )
        manager = ConfigManager()
        manager.load(config_path)

        result = manager.validate()

        assert any("more than once" in w for w in result.warnings)


class TestConfigModels:
    """Tests for pydantic configuration models."""

    def test_logging_config_defaults(self) -> None:
        """Test LoggingConfig defaults."""
        config = LoggingConfig()
        assert config.level == LogLevel.INFO
        assert config.format == LogFormat.CONSOLE
        assert config.output == "stderr"

    def test_ci_config_defaults(self) -> None:
        """Test CIConfig defaults."""
        config = CIConfig()
        assert config.build_number_envvar == "KOKORO_BUILD_NUMBER"
        assert config.workspace_dir == "github/repo"
        assert config.force_verbose is True

    def test_bazel_config_defaults(self) -> None:
        """Test BazelConfig defaults."""
        config = BazelConfig()
        assert config.binary == "bazel"
        assert config.simulator_device == "iPhone 6"
        assert config.clean_before_build is True

    def test_toolchain_pair_coerces_whole_numbers(self) -> None:
        """Test unquoted YAML integers become version strings."""
        pair = ToolchainPair(xcode_version=10, sdk_version=12)
        assert pair.xcode_version == "10"
        assert pair.sdk_version == "12"
        assert pair.xcode == Version(10, 0, 0)

    @pytest.mark.parametrize("field", ["xcode_version", "sdk_version"])
    def test_toolchain_pair_rejects_unquoted_decimals(self, field: str) -> None:
        """Test 9.10 read by YAML as 9.1 is refused rather than truncated."""
        values = {"xcode_version": "9.10", "sdk_version": "11.10", field: 9.10}
        with pytest.raises(ValidationError, match="quote it"):
            ToolchainPair(**values)

    def test_unquoted_decimal_in_settings_file(self, tmp_path: Path) -> None:
        """Test an unquoted matrix version in YAML fails validation."""
        config_path = tmp_path / "settings.yaml"
        config_path.write_text(
            "xcode:\n  matrix:\n    - xcode_version: 9.10\n      sdk_version: \"11.10\"\n"
        )
        manager = ConfigManager()
        manager.load(config_path)

        result = manager.validate()

        assert result.is_valid is False
        assert any(e.startswith("xcode.matrix.0.xcode_version") for e in result.errors)

    def test_min_version_rejects_float(self) -> None:
        """Test a float minimum is refused like a matrix version."""
        with pytest.raises(ValidationError):
            RunOptions(action=Action.BUILD, target="//:Lib", min_xcode_version=9.10)

    def test_toolchain_pair_rejects_bad_version(self) -> None:
        """Test malformed versions fail validation."""
        with pytest.raises(ValidationError):
            ToolchainPair(xcode_version="latest", sdk_version="11.0")

    def test_toolchain_pair_rejects_extra_keys(self) -> None:
        """Test unknown keys in a matrix row are rejected."""
        with pytest.raises(ValidationError):
            ToolchainPair(xcode_version="9.0", sdk_version="11.0", simulator="iPhone 6")

    def test_xcode_config_template(self) -> None:
        """Test the path template needs a version placeholder."""
        with pytest.raises(ValidationError):
            XcodeConfig(app_path_template="/Applications/Xcode.app/Contents/Developer")

    def test_xcode_config_kill_timeout_bounds(self) -> None:
        """Test the kill timeout must be positive."""
        with pytest.raises(ValidationError):
            XcodeConfig(kill_timeout=0)

    def test_run_options(self) -> None:
        """Test RunOptions with a minimum version."""
        options = RunOptions(action="build", target="//:Lib", min_xcode_version="8.2.1")

        assert options.action is Action.BUILD
        assert options.minimum == Version(8, 2, 1)
        assert options.extra_args == []
        assert options.ci is None

    def test_run_options_empty_minimum(self) -> None:
        """Test an empty minimum means no minimum."""
        options = RunOptions(action="test", target="//:Tests", min_xcode_version="")
        assert options.min_xcode_version is None
        assert options.minimum is None

    def test_run_options_bad_minimum(self) -> None:
        """Test a malformed minimum is rejected."""
        with pytest.raises(ValidationError):
            RunOptions(action="test", target="//:Tests", min_xcode_version="9.x")

    def test_run_options_requires_target(self) -> None:
        """Test the target cannot be empty."""
        with pytest.raises(ValidationError):
            RunOptions(action="test", target="")

    def test_run_options_unknown_action(self) -> None:
        """Test only build and test are accepted."""
        with pytest.raises(ValidationError):
            RunOptions(action="run", target="//:App")


class TestDefaultConfig:
    """Tests for default configuration values."""

    def test_default_config_structure(self) -> None:
        """Test default configuration has the expected sections."""
        assert set(DEFAULT_CONFIG) == {"logging", "ci", "xcode", "bazel"}
        assert len(DEFAULT_CONFIG["xcode"]["matrix"]) == 4

    def test_default_config_validates(self) -> None:
        """Test the default dictionary is a valid RunnerConfig."""
        config = RunnerConfig.model_validate(DEFAULT_CONFIG)
        assert config.xcode.matrix[-1].sdk_version == "11.2"

    def test_default_yaml_matches_dict(self) -> None:
        """Test the generated YAML carries the same values as DEFAULT_CONFIG."""
        assert yaml.safe_load(get_default_config_yaml()) == DEFAULT_CONFIG


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
