"""
Settings loading for xcbazel.

Values are layered, later sources winning:

1. `DEFAULT_CONFIG`
2. the settings file (`--config`, or the first of SETTINGS_FILES found in
   the working directory)
3. `XCBAZEL_` environment variables, with `__` for nesting
   (`XCBAZEL_BAZEL__BINARY=bazelisk`)

Dynaconf does the layering; `RunnerConfig` validates the result.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dynaconf import Dynaconf
from pydantic import ValidationError

from xcbazel.config.defaults import DEFAULT_CONFIG
from xcbazel.config.models import RunnerConfig
from xcbazel.engine.exceptions import ConfigurationError
from xcbazel.logging import get_logger

logger = get_logger(__name__)

ENVVAR_PREFIX = "XCBAZEL"
SETTINGS_FILES = ("settings.yaml", "settings.json", "settings.toml")
SECTIONS = tuple(DEFAULT_CONFIG)


@dataclass
class ValidationResult:
    """What `xcbazel config validate` reports."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _fill_missing(settings: Dynaconf, defaults: dict, prefix: str = "") -> None:
    # Leaf by leaf, so a file that sets one key keeps the rest of its section
    for key, value in defaults.items():
        dotted = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            _fill_missing(settings, value, dotted)
        elif not settings.exists(dotted):
            settings.set(dotted, value)


def _unbox(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k).lower(): _unbox(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_unbox(v) for v in value]
    return value


def _matrix_warnings(config: RunnerConfig) -> list[str]:
    versions = [pair.xcode for pair in config.xcode.matrix]
    warnings = []
    if not versions:
        warnings.append("xcode.matrix is empty; CI runs will not invoke Bazel")
    if versions != sorted(versions):
        warnings.append("xcode.matrix is not in ascending Xcode version order")
    if len(set(versions)) != len(versions):
        warnings.append("xcode.matrix lists the same Xcode version more than once")
    return warnings


class ConfigManager:
    """
    Layered xcbazel settings.

    Reading a value before `load()` loads from the working directory.

    Usage:
        manager = ConfigManager()
        manager.load(Path("ci/xcbazel.yaml"))
        manager.get("xcode.kill_timeout")      # 10.0
        config = manager.runner_config()      # validated RunnerConfig
    """

    def __init__(self) -> None:
        self._settings: Optional[Dynaconf] = None
        self._config_file: Optional[Path] = None

    def load(self, config_path: Optional[Path] = None) -> None:
        """
        (Re)read the settings file and environment.

        Args:
            config_path: Explicit settings file. Without one, SETTINGS_FILES
                are looked up in the working directory.

        Raises:
            FileNotFoundError: If `config_path` does not exist.
            ConfigurationError: If a settings file cannot be parsed.
        """
        if config_path is None:
            files = list(SETTINGS_FILES)
        elif config_path.exists():
            files = [str(config_path)]
        else:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        self._config_file = config_path
        settings = Dynaconf(
            envvar_prefix=ENVVAR_PREFIX,
            settings_files=files,
            environments=False,
            load_dotenv=True,
            merge_enabled=True,
            default_settings_paths=[],
        )
        # Dynaconf parses lazily; parse now so syntax errors surface here
        try:
            _fill_missing(settings, DEFAULT_CONFIG)
        except Exception as e:
            raise ConfigurationError(
                message=f"Could not read settings: {type(e).__name__}: {e}",
                context={"config_file": str(config_path) if config_path else ", ".join(files)},
            ) from e
        self._settings = settings

        logger.info("configuration_loaded", config_file=str(config_path) if config_path else None)

    def _loaded_settings(self) -> Dynaconf:
        if self._settings is None:
            self.load()
        return self._settings

    def get(self, key: str, default: Any = None) -> Any:
        """Value at dotted `key` (e.g. "bazel.simulator_device"), or `default`."""
        return self._loaded_settings().get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Override the value at dotted `key` for this process."""
        self._loaded_settings().set(key, value)

    def to_dict(self) -> dict:
        """Every section as plain, lower-cased dicts."""
        return {section: _unbox(self.get(section, {})) for section in SECTIONS}

    def runner_config(self) -> RunnerConfig:
        """
        Validated settings for MatrixRunner.

        Raises:
            ConfigurationError: Listing every field that failed validation.
        """
        try:
            return RunnerConfig.model_validate(self.to_dict())
        except ValidationError as e:
            raise ConfigurationError(
                message=f"Invalid configuration: {e.error_count()} error(s)\n{e}",
                context={"config_file": str(self._config_file) if self._config_file else None},
            ) from e

    def validate(self, strict: bool = False) -> ValidationResult:
        """
        Check the settings without raising.

        Schema failures are errors. A matrix that is empty, unsorted or
        repeats an Xcode version only warns, unless `strict` is set.
        """
        try:
            config = RunnerConfig.model_validate(self.to_dict())
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            return ValidationResult(is_valid=False, errors=errors)

        warnings = _matrix_warnings(config)
        return ValidationResult(is_valid=not (strict and warnings), warnings=warnings)

    @property
    def config_file(self) -> Optional[Path]:
        """The explicit settings file, if one was given to `load()`."""
        return self._config_file

    @property
    def is_loaded(self) -> bool:
        return self._settings is not None


_config_manager: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """Process-wide ConfigManager used by the CLI commands."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager
