"""
Configuration for delimstream.

This module provides:
- Validated stream and logging settings (pydantic models)
- Multiple configuration sources (dicts, JSON/YAML/TOML/.env files, env vars)
- Priority-ordered merging
"""

import os
import codecs
import json
import yaml
import toml
from pathlib import Path
from typing import Optional, Dict, Any, List, Union
from pydantic import BaseModel, Field, field_validator, ValidationError, ConfigDict

from .logging import get_logger
from .errors import ConfigurationError
from ..streaming.terms import PatternSet


logger = get_logger("delimstream.config")

DEFAULT_READ_LENGTH = 1024
ENV_PREFIX = "DELIMSTREAM_"


class ConfigSource(BaseModel):
    """Configuration source definition."""
    path: Optional[Path] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    priority: int = 0
    source_type: str = "dict"


class StreamConfig(BaseModel):
    """Settings for one wrapped stream."""
    read_length: int = Field(default=DEFAULT_READ_LENGTH, ge=1)
    separator: Optional[PatternSet] = None
    encoding: str = "utf-8"
    binary: Optional[bool] = None
    max_buffer_size: Optional[int] = Field(default=None, ge=1)

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True
    )

    @field_validator('separator', mode='before')
    @classmethod
    def snapshot_separator(cls, v):
        """Snapshot the separator into an immutable pattern set."""
        if v is None or isinstance(v, PatternSet):
            return v
        return PatternSet.of(v)

    @field_validator('encoding')
    @classmethod
    def validate_encoding(cls, v):
        """Reject encodings the codec registry does not know."""
        try:
            codecs.lookup(v)
        except LookupError as e:
            raise ValueError(f"Unknown encoding: {v}") from e
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "WARNING"
    json_output: bool = False
    directory: Optional[Path] = None
    enable_sentry: bool = False
    sentry_dsn: Optional[str] = None

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()


class DelimStreamConfig(BaseModel):
    """Top-level delimstream configuration."""
    stream: StreamConfig = Field(default_factory=StreamConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(validate_assignment=True)


def _validation_message(error: ValidationError) -> str:
    errors = []
    for item in error.errors():
        field = ".".join(str(x) for x in item["loc"])
        errors.append(f"{field}: {item['msg']}")
    return "; ".join(errors)


def make_stream_config(
    config: Optional[Union[StreamConfig, Dict[str, Any]]] = None,
    **overrides
) -> StreamConfig:
    """
    Build a validated stream config.

    Args:
        config: Existing config or mapping of settings
        **overrides: Individual settings taking precedence over ``config``

    Raises:
        ConfigurationError: If validation fails
    """
    if isinstance(config, StreamConfig):
        # Attribute copy keeps the separator as a PatternSet
        data = {name: getattr(config, name) for name in StreamConfig.model_fields}
    else:
        data = dict(config or {})
    data.update(overrides)

    try:
        return StreamConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Stream configuration invalid: {_validation_message(e)}",
            cause=e
        ) from e


class ConfigLoader:
    """Configuration loader with multiple source support."""

    def __init__(self, env_prefix: str = ENV_PREFIX):
        """Initialize configuration loader."""
        self.env_prefix = env_prefix
        self._sources: List[ConfigSource] = []
        self._config: Optional[DelimStreamConfig] = None

    def add_source(
        self,
        source: Union[str, Path, Dict[str, Any]],
        priority: int = 0,
        source_type: Optional[str] = None
    ) -> None:
        """
        Add configuration source.

        Args:
            source: Configuration source (file path or dict)
            priority: Source priority (higher wins)
            source_type: Source type (auto-detected if None)
        """
        if isinstance(source, (str, Path)):
            path = Path(source)
            if not source_type:
                source_type = self._detect_source_type(path)

            self._sources.append(ConfigSource(
                path=path,
                priority=priority,
                source_type=source_type
            ))
        else:
            self._sources.append(ConfigSource(
                data=source,
                priority=priority,
                source_type="dict"
            ))

        # Lowest priority first so later merges win
        self._sources.sort(key=lambda s: s.priority)

    def _detect_source_type(self, path: Path) -> str:
        """Detect configuration file type."""
        suffix = path.suffix.lower()
        if suffix == ".json":
            return "json"
        elif suffix in (".yaml", ".yml"):
            return "yaml"
        elif suffix == ".toml":
            return "toml"
        elif suffix == ".env":
            return "env"
        else:
            raise ConfigurationError(f"Unknown config file type: {suffix}")

    def load(self) -> DelimStreamConfig:
        """
        Load configuration from all sources.

        Returns:
            Merged configuration

        Raises:
            ConfigurationError: If a source cannot be parsed or validation fails
        """
        merged_data: Dict[str, Any] = {}

        for source in self._sources:
            data = self._load_source(source)
            merged_data = self._deep_merge(merged_data, data)

        env_data = self._load_env_vars()
        merged_data = self._deep_merge(merged_data, env_data)

        try:
            self._config = DelimStreamConfig(**merged_data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Configuration validation failed: {_validation_message(e)}",
                cause=e
            ) from e

        logger.info("configuration_loaded", sources=len(self._sources))
        return self._config

    def _load_source(self, source: ConfigSource) -> Dict[str, Any]:
        """Load data from a configuration source."""
        if source.path is None:
            return source.data

        if not source.path.exists():
            logger.warning("config_file_not_found", path=str(source.path))
            return {}

        content = source.path.read_text()

        try:
            if source.source_type == "json":
                return json.loads(content)
            elif source.source_type == "yaml":
                return yaml.safe_load(content) or {}
            elif source.source_type == "toml":
                return toml.loads(content)
            elif source.source_type == "env":
                return self._parse_env_file(content)
        except (json.JSONDecodeError, yaml.YAMLError, toml.TomlDecodeError) as e:
            raise ConfigurationError(
                f"Failed to parse {source.path}: {e}",
                cause=e
            ) from e

        raise ConfigurationError(f"Unknown source type: {source.source_type}")

    def _parse_env_file(self, content: str) -> Dict[str, Any]:
        """Parse .env file format."""
        result: Dict[str, Any] = {}

        for line in content.splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            if key.upper().startswith(self.env_prefix):
                key = key[len(self.env_prefix):]
            value = value.strip().strip('"').strip("'")
            self._set_nested(result, key, self._convert_value(value))

        return result

    def _load_env_vars(self) -> Dict[str, Any]:
        """Load configuration from environment variables.

        ``DELIMSTREAM_STREAM__READ_LENGTH=4096`` sets ``stream.read_length``.
        """
        result: Dict[str, Any] = {}

        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(
                    result,
                    key[len(self.env_prefix):],
                    self._convert_value(value)
                )

        return result

    def _set_nested(self, target: Dict[str, Any], key: str, value: Any) -> None:
        # Sections are separated by a double underscore; field names keep theirs
        parts = key.lower().split("__")
        current = target
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        current[parts[-1]] = value

    def _convert_value(self, value: str) -> Any:
        """Convert string value to appropriate type."""
        if value.lower() in ("true", "yes", "on"):
            return True
        elif value.lower() in ("false", "no", "off"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        if value.startswith("/") or value.startswith("~"):
            return Path(value).expanduser()

        return value

    def _deep_merge(self, base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in update.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def get_config(self) -> DelimStreamConfig:
        """Get current configuration."""
        if self._config is None:
            raise ConfigurationError("Configuration not loaded")
        return self._config


def load_config(
    config_paths: Optional[List[Union[str, Path]]] = None,
    extra_config: Optional[Dict[str, Any]] = None
) -> DelimStreamConfig:
    """
    Load configuration from standard locations.

    Args:
        config_paths: Additional configuration paths
        extra_config: Extra configuration to merge

    Returns:
        Loaded configuration
    """
    loader = ConfigLoader()

    default_paths = [
        Path.home() / ".config" / "delimstream" / "config.toml",
        Path("./delimstream.toml"),
        Path("./delimstream.yaml"),
        Path("./delimstream.json"),
    ]

    for path in default_paths:
        if path.exists():
            loader.add_source(path, priority=10)

    if config_paths:
        for i, path in enumerate(config_paths):
            loader.add_source(path, priority=20 + i)

    if extra_config:
        loader.add_source(extra_config, priority=100)

    return loader.load()


__all__ = [
    'DEFAULT_READ_LENGTH',
    'StreamConfig',
    'LoggingConfig',
    'DelimStreamConfig',
    'ConfigLoader',
    'make_stream_config',
    'load_config',
]
