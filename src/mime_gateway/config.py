"""Configuration settings for mime-gateway using pydantic-settings."""

import os
from functools import cached_property
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator
from pydantic_core import ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mime_gateway.defaults import (
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_HEADER_LINE_LENGTH,
    DEFAULT_MAX_ATTACHMENT_SIZE,
)
from mime_gateway.exceptions import MimeGatewayError
from mime_gateway.models import TextEncoding


class ConfigError(MimeGatewayError):
    """Raised when the configuration file or environment is unusable.

    ``line`` and ``col`` are 1-based positions inside ``file_path``.
    """

    def __init__(self, detail: str, file_path: str | None = None, line: int | None = None, col: int | None = None):
        self.detail = detail
        self.file_path = file_path
        self.line = line
        self.col = col
        location = ":".join(str(part) for part in (file_path, line, col) if part is not None)
        super().__init__(f"{location}: {detail}" if file_path else detail)


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings source that loads configuration from a YAML file.

    Looks for config file in the following order:
    1. MGW_CONFIG_FILE environment variable
    2. ./mime-gateway.yaml (current directory)
    3. $XDG_CONFIG_HOME/mime-gateway/config.yaml (defaults to ~/.config)

    The first file found is read once per source instance.
    """

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self.yaml_data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return self.yaml_data

    @cached_property
    def yaml_data(self) -> dict[str, Any]:
        path = self._find_config_file()
        return self._read_yaml_file(path) if path is not None else {}

    @staticmethod
    def _find_config_file() -> Path | None:
        xdg_config = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
        candidates = [
            os.environ.get("MGW_CONFIG_FILE"),
            Path.cwd() / "mime-gateway.yaml",
            Path(xdg_config) / "mime-gateway" / "config.yaml",
        ]
        for candidate in candidates:
            if candidate and Path(candidate).exists():
                return Path(candidate)
        return None

    @staticmethod
    def _read_yaml_file(path: Path) -> dict[str, Any]:
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            mark = getattr(e, "problem_mark", None)
            raise ConfigError(
                f"Invalid YAML syntax: {getattr(e, 'problem', None) or e}",
                file_path=str(path),
                line=mark.line + 1 if mark else None,
                col=mark.column + 1 if mark else None,
            ) from e
        except OSError as e:
            raise ConfigError(f"Cannot read config file: {e}", file_path=str(path)) from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError("Top level of the config file must be a mapping", file_path=str(path))
        return data


def _parse_validation_error(error: ValidationError) -> str:
    """Convert Pydantic ValidationError to user-friendly message."""
    errors = error.errors()
    if not errors:
        return "Unknown validation error"

    err = errors[0]
    loc = err.get("loc", ())
    msg = err.get("msg", "")
    if err.get("type") == "enum" and loc and loc[-1] == "text_encoding":
        return "text_encoding must be one of: quoted-printable, base64, none"
    if loc:
        field_name = ".".join(str(part) for part in loc)
        return f"Invalid value for '{field_name}': {msg}"
    return str(error)


class Settings(BaseSettings):
    """Composer settings loaded from environment variables with MGW_ prefix.

    Example YAML configuration:
        text_encoding: base64
        validate_attachment_errors: false
        fetch_timeout: 10
    """

    model_config = SettingsConfigDict(env_prefix="MGW_")

    text_encoding: TextEncoding = TextEncoding.QUOTED_PRINTABLE
    validate_attachment_errors: bool = True

    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    max_attachment_size: int = DEFAULT_MAX_ATTACHMENT_SIZE
    temp_dir: Path | None = None

    header_line_length: int = Field(default=DEFAULT_HEADER_LINE_LENGTH, ge=20, le=998)

    @field_validator("fetch_timeout")
    @classmethod
    def _validate_fetch_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("fetch_timeout must be positive")
        return v

    @field_validator("max_attachment_size")
    @classmethod
    def _validate_max_attachment_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("max_attachment_size must be positive")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML config."""
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )


def get_settings_eager() -> Settings:
    """Load settings, failing fast with a readable message.

    Raises:
        ConfigError: If configuration is invalid.
    """
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigError(_parse_validation_error(e)) from e
