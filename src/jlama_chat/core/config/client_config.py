from __future__ import annotations

import codecs
import logging
import os
from collections.abc import Callable, Mapping
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import Field, ValidationError, field_validator

from jlama_chat.core.common.exceptions import ConfigurationError
from jlama_chat.core.common.logging import LogFormat, configure_logging
from jlama_chat.core.interfaces.model_bases import DomainModel

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080"
DEFAULT_CHAT_PATH = "/chat/completions"
DEFAULT_MODEL = "jlama"
DEFAULT_SESSION_HEADER = "X-Jlama-Session"
DEFAULT_EVENT_PREFIX = "data:"
DEFAULT_TIMEOUT = 120.0


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class TrailingFragmentPolicy(str, Enum):
    """What to do with an unparsable fragment left over at end of stream."""

    RAISE = "raise"
    DROP = "drop"


class LoggingConfig(DomainModel):
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.CONSOLE


class ClientConfig(DomainModel):
    """Settings for the chat stream client."""

    base_url: str = DEFAULT_BASE_URL
    chat_path: str = DEFAULT_CHAT_PATH
    model: str = DEFAULT_MODEL
    session_header: str = DEFAULT_SESSION_HEADER
    # Seconds; zero or negative disables the transport timeout
    timeout: float = DEFAULT_TIMEOUT
    event_prefix: str = DEFAULT_EVENT_PREFIX
    encoding: str = "utf-8"
    trailing_fragment_policy: TrailingFragmentPolicy = TrailingFragmentPolicy.RAISE
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("chat_path")
    @classmethod
    def validate_chat_path(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("chat_path must not be empty")
        return v if v.startswith("/") else f"/{v}"

    @field_validator("session_header", "model")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("value must not be blank")
        return v.strip()

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError as e:
            raise ValueError(f"unknown encoding '{v}'") from e
        return v

    @property
    def timeout_seconds(self) -> float | None:
        return self.timeout if self.timeout > 0 else None

    def apply_logging(self) -> None:
        """Configure stdlib logging and structlog from the ``logging`` section."""
        configure_logging(self.logging.level.value, self.logging.format)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ClientConfig:
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise ConfigurationError(
                message="Invalid client configuration",
                details={"errors": e.errors(include_url=False)},
            ) from e

    @classmethod
    def from_env(cls, *, environ: Mapping[str, str] | None = None) -> ClientConfig:
        """Create ClientConfig from environment variables.

        When reading the process environment, a ``.env`` file in the working
        directory is loaded first.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ
        return cls.from_dict(_collect_env_overrides(environ))

    @classmethod
    def from_file(cls, path: str | Path) -> ClientConfig:
        """Create ClientConfig from a YAML file."""
        return cls.from_dict(_read_yaml(Path(path)))


_ENV_FIELDS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "JLAMA_BASE_URL": ("base_url", str),
    "JLAMA_CHAT_PATH": ("chat_path", str),
    "JLAMA_MODEL": ("model", str),
    "JLAMA_SESSION_HEADER": ("session_header", str),
    "JLAMA_TIMEOUT": ("timeout", str),
    "JLAMA_EVENT_PREFIX": ("event_prefix", str),
    "JLAMA_STREAM_ENCODING": ("encoding", str),
    "JLAMA_TRAILING_FRAGMENT_POLICY": ("trailing_fragment_policy", str.lower),
}

_LOGGING_ENV_FIELDS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "LOG_LEVEL": ("level", str.upper),
    "LOG_FORMAT": ("format", str.lower),
}


def _collect_env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    """Return the config keys set in ``env``; pydantic coerces the strings."""
    result: dict[str, Any] = {}
    for name, (key, transform) in _ENV_FIELDS.items():
        value = env.get(name)
        if value is not None and value.strip() != "":
            result[key] = transform(value.strip())

    logging_overrides: dict[str, Any] = {}
    for name, (key, transform) in _LOGGING_ENV_FIELDS.items():
        value = env.get(name)
        if value is not None and value.strip() != "":
            logging_overrides[key] = transform(value.strip())
    if logging_overrides:
        result["logging"] = logging_overrides
    return result


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(
            message=f"Could not read config file {path}", details={"path": str(path)}
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            message=f"Invalid YAML in config file {path}", details={"path": str(path)}
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            message=f"Config file {path} must contain a mapping",
            details={"path": str(path)},
        )
    return data


def load_config(
    path: str | Path | None = None, *, environ: Mapping[str, str] | None = None
) -> ClientConfig:
    """Load configuration from an optional YAML file, then apply env overrides."""
    data: dict[str, Any] = _read_yaml(Path(path)) if path is not None else {}

    if environ is None:
        load_dotenv()
        environ = os.environ
    overrides = _collect_env_overrides(environ)

    logging_overrides = overrides.pop("logging", None)
    data.update(overrides)
    if logging_overrides:
        merged = dict(data.get("logging") or {})
        merged.update(logging_overrides)
        data["logging"] = merged

    config = ClientConfig.from_dict(data)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Loaded client config: base_url=%s chat_path=%s policy=%s",
            config.base_url,
            config.chat_path,
            config.trailing_fragment_policy.value,
        )
    return config
