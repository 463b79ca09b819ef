"""Frozen dataclasses for configuration and YAML loader with env-var interpolation."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _interpolate_env(value: str) -> str:
    """Replace ${ENV_VAR} placeholders with environment variable values."""

    def _replace(match: re.Match) -> str:
        env_key = match.group(1)
        env_val = os.environ.get(env_key)
        if env_val is None:
            raise ConfigError(f"Environment variable '{env_key}' is not set")
        return env_val

    return _ENV_PATTERN.sub(_replace, value)


def _walk_and_interpolate(obj: Any) -> Any:
    """Recursively interpolate env vars in strings throughout a nested structure."""
    if isinstance(obj, str):
        return _interpolate_env(obj)
    if isinstance(obj, dict):
        return {k: _walk_and_interpolate(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_and_interpolate(v) for v in obj]
    return obj


@dataclass(frozen=True)
class AliyunConfig:
    region: str = ""
    access_key_id: str = ""
    access_key_secret: str = ""
    slb_endpoint: str = "https://slb.aliyuncs.com"
    ecs_endpoint: str = "https://ecs.aliyuncs.com"
    timeout: int = 10
    verify_ssl: bool = True


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded poll used while a freshly created load balancer becomes visible."""

    max_attempts: int = 3
    delay_seconds: float = 5.0
    backoff_factor: float = 1.0  # 1.0 = fixed delay

    def delays(self) -> list[float]:
        """Sleep before each lookup attempt, in order."""
        return [self.delay_seconds * (self.backoff_factor ** i) for i in range(self.max_attempts)]


@dataclass(frozen=True)
class AnnotationsConfig:
    prefix: str = "aliyun.archon.kubeup.com/"


@dataclass(frozen=True)
class BackendConfig:
    weight: int = 100


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    format: str = "json"  # "json" or "text"


@dataclass(frozen=True)
class AppConfig:
    aliyun: AliyunConfig = field(default_factory=AliyunConfig)
    provisioning: RetryPolicy = field(default_factory=RetryPolicy)
    annotations: AnnotationsConfig = field(default_factory=AnnotationsConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _build_nested(cls: type, data: dict[str, Any]) -> Any:
    """Construct a frozen dataclass, recursively building nested dataclass fields."""
    if not isinstance(data, dict):
        return data
    field_types = {f.name: f.type for f in cls.__dataclass_fields__.values()}
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key not in field_types:
            continue
        ft = field_types[key]
        # Resolve string annotations to actual types in the module scope
        if isinstance(ft, str):
            ft = eval(ft, globals(), {cls.__name__: cls})  # noqa: S307
        if isinstance(ft, type) and hasattr(ft, "__dataclass_fields__") and isinstance(value, dict):
            kwargs[key] = _build_nested(ft, value)
        else:
            kwargs[key] = value
    return cls(**kwargs)


def load_config(path: str | Path) -> AppConfig:
    """Load and validate configuration from a YAML file."""
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Configuration file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ConfigError("Configuration file must be a YAML mapping")

    raw = _walk_and_interpolate(raw)
    config = _build_nested(AppConfig, raw)
    _validate(config)
    return config


def _validate(config: AppConfig) -> None:
    """Validate configuration values."""
    if not config.aliyun.region:
        raise ConfigError("aliyun.region is required")

    if not config.aliyun.access_key_id or not config.aliyun.access_key_secret:
        raise ConfigError("aliyun.access_key_id and aliyun.access_key_secret are required")

    if config.provisioning.max_attempts < 1:
        raise ConfigError("provisioning.max_attempts must be >= 1")

    if config.provisioning.delay_seconds < 0:
        raise ConfigError("provisioning.delay_seconds must be >= 0")

    if config.provisioning.backoff_factor < 1:
        raise ConfigError("provisioning.backoff_factor must be >= 1")

    if not 1 <= config.backend.weight <= 100:
        raise ConfigError("backend.weight must be between 1 and 100")

    if config.logging.format not in ("json", "text"):
        raise ConfigError("logging.format must be 'json' or 'text'")
