"""
Configuration for basescan.

Values come from built-in defaults, then an optional YAML file, then
environment variables. The resulting ScannerConfig is passed explicitly to
everything that needs it; nothing reads configuration from module state.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .models import Platform
from .utils.logging import get_logger

logger = get_logger(__name__)


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""


STRATEGIES = ("remote", "local", "backend")

DEFAULT_CONFIG_PATH = "~/.config/basescan/config.yaml"

ENV_OVERRIDES = {
    "BASESCAN_REGISTRY_URL": ("registry", "url"),
    "QUAY_TOKEN": ("registry", "token"),
    "BASESCAN_BACKEND_URL": ("backend", "url"),
    "BASESCAN_STRATEGY": (None, "strategy"),
    "BASESCAN_IMAGE_PATTERN": (None, "image_pattern"),
    "BASESCAN_PLATFORM": (None, "platform"),
}


@dataclass
class RegistryConfig:
    """Registry API connection settings."""
    url: str = "https://quay.io"
    token: Optional[str] = None
    timeout: int = 30


@dataclass
class BackendConfig:
    """Backend proxy connection settings."""
    url: str = "http://localhost:8080"
    timeout: int = 30


@dataclass
class ScannerConfig:
    """Complete scanner configuration."""
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    strategy: str = "remote"
    image_pattern: str = r"^quay\.io/"
    platform: Optional[str] = None
    debounce_seconds: float = 0.3
    cache_ttl_seconds: int = 300
    report_clean_images: bool = False
    docker_timeout: int = 600

    @property
    def target_platform(self) -> Platform:
        """Platform used to pick manifest-list entries."""
        if self.platform:
            return Platform.parse(self.platform)
        return Platform.host()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScannerConfig":
        """Build a config from a (possibly partial) mapping."""
        data = dict(data or {})
        registry = RegistryConfig(**(data.pop("registry", None) or {}))
        backend = BackendConfig(**(data.pop("backend", None) or {}))
        known = set(cls.__dataclass_fields__) - {"registry", "backend"}
        unknown = set(data) - known
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}"
            )
        return cls(registry=registry, backend=backend, **data)

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            ConfigValidationError: on the first invalid value found
        """
        if self.strategy not in STRATEGIES:
            raise ConfigValidationError(
                f"Invalid strategy '{self.strategy}', expected one of: {', '.join(STRATEGIES)}"
            )
        try:
            re.compile(self.image_pattern)
        except re.error as e:
            raise ConfigValidationError(f"Invalid image_pattern '{self.image_pattern}': {e}")
        if self.platform:
            try:
                Platform.parse(self.platform)
            except ValueError as e:
                raise ConfigValidationError(str(e))
        for name in ("debounce_seconds", "cache_ttl_seconds", "docker_timeout"):
            if getattr(self, name) < 0:
                raise ConfigValidationError(f"{name} must not be negative")
        for name, value in (("registry.timeout", self.registry.timeout),
                            ("backend.timeout", self.backend.timeout)):
            if value <= 0:
                raise ConfigValidationError(f"{name} must be positive")
        if self.strategy == "backend" and not self.backend.url:
            raise ConfigValidationError("backend.url is required for the backend strategy")
        if self.strategy != "backend" and not self.registry.url:
            raise ConfigValidationError("registry.url is required")


def _resolve_config_path(path: Optional[str]) -> Optional[Path]:
    if path:
        return Path(path).expanduser()
    env_path = os.environ.get("BASESCAN_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    default = Path(DEFAULT_CONFIG_PATH).expanduser()
    if default.exists():
        return default
    return None


def _apply_env_overrides(data: Dict[str, Any]) -> None:
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if not value:
            continue
        target = data.setdefault(section, {}) if section else data
        target[key] = value
        logger.debug(f"Config override from {env_name}")


def load_config(path: Optional[str] = None, validate: bool = True) -> ScannerConfig:
    """
    Load configuration.

    Args:
        path: Explicit YAML file (falls back to BASESCAN_CONFIG, then
            ~/.config/basescan/config.yaml when it exists)
        validate: Whether to validate the result

    Returns:
        ScannerConfig

    Raises:
        ConfigValidationError: if the file is unreadable or values are invalid
    """
    data: Dict[str, Any] = {}
    config_path = _resolve_config_path(path)

    if config_path is not None:
        try:
            with open(config_path) as f:
                loaded = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise ConfigValidationError(f"Config file not found: {config_path}")
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Invalid YAML in {config_path}: {e}")
        if not isinstance(loaded, dict):
            raise ConfigValidationError(f"Config file {config_path} must contain a mapping")
        data = loaded
        logger.debug(f"Loaded config from {config_path}")

    _apply_env_overrides(data)

    try:
        config = ScannerConfig.from_dict(data)
    except TypeError as e:
        raise ConfigValidationError(f"Invalid configuration: {e}")

    if validate:
        config.validate()
    return config
