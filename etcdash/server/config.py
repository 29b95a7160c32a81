"""Configuration management for the etcd dashboard.

Supports YAML-based configuration with environment overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import yaml

DEFAULT_DEPLOYMENT_NAME = "etcd Cluster Manager"
DEFAULT_BASE_URL = "http://localhost:8080"
DEFAULT_TIMEOUT = 10
DEFAULT_POLL_INTERVAL = 10

CONFIG_ENV_VAR = "ETCDASH_CONFIG"
API_URL_ENV_VAR = "ETCDASH_API_URL"


class ConfigError(ValueError):
    """Raised when a configuration value is invalid."""


@dataclass
class ApiConfig:
    """Connection settings for the cluster status service."""

    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT  # seconds
    verify: bool = True
    ca_bundle: Optional[str] = None


@dataclass
class PollingConfig:
    """Background refresh settings."""

    interval: float = DEFAULT_POLL_INTERVAL  # seconds


@dataclass
class UIConfig:
    """Console presentation settings."""

    title: str = DEFAULT_DEPLOYMENT_NAME
    confirm_actions: bool = True  # Prompt before compact/defrag


@dataclass
class Config:
    """Main configuration container."""

    deployment_name: str = DEFAULT_DEPLOYMENT_NAME

    api: ApiConfig = field(default_factory=ApiConfig)
    polling: PollingConfig = field(default_factory=PollingConfig)
    ui: UIConfig = field(default_factory=UIConfig)

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise ConfigError if any value is out of range."""
        parsed = urlparse(self.api.base_url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(f"api.base_url must be an http(s) URL, got {self.api.base_url!r}")
        if not isinstance(self.api.timeout, (int, float)) or self.api.timeout <= 0:
            raise ConfigError(f"api.timeout must be positive, got {self.api.timeout!r}")
        if not isinstance(self.polling.interval, (int, float)) or self.polling.interval <= 0:
            raise ConfigError(f"polling.interval must be positive, got {self.polling.interval!r}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary."""
        deployment = data.get("deployment", {}) or {}

        api_data = data.get("api", {}) or {}
        api = ApiConfig(
            base_url=api_data.get("base_url", DEFAULT_BASE_URL),
            timeout=api_data.get("timeout", DEFAULT_TIMEOUT),
            verify=api_data.get("verify", True),
            ca_bundle=api_data.get("ca_bundle"),
        )

        polling_data = data.get("polling", {}) or {}
        polling = PollingConfig(
            interval=polling_data.get("interval", DEFAULT_POLL_INTERVAL),
        )

        name = deployment.get("name", DEFAULT_DEPLOYMENT_NAME)
        ui_data = data.get("ui", {}) or {}
        ui = UIConfig(
            title=ui_data.get("title", name),
            confirm_actions=ui_data.get("confirm_actions", True),
        )

        return cls(deployment_name=name, api=api, polling=polling, ui=ui)

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load config from YAML file."""
        if not path.exists():
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: top level must be a mapping")
        return cls.from_dict(data)

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """Load config from path or defaults.

        Checks in order:
        1. Provided path
        2. ETCDASH_CONFIG env var
        3. ./configs/config.yaml
        4. ./config.yaml
        5. ~/.etcdash/config.yaml
        6. Default config

        ETCDASH_API_URL, when set, overrides api.base_url.
        """
        paths_to_try = []

        if config_path:
            paths_to_try.append(Path(config_path))

        if env_path := os.environ.get(CONFIG_ENV_VAR):
            paths_to_try.append(Path(env_path))

        paths_to_try.extend([
            Path("./configs/config.yaml"),
            Path("./config.yaml"),
            Path.home() / ".etcdash" / "config.yaml",
        ])

        config = None
        for path in paths_to_try:
            if path.exists():
                config = cls.from_yaml(path)
                break
        if config is None:
            config = cls()

        if api_url := os.environ.get(API_URL_ENV_VAR):
            config.api.base_url = api_url
            config.validate()

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "deployment": {
                "name": self.deployment_name,
            },
            "api": {
                "base_url": self.api.base_url,
                "timeout": self.api.timeout,
                "verify": self.api.verify,
                "ca_bundle": self.api.ca_bundle,
            },
            "polling": {
                "interval": self.polling.interval,
            },
            "ui": {
                "title": self.ui.title,
                "confirm_actions": self.ui.confirm_actions,
            },
        }
