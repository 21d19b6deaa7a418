"""Persisted fchat configuration.

The file is a JSON object merged over the defaults below. A missing file
is created with the defaults; an unreadable one is reported and the
defaults are used instead.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from fchat._logging import get_component_logger
from fchat.types import ConfigLoadError

logger = get_component_logger("config")

DEFAULT_CONFIG_FILE = "fchat.json"
DEFAULT_DB_PATH = "./data/fchat.db"

DEFAULT_CONFIG: Dict[str, Any] = {
    "autoUpdate": True,
    "mqtt": {
        "enabled": True,
        "reconnectInterval": 3600,
    },
    "database": {
        "enabled": False,
        "path": DEFAULT_DB_PATH,
    },
}


def default_config_path() -> Path:
    return Path(os.getenv("FCHAT_CONFIG_PATH") or Path.cwd() / DEFAULT_CONFIG_FILE)


@dataclass
class MqttConfig:
    enabled: bool = True
    reconnect_interval: int = 3600  # seconds


@dataclass
class DatabaseConfig:
    enabled: bool = False
    path: str = DEFAULT_DB_PATH


@dataclass
class AppConfig:
    auto_update: bool = True
    mqtt: MqttConfig = field(default_factory=MqttConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        merged = _merge(DEFAULT_CONFIG, data)
        mqtt = merged["mqtt"]
        database = merged["database"]
        return cls(
            auto_update=bool(merged["autoUpdate"]),
            mqtt=MqttConfig(
                enabled=bool(mqtt["enabled"]),
                reconnect_interval=int(mqtt["reconnectInterval"]),
            ),
            database=DatabaseConfig(
                enabled=bool(database["enabled"]),
                path=os.getenv("FCHAT_SQLITE_PATH") or str(database["path"]),
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "autoUpdate": self.auto_update,
            "mqtt": {
                "enabled": self.mqtt.enabled,
                "reconnectInterval": self.mqtt.reconnect_interval,
            },
            "database": {
                "enabled": self.database.enabled,
                "path": self.database.path,
            },
        }


def _merge(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    # nested blocks merge key by key; everything else is replaced
    merged = dict(defaults)
    for key, value in overrides.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[Union[str, Path]] = None) -> AppConfig:
    """Load the configuration file, creating it with defaults if absent.

    Never raises: read and parse failures are logged as ConfigLoadError and
    the defaults are returned.
    """
    config_path = Path(path) if path is not None else default_config_path()

    if not config_path.exists():
        config = AppConfig.from_dict({})
        try:
            save_config(config, config_path)
        except OSError as exc:
            logger.warning("config_not_written", path=str(config_path), error=str(exc))
        return config

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("configuration root must be a JSON object")
        return AppConfig.from_dict(data)
    except (OSError, ValueError, TypeError, KeyError) as exc:
        err = ConfigLoadError(f"Error reading config file {config_path}, using defaults", raw=exc)
        logger.error("config_load_failed", path=str(config_path), error=str(err))
        return AppConfig.from_dict({})


def save_config(config: AppConfig, path: Optional[Union[str, Path]] = None) -> Path:
    config_path = Path(path) if path is not None else default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(config.to_dict(), indent=2), encoding="utf-8")
    return config_path
