"""Render configuration and its JSON file."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from .errors import ConfigurationError

DEFAULT_CONFIG_PATH = Path("config.json")

# Key names of the on-disk file.
_KEYS = {
    "allow_distortion": "AllowDistortion",
    "max_iterations": "MaxIter",
    "thread_count": "ThreadCount",
}


@dataclass(frozen=True)
class Configuration:
    """Settings read by the core for the duration of one render."""

    allow_distortion: bool = False
    max_iterations: int = 1500
    thread_count: int = 2

    def validate(self) -> None:
        if not isinstance(self.allow_distortion, bool):
            raise ConfigurationError(f"allow_distortion must be a boolean, got {self.allow_distortion!r}.")
        for name in ("max_iterations", "thread_count"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}.")
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}.")

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, name) for name, key in _KEYS.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Configuration":
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration file must contain a JSON object.")
        defaults = cls()
        values = {name: data.get(key, getattr(defaults, name)) for name, key in _KEYS.items()}
        config = cls(**values)
        config.validate()
        return config


def save_configuration(config: Configuration, path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict()), encoding="utf-8")


def load_configuration(path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> Configuration:
    """Read ``path``; when it does not exist, write the defaults there and return them."""

    path = Path(path)
    if not path.exists():
        config = Configuration()
        save_configuration(config, path)
        return config

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"{path} is not valid JSON: {exc}") from exc
    return Configuration.from_dict(data)
