"""Layered configuration.

Sources, lowest to highest precedence:

1. packaged defaults (``config.yaml`` next to this module)
2. the user file ``~/.config/streamreaper/config.yaml``
3. an explicit file passed by the caller
4. ``STREAMREAPER_*`` environment variables (``__`` separates nesting)
5. CLI overrides (keys with a ``None`` value are ignored)
"""

from __future__ import annotations

import copy
import json
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

ENV_PREFIX = "STREAMREAPER_"
DEFAULT_CONFIG_PATH = Path(__file__).with_name("config.yaml")
USER_CONFIG_PATH = Path.home() / ".config" / "streamreaper" / "config.yaml"


def load_file(path: str | Path) -> dict[str, Any]:
    p = Path(path).expanduser()
    if not p.exists():
        return {}
    suffix = p.suffix.lower()
    if suffix in (".yaml", ".yml"):
        with p.open(encoding="utf-8") as fh:
            return yaml.safe_load(fh) or {}
    if suffix == ".json":
        with p.open(encoding="utf-8") as fh:
            return json.load(fh)
    if suffix == ".toml":
        with p.open("rb") as fh:
            return tomllib.load(fh)
    raise ValueError(f"Unsupported config file type: {p.suffix}")


def _deep_update(dst: dict[str, Any], src: Mapping[str, Any]) -> dict[str, Any]:
    for k, v in src.items():
        if isinstance(v, Mapping) and isinstance(dst.get(k), dict):
            _deep_update(dst[k], v)
        else:
            dst[k] = v
    return dst


def _load_env() -> dict[str, Any]:
    data: dict[str, Any] = {}
    for key, raw in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        parts = key[len(ENV_PREFIX) :].lower().split("__")
        try:
            value = yaml.safe_load(raw)
        except Exception:
            value = raw
        node = data
        for part in parts[:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = value
    return data


def _drop_none(d: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k, v in d.items():
        if v is None:
            continue
        out[k] = _drop_none(v) if isinstance(v, Mapping) else v
    return out


class Config:
    """Read-only attribute access over a nested dict."""

    def __init__(self, data: Mapping[str, Any]) -> None:
        self._data = dict(data)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._wrap(self._data[name])
        except KeyError:
            raise AttributeError(f"Config has no key {name!r}") from None

    def __getitem__(self, key: str) -> Any:
        return self._wrap(self._data[key])

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __repr__(self) -> str:
        return f"Config({self._data!r})"

    def get(self, key: str, default: Any = None) -> Any:
        return self._wrap(self._data[key]) if key in self._data else default

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)

    @classmethod
    def _wrap(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return cls(value)
        if isinstance(value, list):
            return [cls._wrap(v) for v in value]
        return value


_config: Config | None = None


def _build(config_file: str | Path | None, cli_args: Mapping[str, Any] | None) -> Config:
    data: dict[str, Any] = {}
    _deep_update(data, load_file(DEFAULT_CONFIG_PATH))
    _deep_update(data, load_file(USER_CONFIG_PATH))
    if config_file:
        _deep_update(data, load_file(config_file))
    _deep_update(data, _load_env())
    if cli_args:
        _deep_update(data, _drop_none(cli_args))
    return Config(data)


def get_config(config_file: str | Path | None = None, cli_args: Mapping[str, Any] | None = None) -> Config:
    """Return the process-wide config, building it on first use.

    Arguments only take effect on the first call; use ``reload_config`` to
    rebuild with different sources.
    """
    global _config
    if _config is None:
        _config = _build(config_file, cli_args)
    return _config


def reload_config(config_file: str | Path | None = None, cli_args: Mapping[str, Any] | None = None) -> Config:
    global _config
    _config = _build(config_file, cli_args)
    return _config
