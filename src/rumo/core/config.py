"""
Layered configuration for rumo.

Three layers are merged, later ones winning:
    1. Built-in defaults (data directory, blob keys, ledger tax defaults, logging)
    2. A YAML or JSON config file
    3. Environment variables, ``RUMO_SECTION__KEY=value``

Env values are kept as strings; :meth:`Config.validated` coerces them.

Usage:
    config = Config(config_file="~/.rumo/config.yaml")

    config.get("ledger.tax_rate_pct")
    config.validated().storage.trades_key
"""

import json
import os
from typing import Any

import yaml

from .exceptions import ConfigurationError
from .types import ConfigDict

_DEFAULT_ENV_PREFIX = "RUMO_"
_DEFAULT_DATA_DIR = os.path.join("~", ".rumo-data")
_ENV_NESTING = "__"


def _deep_merge(target: ConfigDict, overlay: ConfigDict) -> ConfigDict:
    """Merge *overlay* into *target* in place; nested mappings merge key by key."""
    for key, value in overlay.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _deep_merge(current, value)
        else:
            target[key] = value
    return target


def _env_layer(prefix: str) -> ConfigDict:
    """Nested mapping built from every ``<prefix>A__B=value`` variable."""
    layer: ConfigDict = {}
    if not prefix:
        return layer
    for name, value in os.environ.items():
        if not name.startswith(prefix):
            continue
        *sections, leaf = name[len(prefix) :].lower().split(_ENV_NESTING)
        node = layer
        for section in sections:
            if not isinstance(node.get(section), dict):
                node[section] = {}
            node = node[section]
        node[leaf] = value
    return layer


def _read_file(path: str) -> ConfigDict:
    """Parse a ``.yaml``/``.yml``/``.json`` file; other extensions contribute nothing."""
    ext = os.path.splitext(path)[1].lower()
    if ext not in (".yaml", ".yml", ".json"):
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            loaded = json.load(f) if ext == ".json" else yaml.safe_load(f)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot parse config file {path}: {e}") from e
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping at the top level")
    return loaded


def default_config(data_dir: str = _DEFAULT_DATA_DIR) -> ConfigDict:
    data_dir = os.path.expanduser(data_dir)
    return {
        "paths": {
            "data_dir": data_dir,
            "log_dir": os.path.join(data_dir, "logs"),
        },
        "storage": {
            "holdings_key": "rumo_data_v1",
            "trades_key": "rumo_trades_v1",
            "settings_key": "rumo_trades_settings_v1",
        },
        "ledger": {
            "tax_rate_pct": 28.0,
            "show_tax": True,
        },
        "logging": {
            "level": "WARNING",
            "file": None,
        },
    }


class Config:
    """
    Merged configuration with dot-path access.

    ``RUMO_LEDGER__TAX_RATE_PCT=21`` ends up as ``config_data["ledger"]["tax_rate_pct"] == "21"``.
    """

    def __init__(
        self,
        config_file: str | None = None,
        env_prefix: str = _DEFAULT_ENV_PREFIX,
        data_dir: str | None = None,
        defaults: ConfigDict | None = None,
    ):
        """
        Args:
            config_file: YAML or JSON file; ignored when it does not exist.
            env_prefix: Prefix of override variables. Empty disables env overrides.
            data_dir: Directory holding the persisted blobs. Defaults to ~/.rumo-data.
            defaults: Extra defaults merged over the built-in ones.
        """
        self.config_file = os.path.expanduser(config_file) if config_file else None
        self.env_prefix = env_prefix or ""
        self._data_dir = data_dir or _DEFAULT_DATA_DIR

        self.config_data = default_config(self._data_dir)
        _deep_merge(self.config_data, defaults or {})
        if self.config_file and os.path.exists(self.config_file):
            _deep_merge(self.config_data, _read_file(self.config_file))
        _deep_merge(self.config_data, _env_layer(self.env_prefix))

    def get(self, key_path: str, default: Any = None) -> Any:
        """Value at a dot path such as ``"ledger.tax_rate_pct"``, or *default*."""
        node: Any = self.config_data
        for part in key_path.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key_path: str, value: Any) -> None:
        """Set a dot-path value, creating (or replacing non-mapping) parents."""
        *parents, leaf = key_path.split(".")
        node = self.config_data
        for part in parents:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[leaf] = value

    def get_data_dir(self) -> str:
        return os.path.expanduser(self.get("paths.data_dir") or self._data_dir)

    def ensure_directories(self) -> None:
        """Create the data and log directories."""
        for key in ("data_dir", "log_dir"):
            path = self.get(f"paths.{key}")
            if isinstance(path, str) and path:
                os.makedirs(os.path.expanduser(path), exist_ok=True)

    def validated(self):  # type: ignore[no-untyped-def]
        """Return the configuration as a validated :class:`RumoConfig`.

        Raises:
            ConfigurationError: If a value has the wrong type or range.
        """
        from pydantic import ValidationError as PydanticValidationError

        from .config_schema import RumoConfig

        try:
            return RumoConfig.model_validate(self.config_data)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e


_config_instance: Config | None = None


def get_config(
    config_file: str | None = None,
    env_prefix: str = _DEFAULT_ENV_PREFIX,
    data_dir: str | None = None,
) -> Config:
    """Process-wide Config, created on first call."""
    global _config_instance
    if _config_instance is None:
        _config_instance = Config(config_file=config_file, env_prefix=env_prefix, data_dir=data_dir)
    return _config_instance


def reset_config() -> None:
    """Forget the process-wide Config (tests)."""
    global _config_instance
    _config_instance = None
