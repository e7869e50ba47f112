"""Configuration loader for the subnet runner."""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from subnetrunner.errors import ConfigurationError


class ConfigLoader:
    """Loads the YAML defaults file and checks every value's type.

    ``chain_config`` may be written as a YAML mapping; it is handed back as
    the JSON text the nodes expect.
    """

    COUNT_KEYS = ("node_count", "subnet_count", "subnet_size")
    SECONDS_KEYS = ("healthy_timeout",)
    FLAG_KEYS = ("no_history", "verbose")
    TEXT_KEYS = (
        "vm_name",
        "plugin_id",
        "genesis_file",
        "runner_endpoint",
        "root_dir",
        "log_level",
        "log_file",
    )
    SUPPORTED_KEYS = set(COUNT_KEYS + SECONDS_KEYS + FLAG_KEYS + TEXT_KEYS + ("chain_config",))

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ConfigurationError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ConfigurationError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise ConfigurationError(f"Unknown configuration keys: {unknown_list}")

        return self.validate(parsed)

    def validate(self, values: Dict[str, Any]) -> Dict[str, Any]:
        validated = dict(values)

        for key in self.COUNT_KEYS:
            if key in values:
                value = values[key]
                # bool is an int subclass; `node_count: yes` must not mean 1.
                if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                    raise ConfigurationError(f"'{key}' must be a positive integer, got {value!r}.")

        for key in self.SECONDS_KEYS:
            if key in values:
                value = values[key]
                if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                    raise ConfigurationError(f"'{key}' must be a positive number of seconds, got {value!r}.")
                validated[key] = float(value)

        for key in self.FLAG_KEYS:
            if key in values and not isinstance(values[key], bool):
                raise ConfigurationError(f"'{key}' must be true or false, got {values[key]!r}.")

        for key in self.TEXT_KEYS:
            if key in values and not isinstance(values[key], str):
                raise ConfigurationError(f"'{key}' must be a string, got {values[key]!r}.")

        if "chain_config" in values:
            chain_config = values["chain_config"]
            if isinstance(chain_config, dict):
                validated["chain_config"] = json.dumps(chain_config)
            elif not isinstance(chain_config, str):
                raise ConfigurationError("'chain_config' must be a JSON string or a mapping.")

        return validated
