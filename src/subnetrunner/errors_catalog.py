"""Actionable error catalog for the subnet runner."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "invalid_layout": {
        "what": "{nodes} node(s) cannot host {subnets} subnet(s) of {size} node(s) each.",
        "next": "Raise `--node-count` or lower `--subnet-count` / `--subnet-size`.",
    },
    "plugin_not_found": {
        "what": "VM plugin not found: {path}",
        "next": "Build the plugin and place it under the avalanchego `plugins/` folder, "
        "or check `--plugin-id`.",
    },
    "plugin_not_regular": {
        "what": "VM plugin is not a regular file: {path}",
        "next": "Point `--plugin-id` at the plugin binary, not a directory or device.",
    },
    "history_unreadable": {
        "what": "Run history file '{path}' could not be read: {error}",
        "next": "Fix or remove the file, or run with `--no-history`.",
    },
    "work_dir_stale": {
        "what": "Network working directory '{path}' could not be reset: {error}",
        "next": "Stop any nodes still using it and check its permissions.",
    },
    "port_overflow": {
        "what": "Port shift {shift} pushes node ports past 65535.",
        "next": "Prune old entries from the run history file before starting another network.",
    },
    "runner_unreachable": {
        "what": "Network runner server is not reachable at {endpoint}: {error}",
        "next": "Start `avalanche-network-runner server` or pass `--runner-endpoint`.",
    },
    "health_timeout": {
        "what": "Network did not become healthy within {timeout:.0f}s.",
        "next": "Inspect node logs under the network working directory or raise "
        "`--healthy-timeout`.",
    },
}


def actionable_error(code: str, **kwargs) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
