import logging
import os
import time
from pathlib import Path

import click
from rich.logging import RichHandler

from .constants import (
    DEFAULT_CHAIN_CONFIG,
    DEFAULT_CONFIG_FILE,
    DEFAULT_HEALTHY_TIMEOUT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_NODE_COUNT,
    DEFAULT_PLUGIN_ID,
    DEFAULT_RUNNER_ENDPOINT,
    DEFAULT_SUBNET_COUNT,
    DEFAULT_VM_NAME,
    HISTORY_FILE_NAME,
    RUNNER_ROOT_NAME,
)
from .core import SubnetRunner
from .errors import RunnerError
from .models import RunConfiguration
from .services.config_loader import ConfigLoader
from .services.partition import validate_layout

DEFAULT_GENESIS_PATH = Path(__file__).parent / "data" / "genesis.json"


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


def _default_root_dir() -> str:
    home = os.environ.get("HOME") or os.path.expanduser("~")
    return os.path.join(home, RUNNER_ROOT_NAME)


def _read_genesis(genesis_file) -> bytes:
    path = Path(genesis_file) if genesis_file else DEFAULT_GENESIS_PATH
    try:
        return path.read_bytes()
    except OSError as exc:
        raise click.ClickException(f"Could not read genesis file '{path}': {exc}") from exc


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.option("--vm-name", required=False, help=f"Name of the VM to deploy (default: {DEFAULT_VM_NAME})")
@click.option("--plugin-id", required=False, help="ID of the VM plugin in cb58 format")
@click.option("--node-count", required=False, type=int, default=None, help="Number of nodes to start (default: 5)")
@click.option("--subnet-count", required=False, type=int, default=None, help="Number of subnets to create (default: 1)")
@click.option(
    "--subnet-size",
    required=False,
    type=int,
    default=None,
    help="Nodes per subnet (default: node count divided by subnet count)",
)
@click.option(
    "--genesis-file",
    required=False,
    type=click.Path(),
    help="Genesis file for every created blockchain (default: bundled subnet-evm genesis)",
)
@click.option("--chain-config", required=False, help="Chain config JSON passed to every blockchain")
@click.option(
    "--healthy-timeout",
    required=False,
    type=float,
    default=None,
    help="Seconds to wait for the network to report healthy (default: 120)",
)
@click.option("--runner-endpoint", required=False, help="URL of the avalanche-network-runner server")
@click.option(
    "--root-dir",
    required=False,
    type=click.Path(),
    help="Runner root holding avalanchego/ and networks/ (default: ~/universal-subnet-runner)",
)
@click.option("--no-history", is_flag=True, default=None, help="Do not read or record the port shift history")
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option("--log-level", required=False, help="Log level passed to the nodes (default: INFO)")
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def main(
    vm_name,
    plugin_id,
    node_count,
    subnet_count,
    subnet_size,
    genesis_file,
    chain_config,
    healthy_timeout,
    runner_endpoint,
    root_dir,
    no_history,
    config,
    log_level,
    verbose,
    log_file,
):
    """Start a local network with one blockchain per subnet until CTRL + C."""
    logger = logging.getLogger("subnetrunner")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except RunnerError as exc:
        raise click.ClickException(str(exc)) from exc

    vm_name = _resolve_option(vm_name, config_values, "vm_name", default=DEFAULT_VM_NAME)
    plugin_id = _resolve_option(plugin_id, config_values, "plugin_id", default=DEFAULT_PLUGIN_ID)
    node_count = int(_resolve_option(node_count, config_values, "node_count", default=DEFAULT_NODE_COUNT))
    subnet_count = int(
        _resolve_option(subnet_count, config_values, "subnet_count", default=DEFAULT_SUBNET_COUNT)
    )
    subnet_size = _resolve_option(subnet_size, config_values, "subnet_size")
    genesis_file = _resolve_option(genesis_file, config_values, "genesis_file")
    chain_config = _resolve_option(chain_config, config_values, "chain_config", default=DEFAULT_CHAIN_CONFIG)
    healthy_timeout = float(
        _resolve_option(healthy_timeout, config_values, "healthy_timeout", default=DEFAULT_HEALTHY_TIMEOUT)
    )
    runner_endpoint = _resolve_option(
        runner_endpoint, config_values, "runner_endpoint", default=DEFAULT_RUNNER_ENDPOINT
    )
    root_dir = _resolve_option(root_dir, config_values, "root_dir") or _default_root_dir()
    no_history = bool(_resolve_option(no_history, config_values, "no_history", default=False))
    log_level = str(_resolve_option(log_level, config_values, "log_level", default=DEFAULT_LOG_LEVEL)).upper()
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    if subnet_size is None:
        subnet_size = node_count // subnet_count if subnet_count > 0 else 0
    subnet_size = int(subnet_size)

    try:
        validate_layout(node_count, subnet_count, subnet_size)
    except RunnerError as exc:
        raise click.ClickException(str(exc)) from exc

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    run_config = RunConfiguration(
        node_count=node_count,
        subnet_count=subnet_count,
        subnet_size=subnet_size,
        vm_name=vm_name,
        plugin_id=plugin_id,
        genesis=_read_genesis(genesis_file),
        chain_config=chain_config.encode("utf-8"),
        binary_path=os.path.join(root_dir, "avalanchego"),
        work_dir=os.path.join(root_dir, "networks", str(int(time.time())), "nodes"),
        healthy_timeout=healthy_timeout,
        log_level=log_level,
        history_file=None if no_history else os.path.join(root_dir, HISTORY_FILE_NAME),
        runner_endpoint=runner_endpoint,
    )

    runner = SubnetRunner(config=run_config)
    raise SystemExit(runner.run())


if __name__ == "__main__":
    main()
