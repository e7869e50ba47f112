"""Network bootstrap: node configuration and cluster start."""

import os
import re
from typing import Any, Dict, List

from subnetrunner.constants import BASE_HTTP_PORT, BASE_STAKING_PORT, DIR_MODE, PORTS_PER_NODE
from subnetrunner.errors import BootstrapError
from subnetrunner.models import NodeDescriptor, RunConfiguration


def _natural_key(name: str):
    return [int(part) if part.isdigit() else part for part in re.split(r"(\d+)", name)]


class NetworkBootstrapper:
    """Turns a run configuration into a started cluster."""

    def __init__(self, client, port_allocator, filesystem_service, logger, console):
        self.client = client
        self.port_allocator = port_allocator
        self.filesystem_service = filesystem_service
        self.logger = logger
        self.console = console

    def prepare_work_dir(self, work_dir: str):
        self.logger.info("Preparing network working directory %s", work_dir)
        self.filesystem_service.reset_work_dir(work_dir, DIR_MODE)

    def build_node_configs(self, node_count: int, work_dir: str) -> Dict[str, Dict[str, Any]]:
        node_configs: Dict[str, Dict[str, Any]] = {}
        for index in range(node_count):
            name = f"node{index + 1}"
            node_configs[name] = {
                "http-port": BASE_HTTP_PORT + PORTS_PER_NODE * index,
                "staking-port": BASE_STAKING_PORT + PORTS_PER_NODE * index,
                "plugin-dir": os.path.join(work_dir, name, "plugins"),
            }
        return node_configs

    def start(self, config: RunConfiguration, shift: int):
        """Start the cluster and return its handle.

        Raises BootstrapError when the supervisor refuses; no handle exists
        in that case and nothing needs stopping.
        """
        node_configs = self.build_node_configs(config.node_count, config.work_dir)
        self.port_allocator.apply(node_configs, shift)

        self.console.print(
            f"[blue]Starting {config.node_count} node(s) with port shift {shift}...[/blue]"
        )
        self.logger.info("Starting %s nodes (port shift %s)", config.node_count, shift)

        try:
            return self.client.start(
                exec_path=config.exec_path,
                work_dir=config.work_dir,
                node_configs=node_configs,
                log_level=config.log_level,
            )
        except Exception as exc:
            raise BootstrapError(f"Failed to start the local network: {exc}") from exc

    def describe_nodes(self, network) -> List[NodeDescriptor]:
        names = sorted(network.node_names(), key=_natural_key)
        if not names:
            raise BootstrapError("Started network reported no nodes.")

        nodes = [network.get_node(name) for name in names]
        for node in nodes:
            self.logger.debug(
                "Node %s: api port %s, data dir %s", node.name, node.api_port, node.data_dir
            )
        return nodes
