"""Blockchain creation and endpoint publication."""

from typing import Dict, List, Sequence, Tuple

from subnetrunner.constants import RPC_URL_TEMPLATE
from subnetrunner.errors import ProvisioningError
from subnetrunner.models import BlockchainSpec, NodeDescriptor, RunConfiguration, SubnetEndpoint

ChainMap = Dict[str, Tuple[int, str]]


class BlockchainProvisioner:
    """Creates one blockchain per subnet group in a single batch."""

    def __init__(self, logger, console):
        self.logger = logger
        self.console = console

    def build_specs(
        self,
        config: RunConfiguration,
        groups: Sequence[Sequence[str]],
    ) -> List[BlockchainSpec]:
        return [
            BlockchainSpec(
                vm_name=config.vm_name,
                genesis=config.genesis,
                chain_config=config.chain_config,
                participants=tuple(group),
            )
            for group in groups
        ]

    def create(self, network, specs: List[BlockchainSpec]) -> List[str]:
        self.console.print(f"[blue]Creating {len(specs)} blockchain(s)...[/blue]")
        self.logger.info("Creating %s blockchain(s) with VM '%s'", len(specs), specs[0].vm_name)

        try:
            chain_ids = list(network.create_blockchains(specs))
        except Exception as exc:
            raise ProvisioningError(f"Blockchain creation failed: {exc}") from exc

        if len(chain_ids) != len(specs):
            raise ProvisioningError(
                f"Expected {len(specs)} chain ID(s) from the network, got {len(chain_ids)}."
            )

        for index, chain_id in enumerate(chain_ids):
            self.logger.info("Subnet %s blockchain: %s", index, chain_id)
        return chain_ids

    def build_chain_map(self, groups: Sequence[Sequence[str]], chain_ids: Sequence[str]) -> ChainMap:
        chain_map: ChainMap = {}
        for subnet_index, (group, chain_id) in enumerate(zip(groups, chain_ids)):
            for name in group:
                chain_map[name] = (subnet_index, chain_id)
        return chain_map

    def build_endpoints(
        self,
        nodes: Sequence[NodeDescriptor],
        chain_map: ChainMap,
    ) -> List[SubnetEndpoint]:
        endpoints = []
        for node in nodes:
            if node.name not in chain_map:
                continue
            subnet_index, chain_id = chain_map[node.name]
            endpoints.append(
                SubnetEndpoint(
                    node_name=node.name,
                    subnet_index=subnet_index,
                    chain_id=chain_id,
                    url=RPC_URL_TEMPLATE.format(port=node.api_port, chain_id=chain_id),
                )
            )
        return endpoints
