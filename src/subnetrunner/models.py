"""Shared domain models for the subnet runner."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .constants import (
    DEFAULT_HEALTHY_TIMEOUT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_RUNNER_ENDPOINT,
    PORT_SHIFT_INCREMENT,
)


class RunPhase(str, Enum):
    IDLE = "idle"
    BOOTSTRAPPING = "bootstrapping"
    AWAITING_HEALTH = "awaiting_health"
    DISTRIBUTING_PLUGINS = "distributing_plugins"
    CREATING_BLOCKCHAINS = "creating_blockchains"
    AWAITING_CHAIN_HEALTH = "awaiting_chain_health"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"
    FAILED = "failed"


@dataclass(frozen=True)
class RunConfiguration:
    """Inputs for one network run. Never mutated once built."""

    node_count: int
    subnet_count: int
    subnet_size: int
    vm_name: str
    plugin_id: str
    genesis: bytes
    chain_config: bytes
    binary_path: str
    work_dir: str
    healthy_timeout: float = DEFAULT_HEALTHY_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL
    history_file: Optional[str] = None
    runner_endpoint: str = DEFAULT_RUNNER_ENDPOINT

    @property
    def exec_path(self) -> str:
        return f"{self.binary_path}/avalanchego"


@dataclass(frozen=True)
class PortShiftRecord:
    """One historical run on this host.

    ``port_span`` is how many ports the run occupied from its shifted base.
    Records written without it predate variable node counts and cover the
    five-node default.
    """

    network_id: int
    port_shift: int
    port_span: int = PORT_SHIFT_INCREMENT

    def to_json(self) -> dict:
        return {
            "NetworkID": self.network_id,
            "PortShifting": self.port_shift,
            "PortSpan": self.port_span,
        }

    @classmethod
    def from_json(cls, data: dict) -> "PortShiftRecord":
        return cls(
            network_id=int(data["NetworkID"]),
            port_shift=int(data["PortShifting"]),
            port_span=int(data.get("PortSpan", PORT_SHIFT_INCREMENT)),
        )


@dataclass(frozen=True)
class NodeDescriptor:
    name: str
    data_dir: str
    api_port: int


@dataclass(frozen=True)
class BlockchainSpec:
    vm_name: str
    genesis: bytes
    chain_config: bytes
    participants: Tuple[str, ...]


@dataclass(frozen=True)
class SubnetEndpoint:
    """Published RPC endpoint of one subnet participant."""

    node_name: str
    subnet_index: int
    chain_id: str
    url: str
