"""Port shift allocation for networks sharing one host."""

from typing import Dict

from subnetrunner.constants import MAX_PORT, PORT_SHIFT_INCREMENT, PORTS_PER_NODE
from subnetrunner.errors import ConfigurationError
from subnetrunner.errors_catalog import actionable_error

SHIFTED_PORT_FLAGS = ("http-port", "staking-port")


class PortAllocator:
    """Derives a per-run port offset from the recorded runs.

    Each run occupies ``PORTS_PER_NODE * node_count`` consecutive ports, so
    the step between runs is that span rounded up to a multiple of
    ``increment``. With five nodes the step is exactly ``increment``.

    Shifts are never reclaimed: a host that keeps starting networks without
    pruning its history walks steadily towards the top of the port range.
    """

    def __init__(self, increment: int = PORT_SHIFT_INCREMENT):
        self.increment = increment

    def span_for(self, node_count: int) -> int:
        return PORTS_PER_NODE * max(1, node_count)

    def _round_up(self, value: int) -> int:
        return -(-value // self.increment) * self.increment

    def step_for(self, node_count: int) -> int:
        return self._round_up(self.span_for(node_count))

    def compute_shift(self, prior_runs: int, node_count: int) -> int:
        return self.step_for(node_count) * max(0, prior_runs)

    def shift_for(self, history, node_count: int) -> int:
        shift = self.compute_shift(len(history), node_count)
        # Earlier runs may have used more nodes than this one.
        for record in history.records:
            shift = max(shift, self._round_up(record.port_shift + record.port_span))
        return shift

    def apply(self, node_configs: Dict[str, Dict], shift: int) -> Dict[str, Dict]:
        for node_config in node_configs.values():
            for flag in SHIFTED_PORT_FLAGS:
                if flag not in node_config:
                    continue
                shifted = int(node_config[flag]) + shift
                if shifted > MAX_PORT:
                    raise ConfigurationError(actionable_error("port_overflow", shift=shift))
                node_config[flag] = shifted
        return node_configs
