"""Subnet membership layout."""

from typing import List, Sequence

from subnetrunner.errors import ConfigurationError
from subnetrunner.errors_catalog import actionable_error


def validate_layout(node_count: int, subnet_count: int, subnet_size: int):
    if node_count < 1:
        raise ConfigurationError("Node count must be at least 1.")
    if subnet_count < 1:
        raise ConfigurationError("Subnet count must be at least 1.")
    if subnet_size < 1:
        raise ConfigurationError("Subnet size must be at least 1.")
    if subnet_count * subnet_size > node_count:
        raise ConfigurationError(
            actionable_error("invalid_layout", nodes=node_count, subnets=subnet_count, size=subnet_size)
        )


def partition(names: Sequence[str], subnet_count: int, subnet_size: int) -> List[List[str]]:
    """Split ``names`` into contiguous groups, one per subnet.

    Groups are taken from the front of the list. Nodes past
    ``subnet_count * subnet_size`` are left out of every subnet and stay
    available for manual use.
    """
    validate_layout(len(names), subnet_count, subnet_size)
    return [
        list(names[index * subnet_size:(index + 1) * subnet_size])
        for index in range(subnet_count)
    ]
