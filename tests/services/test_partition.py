import itertools

import pytest

from subnetrunner.errors import ConfigurationError
from subnetrunner.services.partition import partition, validate_layout


def _names(count):
    return [f"node{index + 1}" for index in range(count)]


def test_partition_groups_are_disjoint_fixed_size_prefix():
    for node_count in range(1, 13):
        for subnet_count in range(1, node_count + 1):
            for subnet_size in range(1, node_count // subnet_count + 1):
                names = _names(node_count)
                groups = partition(names, subnet_count, subnet_size)

                assert len(groups) == subnet_count
                assert all(len(group) == subnet_size for group in groups)
                flattened = list(itertools.chain.from_iterable(groups))
                assert len(set(flattened)) == len(flattened)
                assert flattened == names[: subnet_count * subnet_size]


def test_partition_three_subnets_of_three():
    groups = partition(_names(9), 3, 3)

    assert groups == [
        ["node1", "node2", "node3"],
        ["node4", "node5", "node6"],
        ["node7", "node8", "node9"],
    ]


def test_trailing_nodes_stay_unassigned():
    groups = partition(_names(7), 2, 3)

    assert groups == [["node1", "node2", "node3"], ["node4", "node5", "node6"]]


@pytest.mark.parametrize(
    "node_count,subnet_count,subnet_size",
    [(5, 2, 3), (0, 1, 1), (5, 0, 1), (5, 1, 0)],
)
def test_validate_layout_rejects_invalid_counts(node_count, subnet_count, subnet_size):
    with pytest.raises(ConfigurationError):
        validate_layout(node_count, subnet_count, subnet_size)
