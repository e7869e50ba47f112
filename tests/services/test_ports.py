import pytest

from subnetrunner.errors import ConfigurationError
from subnetrunner.models import PortShiftRecord
from subnetrunner.services.history import RunHistory
from subnetrunner.services.ports import PortAllocator


def _occupied_ports(shift, node_count):
    ports = set()
    for index in range(node_count):
        ports.add(9650 + 2 * index + shift)
        ports.add(9651 + 2 * index + shift)
    return ports


def test_shift_is_increment_times_prior_runs_for_five_nodes():
    allocator = PortAllocator(increment=10)

    for prior_runs in range(50):
        assert allocator.compute_shift(prior_runs, 5) == 10 * prior_runs


def test_step_covers_every_port_of_a_run():
    allocator = PortAllocator(increment=10)

    assert allocator.step_for(1) == 10
    assert allocator.step_for(5) == 10
    assert allocator.step_for(6) == 20
    assert allocator.step_for(9) == 20
    assert allocator.step_for(11) == 30


def test_shift_defaults_to_zero_without_history(tmp_path):
    allocator = PortAllocator()

    assert allocator.shift_for(RunHistory.load(str(tmp_path / "missing.json")), 5) == 0
    assert allocator.shift_for(RunHistory.disabled(), 9) == 0


def test_sequential_runs_get_distinct_shifts(tmp_path):
    history_file = str(tmp_path / "config.json")
    allocator = PortAllocator()
    seen = []

    for network_id in range(3):
        history = RunHistory.load(history_file)
        shift = allocator.shift_for(history, 5)
        seen.append(shift)
        history.append(PortShiftRecord(network_id=network_id, port_shift=shift, port_span=allocator.span_for(5)))
        history.save()

    assert seen == [0, 10, 20]


def test_sequential_nine_node_runs_get_disjoint_port_sets(tmp_path):
    history_file = str(tmp_path / "config.json")
    allocator = PortAllocator()
    shifts = []
    port_sets = []

    for network_id in range(3):
        history = RunHistory.load(history_file)
        shift = allocator.shift_for(history, 9)
        shifts.append(shift)
        port_sets.append(_occupied_ports(shift, 9))
        history.append(PortShiftRecord(network_id=network_id, port_shift=shift, port_span=allocator.span_for(9)))
        history.save()

    assert shifts == [0, 20, 40]
    for index, ports in enumerate(port_sets):
        for other in port_sets[index + 1:]:
            assert ports.isdisjoint(other)


def test_smaller_run_clears_ports_of_a_larger_earlier_run():
    allocator = PortAllocator()
    history = RunHistory(path=None, records=[PortShiftRecord(1, 0, port_span=40)])

    shift = allocator.shift_for(history, 2)

    assert shift == 40
    assert _occupied_ports(shift, 2).isdisjoint(_occupied_ports(0, 20))


def test_records_without_span_count_as_one_increment():
    allocator = PortAllocator()
    history = RunHistory(path=None, records=[PortShiftRecord.from_json({"NetworkID": 1, "PortShifting": 0})])

    assert history.records[0].port_span == 10
    assert allocator.shift_for(history, 5) == 10


def test_shift_keeps_growing_because_old_runs_are_never_reclaimed():
    allocator = PortAllocator()
    history = RunHistory(path=None, records=[PortShiftRecord(1, 10 * i) for i in range(1000)])

    assert allocator.shift_for(history, 5) == 10000


def test_apply_shifts_http_and_staking_ports_only():
    allocator = PortAllocator()
    node_configs = {
        "node1": {"http-port": 9650, "staking-port": 9651, "plugin-dir": "/tmp/p"},
        "node2": {"http-port": 9652, "staking-port": 9653, "plugin-dir": "/tmp/q"},
    }

    allocator.apply(node_configs, 20)

    assert node_configs["node1"] == {"http-port": 9670, "staking-port": 9671, "plugin-dir": "/tmp/p"}
    assert node_configs["node2"]["http-port"] == 9672
    assert node_configs["node2"]["staking-port"] == 9673


def test_apply_rejects_shift_past_port_range():
    allocator = PortAllocator()

    with pytest.raises(ConfigurationError, match="65535"):
        allocator.apply({"node1": {"http-port": 9650, "staking-port": 9651}}, 60000)
