import threading
import time

import pytest

from subnetrunner.errors import HealthTimeoutError, ShutdownRequested
from subnetrunner.services.health import HealthWaiter
from subnetrunner.services.shutdown import ShutdownGate


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None

    def debug(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


class ScriptedNetwork:
    def __init__(self, answers):
        self.answers = list(answers)
        self.probes = 0
        self.timeouts = []

    def is_healthy(self, timeout=None):
        self.probes += 1
        self.timeouts.append(timeout)
        answer = self.answers.pop(0) if self.answers else False
        if isinstance(answer, Exception):
            raise answer
        return answer


def _waiter():
    return HealthWaiter(logger=DummyLogger(), console=DummyConsole(), poll_interval=0.01)


def test_wait_returns_once_network_is_healthy():
    network = ScriptedNetwork([False, False, True])

    _waiter().wait(network, timeout=5, gate=ShutdownGate())

    assert network.probes == 3


def test_probe_errors_are_retried_until_healthy():
    network = ScriptedNetwork([ConnectionError("booting"), True])

    _waiter().wait(network, timeout=5, gate=ShutdownGate())

    assert network.probes == 2


def test_wait_times_out():
    network = ScriptedNetwork([])

    with pytest.raises(HealthTimeoutError, match="did not become healthy"):
        _waiter().wait(network, timeout=0.1, gate=ShutdownGate())


def test_fired_gate_interrupts_wait_well_before_timeout():
    network = ScriptedNetwork([])
    gate = ShutdownGate()
    waiter = HealthWaiter(logger=DummyLogger(), console=DummyConsole(), poll_interval=10)
    timer = threading.Timer(0.1, gate.fire, args=("operator",))

    started = time.monotonic()
    timer.start()
    try:
        with pytest.raises(ShutdownRequested) as error:
            waiter.wait(network, timeout=60, gate=gate)
    finally:
        timer.cancel()

    assert time.monotonic() - started < 5
    assert error.value.reason == "operator"


def test_already_fired_gate_skips_probing():
    network = ScriptedNetwork([True])
    gate = ShutdownGate()
    gate.fire("early")

    with pytest.raises(ShutdownRequested):
        _waiter().wait(network, timeout=5, gate=gate)

    assert network.probes == 0


def test_each_probe_is_bounded_to_one_second():
    network = ScriptedNetwork([False, True])

    _waiter().wait(network, timeout=60, gate=ShutdownGate())

    assert network.timeouts
    assert all(timeout <= 1.0 for timeout in network.timeouts)


def test_probe_never_outlives_the_deadline():
    network = ScriptedNetwork([True])

    _waiter().wait(network, timeout=0.5, gate=ShutdownGate())

    assert network.timeouts[0] <= 0.5
