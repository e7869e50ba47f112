"""Blocking wait for cluster health."""

import time

from subnetrunner.errors import HealthTimeoutError, ShutdownRequested
from subnetrunner.errors_catalog import actionable_error


class HealthWaiter:
    """Polls the network until every node is healthy.

    Sleeps on the shutdown gate between probes, so a shutdown fired while
    waiting ends the wait at once instead of after the timeout. A probe in
    flight is not interrupted; it can delay shutdown by up to
    ``probe_timeout`` seconds.
    """

    def __init__(self, logger, console, poll_interval: float = 1.0, probe_timeout: float = 1.0):
        self.logger = logger
        self.console = console
        self.poll_interval = poll_interval
        self.probe_timeout = probe_timeout

    def wait(self, network, timeout: float, gate):
        self.console.print("[yellow]Waiting for all nodes to report healthy...[/yellow]")
        self.logger.info("Waiting for all nodes to report healthy...")
        deadline = time.monotonic() + timeout

        while True:
            if gate.is_fired():
                raise ShutdownRequested(gate.reason)

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise HealthTimeoutError(actionable_error("health_timeout", timeout=timeout))

            try:
                healthy = network.is_healthy(timeout=min(self.probe_timeout, remaining))
            except Exception as exc:
                self.logger.debug("Health probe failed: %s", exc)
                healthy = False

            if healthy:
                self.console.print("[green]All nodes healthy.[/green]")
                self.logger.info("All nodes healthy")
                return

            remaining = deadline - time.monotonic()
            gate.wait(max(0.0, min(self.poll_interval, remaining)))
