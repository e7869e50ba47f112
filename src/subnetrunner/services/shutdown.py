"""Shutdown coordination between signal handlers and the run pipeline."""

import signal
import threading
from typing import Optional


class ShutdownGate:
    """One-shot shutdown trigger. Only the first ``fire`` counts."""

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self.reason: Optional[str] = None

    def fire(self, reason: str) -> bool:
        with self._lock:
            if self._event.is_set():
                return False
            self.reason = reason
            self._event.set()
            return True

    def is_fired(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)


class SignalListener:
    """Fires the gate on the first SIGINT/SIGTERM, then retires.

    Once retired, further signals are ignored until ``uninstall`` restores
    the previous handlers. Handlers may only be installed from the main
    thread.
    """

    SIGNALS = (signal.SIGINT, signal.SIGTERM)

    def __init__(self, gate: ShutdownGate, logger, signal_module=signal):
        self.gate = gate
        self.logger = logger
        self.signal = signal_module
        self._previous = {}

    @property
    def installed(self) -> bool:
        return bool(self._previous)

    def install(self):
        if self._previous:
            return
        for signum in self.SIGNALS:
            self._previous[signum] = self.signal.signal(signum, self._handle)

    def uninstall(self):
        previous, self._previous = self._previous, {}
        for signum, handler in previous.items():
            self.signal.signal(signum, handler if handler is not None else signal.SIG_DFL)

    def _retire(self):
        for signum in self._previous:
            self.signal.signal(signum, signal.SIG_IGN)

    def _handle(self, signum, _frame):
        self._retire()
        # Firing takes locks the interrupted main thread may hold.
        threading.Thread(
            target=self._fire,
            args=(signal.Signals(signum).name,),
            name="shutdown-signal",
            daemon=True,
        ).start()

    def _fire(self, name: str):
        self.logger.info("Got OS signal %s", name)
        self.gate.fire(f"signal {name}")


class GuardedNetwork:
    """Owns a network handle and stops it at most once."""

    def __init__(self, network, logger):
        self.network = network
        self.logger = logger
        self._lock = threading.Lock()
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def stop(self) -> bool:
        with self._lock:
            if self._stopped:
                return False
            self._stopped = True

        self.logger.info("Stopping network...")
        try:
            self.network.stop()
        except Exception as exc:
            self.logger.error("Error stopping network: %s", exc)
        return True
