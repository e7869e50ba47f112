"""Domain errors for the subnet runner."""


class RunnerError(RuntimeError):
    """Raised when the network run cannot continue safely."""


class ConfigurationError(RunnerError):
    """Invalid inputs, missing plugin binary or unreadable run history."""


class BootstrapError(RunnerError):
    """The node supervisor failed to start the cluster."""


class HealthTimeoutError(RunnerError):
    """Nodes did not report healthy before the deadline."""


class ProvisioningError(RunnerError):
    """Blockchain creation failed."""


class ShutdownRequested(Exception):
    """The operator asked the run to stop. Not a failure."""

    def __init__(self, reason: str = "shutdown requested"):
        super().__init__(reason)
        self.reason = reason
