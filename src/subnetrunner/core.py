import logging
import os
import uuid
from typing import Any, Dict, List, Optional

from rich.console import Console

from .constants import EXIT_FAILURE, EXIT_OK
from .errors import RunnerError, ShutdownRequested
from .models import NodeDescriptor, PortShiftRecord, RunConfiguration, RunPhase, SubnetEndpoint
from .services.bootstrap import NetworkBootstrapper
from .services.filesystem import FileSystemService
from .services.health import HealthWaiter
from .services.history import RunHistory
from .services.manifest import ManifestService
from .services.network import NetworkRunnerClient
from .services.partition import partition, validate_layout
from .services.plugins import PluginDistributor
from .services.ports import PortAllocator
from .services.provisioner import BlockchainProvisioner
from .services.shutdown import GuardedNetwork, ShutdownGate, SignalListener

console = Console()
logger = logging.getLogger("subnetrunner")


class SubnetRunner:
    """Brings up a local network, creates one blockchain per subnet and
    keeps it running until shutdown is requested.

    The network handle is stopped exactly once, from the ``finally`` of
    :meth:`run`, whichever way the run ends.
    """

    TERMINAL_PHASES = (RunPhase.STOPPED, RunPhase.FAILED)

    def __init__(
        self,
        config: RunConfiguration,
        client=None,
        history: Optional[RunHistory] = None,
        install_signal_handlers: bool = True,
        health_poll_interval: float = 1.0,
    ):
        self.config = config
        self.install_signal_handlers = install_signal_handlers
        self.run_id = uuid.uuid4().hex[:10]

        self.network_dir = os.path.dirname(config.work_dir.rstrip(os.sep)) or config.work_dir
        self.manifest_file = os.path.join(self.network_dir, "run-manifest.json")

        self.client = client or NetworkRunnerClient(config.runner_endpoint, logger=logger)
        self.history = history
        self.gate = ShutdownGate()
        self.listener = SignalListener(self.gate, logger=logger)

        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.port_allocator = PortAllocator()
        self.bootstrapper = NetworkBootstrapper(
            client=self.client,
            port_allocator=self.port_allocator,
            filesystem_service=self.filesystem_service,
            logger=logger,
            console=console,
        )
        self.health_waiter = HealthWaiter(
            logger=logger,
            console=console,
            poll_interval=health_poll_interval,
        )
        self.plugin_distributor = PluginDistributor(logger=logger, console=console)
        self.provisioner = BlockchainProvisioner(logger=logger, console=console)
        self.manifest_service = ManifestService(manifest_file=self.manifest_file, logger=logger)

        self.phase = RunPhase.IDLE
        self.phase_history: List[RunPhase] = [RunPhase.IDLE]
        self.guard: Optional[GuardedNetwork] = None
        self.nodes: List[NodeDescriptor] = []
        self.groups: List[List[str]] = []
        self.chain_ids: List[str] = []
        self.endpoints: List[SubnetEndpoint] = []
        self.port_shift = 0

    def request_shutdown(self, reason: str = "shutdown requested") -> bool:
        """Ask the run to stop. Safe to call from any thread, any number of times."""
        return self.gate.fire(reason)

    def _transition(self, phase: RunPhase):
        if self.phase in self.TERMINAL_PHASES:
            raise RuntimeError(f"Run already finished in phase '{self.phase.value}'.")
        logger.debug("Phase %s -> %s", self.phase.value, phase.value)
        self.phase = phase
        self.phase_history.append(phase)

    def _check_shutdown(self):
        if self.gate.is_fired():
            raise ShutdownRequested(self.gate.reason)

    def _run_phase(self, phase: RunPhase, callback, *args, **kwargs):
        self._check_shutdown()
        self._transition(phase)
        self.manifest_service.phase_started(phase.value)

        try:
            result = callback(*args, **kwargs)
        except ShutdownRequested:
            self.manifest_service.phase_finished(phase.value, "aborted")
            raise
        except Exception as exc:
            self.manifest_service.phase_finished(phase.value, "failed", error=str(exc))
            raise

        self.manifest_service.phase_finished(phase.value, "success")
        return result

    def _build_manifest_metadata(self) -> Dict[str, Any]:
        return {
            "node_count": self.config.node_count,
            "subnet_count": self.config.subnet_count,
            "subnet_size": self.config.subnet_size,
            "vm_name": self.config.vm_name,
            "plugin_id": self.config.plugin_id,
            "work_dir": self.config.work_dir,
            "history_file": self.config.history_file,
        }

    def validate_configuration(self):
        validate_layout(self.config.node_count, self.config.subnet_count, self.config.subnet_size)
        self.plugin_distributor.validate_source(
            self.plugin_distributor.source_path(self.config.binary_path, self.config.plugin_id)
        )
        self.port_allocator.apply(
            self.bootstrapper.build_node_configs(self.config.node_count, self.config.work_dir),
            self.port_shift,
        )

    def bootstrap(self):
        self.bootstrapper.prepare_work_dir(self.config.work_dir)
        network = self.bootstrapper.start(self.config, self.port_shift)
        self.guard = GuardedNetwork(network, logger=logger)

        network_id = network.network_id()
        self.manifest_service.set_network(network_id=network_id, port_shift=self.port_shift)
        if self.history.enabled:
            self.history.append(
                PortShiftRecord(
                    network_id=network_id,
                    port_shift=self.port_shift,
                    port_span=self.port_allocator.span_for(self.config.node_count),
                )
            )
            self.history.save()
            logger.info("Recorded network %s in run history %s", network_id, self.history.path)

    def wait_healthy(self):
        self.health_waiter.wait(self.guard.network, self.config.healthy_timeout, self.gate)

    def distribute_plugins(self):
        # The runner only reports node names and API ports once nodes are up.
        self.nodes = self.bootstrapper.describe_nodes(self.guard.network)
        self.plugin_distributor.distribute(self.config.binary_path, self.config.plugin_id, self.nodes)

    def create_blockchains(self):
        self.groups = partition(
            [node.name for node in self.nodes],
            self.config.subnet_count,
            self.config.subnet_size,
        )
        specs = self.provisioner.build_specs(self.config, self.groups)
        self.chain_ids = self.provisioner.create(self.guard.network, specs)
        self.manifest_service.set_network(chain_ids=self.chain_ids)

    def publish_endpoints(self):
        chain_map = self.provisioner.build_chain_map(self.groups, self.chain_ids)
        self.endpoints = self.provisioner.build_endpoints(self.nodes, chain_map)

        for endpoint in self.endpoints:
            logger.info("Subnet rpc url for %s: %s", endpoint.node_name, endpoint.url)
            console.print(f"[bold green]{endpoint.node_name}[/bold green] {endpoint.url}")
        self.manifest_service.set_endpoints(self.endpoints)

    def cleanup(self):
        if self.guard is not None:
            self.guard.stop()
        if self.listener.installed:
            self.listener.uninstall()

    def run(self) -> int:
        exit_code = EXIT_FAILURE
        manifest_status = "failed"
        manifest_error: Optional[str] = None

        try:
            logger.info("Starting subnet runner...")
            self.manifest_service.start_run(self.run_id, self._build_manifest_metadata())

            if self.history is None:
                self.history = RunHistory.load(self.config.history_file)
            self.port_shift = self.port_allocator.shift_for(self.history, self.config.node_count)
            self.validate_configuration()

            if self.install_signal_handlers:
                self.listener.install()

            self._run_phase(RunPhase.BOOTSTRAPPING, self.bootstrap)
            self._run_phase(RunPhase.AWAITING_HEALTH, self.wait_healthy)
            self._run_phase(RunPhase.DISTRIBUTING_PLUGINS, self.distribute_plugins)
            self._run_phase(RunPhase.CREATING_BLOCKCHAINS, self.create_blockchains)
            self._run_phase(RunPhase.AWAITING_CHAIN_HEALTH, self.wait_healthy)

            self._transition(RunPhase.RUNNING)
            self.publish_endpoints()
            console.print("[bold]Network will run until you CTRL + C to exit...[/bold]")
            logger.info("Network will run until you CTRL + C to exit...")

            self.gate.wait()
            logger.info("Shutting down: %s", self.gate.reason)
            self._transition(RunPhase.SHUTTING_DOWN)
            manifest_status = "stopped"
            exit_code = EXIT_OK
            return exit_code

        except ShutdownRequested as exc:
            console.print(f"[yellow]Shutdown requested before the network was ready ({exc.reason}).[/yellow]")
            logger.info("Shutdown requested during %s: %s", self.phase.value, exc.reason)
            self._transition(RunPhase.FAILED)
            manifest_status = "aborted"
            manifest_error = exc.reason
            exit_code = EXIT_OK
            return exit_code
        except RunnerError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            self._transition(RunPhase.FAILED)
            manifest_status = "failed"
            manifest_error = str(exc)
            exit_code = EXIT_FAILURE
            return exit_code
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            self._transition(RunPhase.FAILED)
            manifest_status = "failed"
            manifest_error = str(exc)
            exit_code = EXIT_FAILURE
            return exit_code
        finally:
            self.cleanup()
            if self.phase == RunPhase.SHUTTING_DOWN:
                self._transition(RunPhase.STOPPED)
                console.print("[green]Network stopped.[/green]")
            self.manifest_service.finalize(manifest_status, error=manifest_error)
