"""VM plugin distribution to node data directories."""

import os
import shutil
import stat
from typing import Iterable

from subnetrunner.constants import PLUGIN_MODE
from subnetrunner.errors import ConfigurationError
from subnetrunner.errors_catalog import actionable_error
from subnetrunner.models import NodeDescriptor


class PluginDistributor:
    """Copies the VM plugin binary into every node's plugin folder."""

    def __init__(self, logger, console):
        self.logger = logger
        self.console = console

    def source_path(self, binary_path: str, plugin_id: str) -> str:
        return os.path.join(binary_path, "plugins", plugin_id)

    def validate_source(self, src: str):
        try:
            source_stat = os.stat(src)
        except FileNotFoundError as exc:
            raise ConfigurationError(actionable_error("plugin_not_found", path=src)) from exc
        except OSError as exc:
            raise ConfigurationError(f"Could not inspect VM plugin {src}: {exc}") from exc

        if not stat.S_ISREG(source_stat.st_mode):
            raise ConfigurationError(actionable_error("plugin_not_regular", path=src))

    def copy_plugin(self, src: str, dst: str) -> int:
        self.validate_source(src)
        os.makedirs(os.path.dirname(dst), exist_ok=True)

        try:
            shutil.copyfile(src, dst)
            os.chmod(dst, PLUGIN_MODE)
        except OSError as exc:
            if os.path.isfile(dst):
                try:
                    os.remove(dst)
                except OSError:
                    pass
            raise ConfigurationError(f"Failed to copy VM plugin to {dst}: {exc}") from exc

        return os.path.getsize(dst)

    def distribute(self, binary_path: str, plugin_id: str, nodes: Iterable[NodeDescriptor]):
        src = self.source_path(binary_path, plugin_id)
        self.validate_source(src)

        self.console.print(f"[blue]Installing VM plugin {plugin_id}...[/blue]")
        for node in nodes:
            dst = os.path.join(node.data_dir, "plugins", plugin_id)
            size = self.copy_plugin(src, dst)
            self.logger.debug("Copied %s bytes of plugin to %s", size, dst)
        self.console.print("[green]VM plugin installed on every node.[/green]")
