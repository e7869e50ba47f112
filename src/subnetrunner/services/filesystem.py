"""Filesystem helpers for network working directories."""

import logging
import os
import shutil
import sys

from rich.console import Console

from subnetrunner.errors import BootstrapError
from subnetrunner.errors_catalog import actionable_error


class FileSystemService:
    """Owns the on-disk layout of one network run."""

    def __init__(self, logger: logging.Logger, console: Console):
        self.logger = logger
        self.console = console

    def set_permissions(self, path: str, mode: int):
        if sys.platform == "win32":
            return

        try:
            os.chmod(path, mode)
        except OSError as exc:
            self.logger.warning("Could not set permissions on %s: %s", path, exc)

    def reset_work_dir(self, path: str, mode: int):
        """Leave ``path`` as an empty directory.

        Node data left behind by an earlier run would be picked up by the new
        nodes, so a directory that cannot be emptied aborts the run.
        """
        if os.path.lexists(path):
            try:
                if os.path.isdir(path) and not os.path.islink(path):
                    shutil.rmtree(path)
                else:
                    os.remove(path)
            except OSError as exc:
                raise BootstrapError(actionable_error("work_dir_stale", path=path, error=exc)) from exc
            self.console.print(f"[yellow]Discarded stale data in {path}[/yellow]")
            self.logger.debug("Removed stale working directory %s", path)

        try:
            os.makedirs(path)
        except OSError as exc:
            raise BootstrapError(actionable_error("work_dir_stale", path=path, error=exc)) from exc
        self.set_permissions(path, mode)
