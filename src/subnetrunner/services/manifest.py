"""Run manifest generation service."""

import json
import os
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from subnetrunner.models import SubnetEndpoint


class ManifestService:
    """Collects run metadata and writes the run manifest JSON."""

    def __init__(self, manifest_file: str, logger):
        self.manifest_file = manifest_file
        self.logger = logger
        self.manifest: Dict[str, Any] = {
            "run_id": None,
            "status": "running",
            "started_at": None,
            "finished_at": None,
            "duration_seconds": None,
            "metadata": {},
            "network": {
                "network_id": None,
                "port_shift": None,
                "chain_ids": [],
            },
            "phases": [],
            "endpoints": [],
            "error": None,
        }

    def start_run(self, run_id: str, metadata: Dict[str, Any]):
        self.manifest["run_id"] = run_id
        self.manifest["status"] = "running"
        self.manifest["started_at"] = self._now()
        self.manifest["metadata"] = metadata
        self.write()

    def set_network(
        self,
        network_id: Optional[int] = None,
        port_shift: Optional[int] = None,
        chain_ids: Optional[List[str]] = None,
    ):
        network = self.manifest["network"]
        if network_id is not None:
            network["network_id"] = network_id
        if port_shift is not None:
            network["port_shift"] = port_shift
        if chain_ids is not None:
            network["chain_ids"] = list(chain_ids)
        self.write()

    def phase_started(self, phase: str):
        self.manifest["phases"].append(
            {
                "name": phase,
                "status": "running",
                "started_at": self._now(),
                "finished_at": None,
                "duration_seconds": None,
                "error": None,
            }
        )
        self.write()

    def phase_finished(self, phase: str, status: str, error: Optional[str] = None):
        for entry in reversed(self.manifest["phases"]):
            if entry["name"] == phase and entry["status"] == "running":
                entry["status"] = status
                entry["finished_at"] = self._now()
                entry["error"] = error
                started_at = datetime.fromisoformat(entry["started_at"])
                finished_at = datetime.fromisoformat(entry["finished_at"])
                entry["duration_seconds"] = (finished_at - started_at).total_seconds()
                break
        self.write()

    def set_endpoints(self, endpoints: List[SubnetEndpoint]):
        self.manifest["endpoints"] = [
            {
                "node": endpoint.node_name,
                "subnet": endpoint.subnet_index,
                "chain_id": endpoint.chain_id,
                "url": endpoint.url,
            }
            for endpoint in endpoints
        ]
        self.write()

    def finalize(self, status: str, error: Optional[str] = None):
        self.manifest["status"] = status
        self.manifest["finished_at"] = self._now()
        if self.manifest.get("started_at"):
            started_at = datetime.fromisoformat(self.manifest["started_at"])
            finished_at = datetime.fromisoformat(self.manifest["finished_at"])
            self.manifest["duration_seconds"] = (finished_at - started_at).total_seconds()
        self.manifest["error"] = error
        self.write()

    def write(self):
        directory = os.path.dirname(self.manifest_file) or "."
        try:
            os.makedirs(directory, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(prefix="run-manifest-", suffix=".json", dir=directory)
        except OSError as exc:
            self.logger.warning("Could not write manifest file '%s': %s", self.manifest_file, exc)
            return

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as file_obj:
                json.dump(self.manifest, file_obj, indent=2, sort_keys=True)
                file_obj.write("\n")
            os.replace(temp_path, self.manifest_file)
        except OSError as exc:
            self.logger.warning("Could not write manifest file '%s': %s", self.manifest_file, exc)
            try:
                os.remove(temp_path)
            except OSError:
                pass

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()
