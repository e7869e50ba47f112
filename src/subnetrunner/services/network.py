"""Client for the avalanche-network-runner control server.

The runner server supervises the node processes; this module only speaks to
its REST gateway. Every method maps onto one ``/v1/control/*`` call.
"""

import json
import os
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import requests

from subnetrunner.constants import LOCAL_NETWORK_ID
from subnetrunner.errors import RunnerError
from subnetrunner.errors_catalog import actionable_error
from subnetrunner.models import BlockchainSpec, NodeDescriptor


class NetworkRunnerError(RunnerError):
    """The runner server rejected a request or could not be reached."""


class NetworkRunnerClient:
    """Starts local networks through the runner server."""

    def __init__(self, endpoint: str, logger, requests_module=requests, timeout: float = 30.0):
        self.endpoint = endpoint.rstrip("/")
        self.logger = logger
        self.requests = requests_module
        self.timeout = timeout

    def call(self, method: str, payload: Optional[Dict[str, Any]] = None, timeout=None) -> Dict:
        url = f"{self.endpoint}/v1/control/{method}"
        self.logger.debug("POST %s", url)
        try:
            response = self.requests.post(
                url,
                json=payload or {},
                timeout=timeout if timeout is not None else self.timeout,
            )
        except self.requests.RequestException as exc:
            raise NetworkRunnerError(
                actionable_error("runner_unreachable", endpoint=self.endpoint, error=exc)
            ) from exc

        if response.status_code >= 400:
            detail = ""
            try:
                detail = response.json().get("message", "")
            except ValueError:
                detail = (response.text or "").strip()
            raise NetworkRunnerError(
                f"Runner call '{method}' failed ({response.status_code}): {detail or 'no details'}"
            )

        try:
            return response.json()
        except ValueError as exc:
            raise NetworkRunnerError(f"Runner call '{method}' returned invalid JSON.") from exc

    def start(
        self,
        exec_path: str,
        work_dir: str,
        node_configs: Dict[str, Dict[str, Any]],
        log_level: str,
    ) -> "RunnerNetwork":
        payload = {
            "execPath": exec_path,
            "numNodes": len(node_configs),
            "rootDataDir": work_dir,
            "logLevel": log_level,
            "globalNodeConfig": json.dumps({"log-level": log_level}),
            "customNodeConfigs": {
                name: json.dumps(node_config) for name, node_config in node_configs.items()
            },
        }
        response = self.call("start", payload)
        return RunnerNetwork(self, response.get("clusterInfo") or {}, work_dir)


class RunnerNetwork:
    """Handle to one running network. ``stop`` may be called once."""

    def __init__(self, client: NetworkRunnerClient, cluster_info: Dict[str, Any], work_dir: str):
        self.client = client
        self.cluster_info = cluster_info
        self.work_dir = work_dir

    def _refresh(self) -> Dict[str, Any]:
        response = self.client.call("status")
        self.cluster_info = response.get("clusterInfo") or {}
        return self.cluster_info

    def stop(self):
        self.client.call("stop")

    def is_healthy(self, timeout: Optional[float] = None) -> bool:
        response = self.client.call("health", timeout=timeout)
        cluster_info = response.get("clusterInfo") or {}
        if cluster_info:
            self.cluster_info = cluster_info
        return bool(cluster_info.get("healthy"))

    def network_id(self) -> int:
        info = self.cluster_info or self._refresh()
        return int(info.get("networkId") or LOCAL_NETWORK_ID)

    def node_names(self) -> List[str]:
        info = self._refresh()
        return list(info.get("nodeNames") or [])

    def get_node(self, name: str) -> NodeDescriptor:
        node_info = (self.cluster_info.get("nodeInfos") or {}).get(name)
        if node_info is None:
            node_info = (self._refresh().get("nodeInfos") or {}).get(name)
        if node_info is None:
            raise NetworkRunnerError(f"Unknown node: {name}")

        port = urlparse(node_info.get("uri", "")).port
        if port is None:
            raise NetworkRunnerError(f"Node {name} did not report an API uri.")

        root_dir = self.cluster_info.get("rootDataDir") or self.work_dir
        return NodeDescriptor(name=name, data_dir=os.path.join(root_dir, name), api_port=port)

    def create_blockchains(self, specs: List[BlockchainSpec]) -> List[str]:
        payload = {
            "blockchainSpecs": [
                {
                    "vmName": spec.vm_name,
                    "genesis": spec.genesis.decode("utf-8"),
                    "chainConfig": spec.chain_config.decode("utf-8"),
                    "subnetSpec": {"participants": list(spec.participants)},
                }
                for spec in specs
            ]
        }
        response = self.client.call("createblockchains", payload)
        cluster_info = response.get("clusterInfo")
        if cluster_info:
            self.cluster_info = cluster_info
        return list(response.get("chainIds") or [])
