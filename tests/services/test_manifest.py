import json

from subnetrunner.models import SubnetEndpoint
from subnetrunner.services.manifest import ManifestService


class DummyLogger:
    def warning(self, *_args, **_kwargs):
        return None


def test_manifest_service_writes_run_metadata(tmp_path):
    manifest_file = tmp_path / "run-manifest.json"
    service = ManifestService(str(manifest_file), logger=DummyLogger())

    service.start_run("run-123", {"node_count": 5, "vm_name": "subnetevm"})
    service.set_network(network_id=12345, port_shift=10)
    service.phase_started("bootstrapping")
    service.phase_finished("bootstrapping", "success")
    service.set_network(chain_ids=["chainA"])
    service.set_endpoints(
        [SubnetEndpoint("node1", 0, "chainA", "http://127.0.0.1:9660/ext/bc/chainA/rpc")]
    )
    service.finalize("stopped")

    data = json.loads(manifest_file.read_text(encoding="utf-8"))

    assert data["run_id"] == "run-123"
    assert data["status"] == "stopped"
    assert data["network"] == {"network_id": 12345, "port_shift": 10, "chain_ids": ["chainA"]}
    assert data["phases"][0]["name"] == "bootstrapping"
    assert data["phases"][0]["status"] == "success"
    assert data["endpoints"][0]["url"] == "http://127.0.0.1:9660/ext/bc/chainA/rpc"
