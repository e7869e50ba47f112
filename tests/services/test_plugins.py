import os
import stat
import sys

import pytest

from subnetrunner.errors import ConfigurationError
from subnetrunner.models import NodeDescriptor
from subnetrunner.services.plugins import PluginDistributor


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


def _distributor():
    return PluginDistributor(logger=DummyLogger(), console=DummyConsole())


def _binary_dir(tmp_path, plugin_id="X", payload=b"\x7fELF plugin"):
    plugins = tmp_path / "avalanchego" / "plugins"
    plugins.mkdir(parents=True)
    plugin = plugins / plugin_id
    plugin.write_bytes(payload)
    plugin.chmod(0o644)
    return tmp_path / "avalanchego"


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
def test_copy_plugin_makes_destination_executable(tmp_path):
    binary_dir = _binary_dir(tmp_path)
    destination = tmp_path / "node1" / "plugins" / "X"

    size = _distributor().copy_plugin(str(binary_dir / "plugins" / "X"), str(destination))

    assert size == len(b"\x7fELF plugin")
    assert destination.read_bytes() == b"\x7fELF plugin"
    assert os.stat(destination).st_mode & stat.S_IXUSR
    assert os.access(destination, os.X_OK)


def test_copy_plugin_missing_source_creates_nothing(tmp_path):
    destination = tmp_path / "node1" / "plugins" / "X"

    with pytest.raises(ConfigurationError, match="VM plugin not found"):
        _distributor().copy_plugin(str(tmp_path / "missing"), str(destination))

    assert not destination.exists()


def test_copy_plugin_rejects_directory_source(tmp_path):
    source = tmp_path / "plugins" / "X"
    source.mkdir(parents=True)
    destination = tmp_path / "node1" / "plugins" / "X"

    with pytest.raises(ConfigurationError, match="not a regular file"):
        _distributor().copy_plugin(str(source), str(destination))

    assert not destination.exists()


def test_distribute_copies_into_every_node_data_dir(tmp_path):
    binary_dir = _binary_dir(tmp_path)
    nodes = [
        NodeDescriptor(name=f"node{index}", data_dir=str(tmp_path / "nodes" / f"node{index}"), api_port=9650)
        for index in range(1, 4)
    ]

    _distributor().distribute(str(binary_dir), "X", nodes)

    for node in nodes:
        assert (tmp_path / "nodes" / node.name / "plugins" / "X").is_file()


def test_distribute_fails_before_copying_when_source_missing(tmp_path):
    (tmp_path / "avalanchego" / "plugins").mkdir(parents=True)
    nodes = [NodeDescriptor(name="node1", data_dir=str(tmp_path / "nodes" / "node1"), api_port=9650)]

    with pytest.raises(ConfigurationError):
        _distributor().distribute(str(tmp_path / "avalanchego"), "X", nodes)

    assert not (tmp_path / "nodes").exists()
