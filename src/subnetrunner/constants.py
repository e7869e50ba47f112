"""Shared constants for the subnet runner."""

DIR_MODE = 0o777
PLUGIN_MODE = 0o755

RUNNER_ROOT_NAME = "universal-subnet-runner"
HISTORY_FILE_NAME = "config.json"
DEFAULT_CONFIG_FILE = ".subnetrunner.yml"

DEFAULT_VM_NAME = "subnetevm"
DEFAULT_PLUGIN_ID = "srEXiWaHuhNyGwPUi444Tu47ZEDwxTWrbQiuD7FmgSAQ6X7Dy"
DEFAULT_CHAIN_CONFIG = '{"warp-api-enabled": true}'
DEFAULT_RUNNER_ENDPOINT = "http://127.0.0.1:8081"

DEFAULT_NODE_COUNT = 5
DEFAULT_SUBNET_COUNT = 1
DEFAULT_HEALTHY_TIMEOUT = 120.0
DEFAULT_LOG_LEVEL = "INFO"

PORT_SHIFT_INCREMENT = 10
PORTS_PER_NODE = 2
BASE_HTTP_PORT = 9650
BASE_STAKING_PORT = 9651
MAX_PORT = 65535

LOCAL_NETWORK_ID = 12345
RPC_URL_TEMPLATE = "http://127.0.0.1:{port}/ext/bc/{chain_id}/rpc"

EXIT_OK = 0
EXIT_FAILURE = 1
