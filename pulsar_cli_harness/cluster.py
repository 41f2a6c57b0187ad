"""
Handle over the broker nodes of a running cluster.

The handle is created once per suite and shared by every scenario. It holds
no locks: scenarios stay out of each other's way by naming their tenants,
namespaces, topics and subscriptions with unique_name().

Node selection
--------------
any() follows HarnessConfig.node_selection:
    fixed   always the first broker, so every any() call inside a scenario
            reaches the same physical node (default)
    random  a broker drawn from a seeded RNG on every call
all() returns every broker in configuration order.
"""

import logging
import random
import time
import uuid
from typing import List, Optional

import requests

from pulsar_cli_harness.assertions import expect_failure
from pulsar_cli_harness.config import HarnessConfig
from pulsar_cli_harness.errors import HarnessError
from pulsar_cli_harness.exec_result import ExecResult
from pulsar_cli_harness.runner import CommandRunner

logger = logging.getLogger(__name__)

HEALTH_PATH = "/admin/v2/brokers/health"


def unique_name(prefix: str = "", length: int = 8) -> str:
    """Collision-free resource name: prefix plus `length` random hex digits"""
    return f"{prefix}{uuid.uuid4().hex[:length]}"


class BrokerNode:
    """One broker container able to run admin and client commands"""

    def __init__(self, name: str, runner: CommandRunner, admin_script: str, client_script: str):
        self.name = name
        self.runner = runner
        self.admin_script = admin_script
        self.client_script = client_script

    def exec_cmd(self, *argv, check: bool = True) -> ExecResult:
        if check:
            return self.runner.execute(self.name, argv)
        return self.runner.run(self.name, argv)

    def admin(self, *args, check: bool = True) -> ExecResult:
        return self.exec_cmd(self.admin_script, *args, check=check)

    def client(self, *args, check: bool = True) -> ExecResult:
        return self.exec_cmd(self.client_script, *args, check=check)

    def __repr__(self):
        return f"BrokerNode({self.name!r})"


class ClusterHandle:
    """Process-wide view of the cluster's broker nodes"""

    def __init__(self, config: HarnessConfig, runner: Optional[CommandRunner] = None):
        self.config = config
        self.runner = runner or CommandRunner(config.docker_binary, config.command_timeout)
        self._brokers = tuple(
            BrokerNode(name, self.runner, config.admin_script, config.client_script)
            for name in config.broker_nodes
        )
        self._rng = random.Random(config.selection_seed)

    @property
    def cluster_name(self) -> str:
        return self.config.cluster_name

    @property
    def service_url(self) -> str:
        return self.config.service_url

    def any(self) -> BrokerNode:
        if self.config.node_selection == "random":
            return self._rng.choice(self._brokers)
        return self._brokers[0]

    def all(self) -> List[BrokerNode]:
        return list(self._brokers)

    def run_admin_command(self, *args, node: Optional[BrokerNode] = None,
                          check: bool = True) -> ExecResult:
        return (node or self.any()).admin(*args, check=check)

    def run_client_command(self, *args, node: Optional[BrokerNode] = None,
                           check: bool = True) -> ExecResult:
        return (node or self.any()).client(*args, check=check)

    def expect_admin_failure(self, *args, node: Optional[BrokerNode] = None) -> ExecResult:
        """Run an admin command that must fail and return its result"""
        result = self.run_admin_command(*args, node=node, check=False)
        return expect_failure(result, what=f"admin {' '.join(args)}")

    def expect_client_failure(self, *args, node: Optional[BrokerNode] = None) -> ExecResult:
        """Run a client command that must fail and return its result"""
        result = self.run_client_command(*args, node=node, check=False)
        return expect_failure(result, what=f"client {' '.join(args)}")

    def create_namespace(self, namespace: Optional[str] = None, tenant: str = "public",
                         node: Optional[BrokerNode] = None) -> str:
        """Create tenant/namespace and return it; namespace defaults to a unique_name()"""
        full_name = f"{tenant}/{namespace or unique_name('namespace-')}"
        logger.info("creating namespace %s", full_name)
        self.run_admin_command("namespaces", "create", full_name, node=node)
        return full_name

    def wait_until_ready(self, timeout: float = 60.0, interval: float = 1.0) -> None:
        """Poll the broker health endpoint until it answers 200"""
        url = self.config.http_url.rstrip("/") + HEALTH_PATH
        logger.info("waiting for cluster at %s", url)
        deadline = time.monotonic() + timeout
        last_error = None
        while True:
            try:
                response = requests.get(url, timeout=interval)
                if response.status_code == 200:
                    logger.info("cluster healthy")
                    return
                last_error = f"HTTP {response.status_code}"
            except requests.RequestException as e:
                last_error = str(e)
            if time.monotonic() >= deadline:
                raise HarnessError(
                    f"cluster not healthy after {timeout}s at {url}: {last_error}")
            time.sleep(interval)
