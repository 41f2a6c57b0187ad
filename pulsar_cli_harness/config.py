"""
Harness configuration.

Values come from PULSAR_HARNESS_* environment variables, falling back to the
layout of the standard integration-test cluster (broker containers named
pulsar-broker-N, scripts under /pulsar/bin).
"""

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

NODE_SELECTION_POLICIES = ("fixed", "random")

ENV_PREFIX = "PULSAR_HARNESS_"


@dataclass
class HarnessConfig:
    """Where the cluster lives and how to talk to it"""
    broker_nodes: List[str] = field(
        default_factory=lambda: ["pulsar-broker-0", "pulsar-broker-1"])
    cluster_name: str = "test"
    service_url: str = "pulsar://localhost:6650"
    http_url: str = "http://localhost:8080"
    admin_script: str = "/pulsar/bin/pulsar-admin"
    client_script: str = "/pulsar/bin/pulsar-client"
    docker_binary: str = "docker"
    command_timeout: float = 120.0
    receive_timeout: float = 5.0
    node_selection: str = "fixed"
    selection_seed: Optional[int] = None
    schema_example_file: str = "/pulsar/conf/schema_example.conf"
    examples_jar: str = "/pulsar/examples/api-examples.jar"
    tick_classname: str = "org.apache.pulsar.functions.api.examples.pojo.Tick"

    def __post_init__(self):
        if not self.broker_nodes:
            raise ValueError("at least one broker node is required")
        if self.node_selection not in NODE_SELECTION_POLICIES:
            raise ValueError(
                f"node_selection must be one of {NODE_SELECTION_POLICIES}, "
                f"got {self.node_selection!r}"
            )
        if self.command_timeout <= 0 or self.receive_timeout <= 0:
            raise ValueError("timeouts must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "HarnessConfig":
        """Build a config from the environment, keeping defaults for unset keys"""
        env = os.environ if environ is None else environ

        def get(name):
            value = env.get(ENV_PREFIX + name, "").strip()
            return value or None

        kwargs = {}
        brokers = get("BROKERS")
        if brokers:
            kwargs["broker_nodes"] = [b.strip() for b in brokers.split(",") if b.strip()]

        string_keys = {
            "CLUSTER": "cluster_name",
            "SERVICE_URL": "service_url",
            "HTTP_URL": "http_url",
            "ADMIN_SCRIPT": "admin_script",
            "CLIENT_SCRIPT": "client_script",
            "DOCKER": "docker_binary",
            "NODE_SELECTION": "node_selection",
            "SCHEMA_FILE": "schema_example_file",
            "EXAMPLES_JAR": "examples_jar",
            "TICK_CLASS": "tick_classname",
        }
        for name, attr in string_keys.items():
            value = get(name)
            if value is not None:
                kwargs[attr] = value

        for name, attr in (("COMMAND_TIMEOUT", "command_timeout"),
                           ("RECEIVE_TIMEOUT", "receive_timeout")):
            value = get(name)
            if value is not None:
                try:
                    kwargs[attr] = float(value)
                except ValueError:
                    raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {value!r}")

        seed = get("SELECTION_SEED")
        if seed is not None:
            try:
                kwargs["selection_seed"] = int(seed)
            except ValueError:
                raise ValueError(f"{ENV_PREFIX}SELECTION_SEED must be an integer, got {seed!r}")

        return cls(**kwargs)
