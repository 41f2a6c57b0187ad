"""
Shared fixtures for the harness tests.

FakePulsarCli stands in for `docker exec <broker> pulsar-admin|pulsar-client`
and keeps just enough broker state (tenants, namespaces, topics, schemas) to
answer the way the real tools do. FakePulsarClient stands in for
pulsar.Client with an in-memory queue per topic.
"""

from collections import defaultdict, deque

import pulsar
import pytest

from pulsar_cli_harness.cluster import ClusterHandle
from pulsar_cli_harness.config import HarnessConfig
from pulsar_cli_harness.exec_result import ExecResult
from pulsar_cli_harness.runner import CommandRunner

ADMIN = "/pulsar/bin/pulsar-admin"
CLIENT = "/pulsar/bin/pulsar-client"

HELP_TEXT = """Usage: pulsar-admin [options] [command] [command options]
  Commands:
    tenants      Operations about tenants
    namespaces   Operations about namespaces
    topics       Operations on persistent topics
    schemas      Operations about schemas
"""

STRING_SCHEMA = """{
  "version": 0,
  "schemaInfo": {
    "name": "test-schema-cli",
    "schema": "",
    "type": "STRING",
    "properties": {}
  }
}"""


def ok(stdout="", stderr=""):
    return ExecResult(0, stdout, stderr)


def fail(stderr="", stdout="", code=1):
    return ExecResult(code, stdout, stderr)


def http_error(code, phrase):
    return fail(f"{code} {phrase}\n\nReason: HTTP {code} {phrase}\n")


class FakePulsarCli(CommandRunner):
    """Scripted admin/client CLI with in-memory cluster state"""

    def __init__(self, authorization_enabled=False, enforce_termination=True,
                 schema_survives_delete=False, retention_override=None,
                 noisy_nodes=()):
        super().__init__()
        self.calls = []
        self.tenants = {"public", "pulsar"}
        self.namespaces = {"public/default"}
        self.retention = {}
        self.topics = set()
        self.terminated = set()
        self.subscriptions = defaultdict(set)
        self.schemas = {}
        self.authorization_enabled = authorization_enabled
        self.enforce_termination = enforce_termination
        self.schema_survives_delete = schema_survives_delete
        self.retention_override = retention_override
        self.noisy_nodes = set(noisy_nodes)

    def run(self, node, argv):
        argv = [str(arg) for arg in argv]
        self.calls.append((node, argv))
        script, args = argv[0], argv[1:]
        if script == ADMIN:
            return self._admin(node, args)
        if script == CLIENT:
            return self._client(args)
        return fail(f"exec: {script}: not found", code=127)

    def commands(self):
        """The argv of every call, without the script path"""
        return [argv[1:] for _, argv in self.calls]

    def _admin(self, node, args):
        if args == ["--help"]:
            return ok(HELP_TEXT)
        resource, verb, rest = args[0], args[1], args[2:]

        if resource in ("tenants", "properties"):
            warning = ""
            if resource == "properties":
                warning = "WARNING: The properties subcommand is deprecated. Use tenants instead.\n"
            if verb == "create":
                self.tenants.add(rest[0])
                return ok(stderr=warning)
            if verb == "list":
                return ok("\n".join(sorted(self.tenants)) + "\n", warning)

        if resource == "namespaces":
            namespace = rest[0]
            if verb == "create":
                if "/" not in namespace:
                    return fail("Invalid namespace name\n")
                self.namespaces.add(namespace)
                return ok()
            if namespace not in self.namespaces:
                return http_error(404, "Not Found")
            if verb == "set-retention":
                options = dict(zip(rest[1::2], rest[2::2]))
                self.retention[namespace] = (int(options["--time"]), int(options["--size"]))
                return ok()
            if verb == "get-retention":
                time_value, size_value = self.retention_override or self.retention[namespace]
                return ok('{\n  "retentionTimeInMinutes" : %d,\n  "retentionSizeInMB" : %d\n}\n'
                          % (time_value, size_value))
            if verb == "grant-permission":
                if not self.authorization_enabled:
                    return http_error(501, "Not Implemented")
                return ok()

        if resource == "topics":
            topic = rest[0]
            if verb == "create":
                self.topics.add(topic)
                return ok()
            if verb == "create-subscription":
                self.subscriptions[topic].add(rest[rest.index("--subscription") + 1])
                if node in self.noisy_nodes:
                    return ok("Created subscription\n")
                return ok()
            if verb == "terminate":
                self.terminated.add(topic)
                return ok("Topic succesfully terminated at 3:0:-1\n")

        if resource == "schemas":
            topic = rest[-1] if verb == "extract" else rest[0]
            if verb in ("upload", "extract"):
                self.schemas[topic] = STRING_SCHEMA
                return ok()
            if verb == "get":
                if topic not in self.schemas:
                    return http_error(404, "Not Found")
                return ok(self.schemas[topic] + "\n")
            if verb == "delete":
                if topic not in self.schemas:
                    return http_error(404, "Not Found")
                if not self.schema_survives_delete:
                    del self.schemas[topic]
                return ok()

        return fail(f"Expected a command, got {' '.join(args)}\n")

    def _client(self, args):
        if args[0] != "produce":
            return fail(f"Expected a command, got {args[0]}\n")
        topic = args[-1]
        count = int(args[args.index("-n") + 1])
        if self.enforce_termination and topic in self.terminated:
            return fail(
                stdout="Error while producing messages\n"
                       "org.apache.pulsar.client.api.PulsarClientException$TopicTerminatedException: "
                       "Topic was already terminated\n"
                       "0 messages successfully produced\n")
        self.topics.add(topic)
        return ok(f"{count} messages successfully produced\n")


class FakeMessage:
    def __init__(self, value):
        self._value = value

    def value(self):
        return self._value


class FakeProducer:
    def __init__(self, queue):
        self.queue = queue
        self.sent = []
        self.closed = False

    def send(self, record):
        self.sent.append(record)
        self.queue.append(record)

    def close(self):
        self.closed = True


class FakeConsumer:
    def __init__(self, queue, deliver=None):
        self.queue = queue
        self.deliver = deliver
        self.acknowledged = []
        self.timeouts = []
        self.closed = False

    def receive(self, timeout_millis=None):
        self.timeouts.append(timeout_millis)
        if self.deliver is not None:
            self.deliver(self.queue)
        if not self.queue:
            raise pulsar.Timeout("Pulsar error: TimeOut")
        return FakeMessage(self.queue.popleft())

    def acknowledge(self, message):
        self.acknowledged.append(message)

    def close(self):
        self.closed = True


class FakePulsarClient:
    """In-memory client: one FIFO queue per topic"""

    instances = []

    def __init__(self, service_url, fail_subscribe=False, deliver=None):
        self.service_url = service_url
        self.queues = defaultdict(deque)
        self.producers = []
        self.consumers = []
        self.fail_subscribe = fail_subscribe
        self.deliver = deliver
        self.closed = False
        FakePulsarClient.instances.append(self)

    def create_producer(self, topic, schema=None):
        producer = FakeProducer(self.queues[topic])
        producer.schema = schema
        self.producers.append(producer)
        return producer

    def subscribe(self, topic, subscription_name, schema=None):
        if self.fail_subscribe:
            raise RuntimeError("Pulsar error: ConnectError")
        consumer = FakeConsumer(self.queues[topic], self.deliver)
        consumer.subscription = subscription_name
        consumer.schema = schema
        self.consumers.append(consumer)
        return consumer

    def close(self):
        self.closed = True


@pytest.fixture
def config():
    return HarnessConfig(broker_nodes=["broker-0", "broker-1", "broker-2"], cluster_name="test")


@pytest.fixture
def fake_cli():
    return FakePulsarCli()


@pytest.fixture
def cluster(config, fake_cli):
    return ClusterHandle(config, runner=fake_cli)


@pytest.fixture
def make_cluster(config):
    """Build a cluster over a FakePulsarCli with non-default behaviour"""
    def _make(**behaviour):
        cli = FakePulsarCli(**behaviour)
        return ClusterHandle(config, runner=cli), cli
    return _make


@pytest.fixture
def fake_pulsar(monkeypatch):
    """Route pulsar.Client to FakePulsarClient"""
    FakePulsarClient.instances = []
    monkeypatch.setattr(pulsar, "Client", FakePulsarClient)
    return FakePulsarClient
