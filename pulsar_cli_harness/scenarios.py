"""
CLI scenarios.

Each check_* function validates one control-plane invariant against a live
cluster. A check returns None when the invariant holds and raises
VerificationError, CommandFailure or another HarnessError when it does not.
Scenarios run their steps sequentially and name every resource they create
with unique_name(), so separate scenarios may run concurrently.
"""

import logging
from collections import OrderedDict

from pulsar_cli_harness.assertions import expect_empty_output, expect_in, expect_not_in
from pulsar_cli_harness.cluster import ClusterHandle, unique_name
from pulsar_cli_harness.config import HarnessConfig
from pulsar_cli_harness.errors import VerificationError
from pulsar_cli_harness.records import schema_for
from pulsar_cli_harness.schema import SchemaLifecycleVerifier
from pulsar_cli_harness.session import ProduceConsumeVerifier

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "public/default"

TERMINATED_MARKER = "Topic succesfully terminated at"
ALREADY_TERMINATED = "Topic was already terminated"
PRODUCED_ONE = "1 messages successfully produced"
UNLIMITED_TIME = '"retentionTimeInMinutes" : -1'
UNLIMITED_SIZE = '"retentionSizeInMB" : -1'
NOT_IMPLEMENTED = "HTTP 501 Not Implemented"


def persistent_topic(name: str, namespace: str = DEFAULT_NAMESPACE) -> str:
    return f"persistent://{namespace}/{name}"


def check_deprecated_commands(cluster: ClusterHandle, config: HarnessConfig):
    """`properties` still works as an alias of `tenants`, with a warning"""
    tenant = unique_name("test-deprecated-commands-")
    node = cluster.any()

    result = cluster.run_admin_command("--help", node=node)
    if not result.stdout:
        raise VerificationError("admin --help printed nothing")
    expect_not_in("Usage: properties ", result.stdout, what="admin --help stdout")

    result = cluster.run_admin_command(
        "properties", "create", tenant,
        "--allowed-clusters", cluster.cluster_name,
        "--admin-roles", "admin",
        node=node,
    )
    expect_in("deprecated", result.stderr, what="properties create stderr")

    result = cluster.run_admin_command("properties", "list", node=node)
    expect_in(tenant, result.stdout, what="properties list stdout")
    result = cluster.run_admin_command("tenants", "list", node=node)
    expect_in(tenant, result.stdout, what="tenants list stdout")


def check_create_subscription_on_all_brokers(cluster: ClusterHandle, config: HarnessConfig):
    """create-subscription succeeds silently on every broker"""
    topic = persistent_topic(unique_name("test-create-subscription-"))
    for i, node in enumerate(cluster.all()):
        result = node.admin(
            "topics", "create-subscription", topic,
            "--subscription", f"subscription-{i}",
        )
        expect_empty_output(result, what=f"create-subscription on {node.name}")


def check_topic_termination(cluster: ClusterHandle, config: HarnessConfig):
    """A terminated topic rejects every later produce"""
    topic = persistent_topic(unique_name("test-topic-termination-"))
    node = cluster.any()

    cluster.run_admin_command("topics", "create", topic, node=node)
    result = cluster.run_client_command(
        "produce", "-m", '"test topic termination"', "-n", "1", topic, node=node)
    expect_in(PRODUCED_ONE, result.stdout, what="produce stdout")

    result = cluster.run_admin_command("topics", "terminate", topic, node=node)
    expect_in(TERMINATED_MARKER, result.stdout, what="terminate stdout")

    result = cluster.expect_client_failure(
        "produce", "-m", '"test topic termination"', "-n", "1", topic, node=node)
    expect_in(ALREADY_TERMINATED, result.stdout, what="produce-after-terminate stdout")


def check_schema_cli(cluster: ClusterHandle, config: HarnessConfig):
    """upload, get, delete, then get must 404"""
    topic = persistent_topic(unique_name("test-schema-cli-"))
    node = cluster.any()

    result = cluster.run_client_command(
        "produce", "-m", '"test topic schema"', "-n", "1", topic, node=node)
    expect_in(PRODUCED_ONE, result.stdout, what="produce stdout")

    schemas = SchemaLifecycleVerifier(cluster, topic, node=node)
    schemas.upload(config.schema_example_file)
    schemas.get('"type": "STRING"')
    schemas.delete()
    schemas.get()


def check_infinite_retention(cluster: ClusterHandle, config: HarnessConfig):
    """-1/-1 retention reads back as -1/-1"""
    node = cluster.any()
    namespace = cluster.create_namespace(unique_name("get-and-set-retention-"), node=node)

    result = cluster.run_admin_command(
        "namespaces", "set-retention", namespace,
        "--size", "-1",
        "--time", "-1",
        node=node,
    )
    expect_empty_output(result, what="set-retention")

    result = cluster.run_admin_command("namespaces", "get-retention", namespace, node=node)
    expect_in(UNLIMITED_TIME, result.stdout, what="get-retention stdout")
    expect_in(UNLIMITED_SIZE, result.stdout, what="get-retention stdout")


def check_grant_permission_authorization_disabled(cluster: ClusterHandle, config: HarnessConfig):
    """grant-permission is refused while authorization is off"""
    node = cluster.any()
    namespace = cluster.create_namespace(unique_name("grant-permissions-"), node=node)

    result = cluster.expect_admin_failure(
        "namespaces", "grant-permission", namespace,
        "--actions", "produce",
        "--role", "test-role",
        node=node,
    )
    expect_in(NOT_IMPLEMENTED, result.stderr, what="grant-permission stderr")


def _check_extracted_schema(cluster: ClusterHandle, config: HarnessConfig, schema_type: str):
    topic = persistent_topic(unique_name(f"pojo-{schema_type}-"))
    SchemaLifecycleVerifier(cluster, topic).extract(
        config.examples_jar, schema_type, config.tick_classname)

    verifier = ProduceConsumeVerifier(cluster.service_url, config.receive_timeout)
    verifier.verify_round_trip(topic + "-message", schema_for(schema_type), schema_type)


def check_extracted_schema_avro(cluster: ClusterHandle, config: HarnessConfig):
    """Avro schema extracted from a jar, then a typed round trip"""
    _check_extracted_schema(cluster, config, "avro")


def check_extracted_schema_json(cluster: ClusterHandle, config: HarnessConfig):
    """JSON schema extracted from a jar, then a typed round trip"""
    _check_extracted_schema(cluster, config, "json")


SCENARIOS = OrderedDict([
    ("deprecated-commands", check_deprecated_commands),
    ("create-subscription", check_create_subscription_on_all_brokers),
    ("topic-termination", check_topic_termination),
    ("schema-cli", check_schema_cli),
    ("infinite-retention", check_infinite_retention),
    ("grant-permission", check_grant_permission_authorization_disabled),
    ("schema-extract-avro", check_extracted_schema_avro),
    ("schema-extract-json", check_extracted_schema_json),
])
