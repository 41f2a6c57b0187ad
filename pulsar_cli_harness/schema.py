"""
Schema lifecycle checks for one topic.

    NO_SCHEMA --upload/extract--> UPLOADED --delete--> DELETED
        ^                                                 |
        +------------------ upload/extract ---------------+

`get` is valid in every state: it must return the descriptor while UPLOADED
and must fail with HTTP 404 otherwise. Uploading over an existing schema is
not supported and raises SchemaStateError without touching the cluster.
"""

import enum
import logging
from typing import Optional

from pulsar_cli_harness.assertions import expect_empty_output, expect_failure, expect_in
from pulsar_cli_harness.cluster import BrokerNode, ClusterHandle
from pulsar_cli_harness.errors import SchemaStateError
from pulsar_cli_harness.exec_result import ExecResult

logger = logging.getLogger(__name__)

NOT_FOUND = "Reason: HTTP 404 Not Found"

SCHEMA_TYPES = ("avro", "json")


class SchemaState(enum.Enum):
    NO_SCHEMA = "no-schema"
    UPLOADED = "uploaded"
    DELETED = "deleted"


class SchemaLifecycleVerifier:
    """Drives upload/get/delete for a topic and checks each transition"""

    def __init__(self, cluster: ClusterHandle, topic: str, node: Optional[BrokerNode] = None):
        self.topic = topic
        # pinned so every step observes the same broker's view of the metadata
        self.node = node or cluster.any()
        self.state = SchemaState.NO_SCHEMA

    def _require(self, operation: str, *allowed: SchemaState):
        if self.state not in allowed:
            raise SchemaStateError(
                f"cannot {operation} schema of {self.topic} in state {self.state.value}")

    def upload(self, schema_file: str) -> ExecResult:
        self._require("upload", SchemaState.NO_SCHEMA, SchemaState.DELETED)
        result = self.node.admin("schemas", "upload", self.topic, "-f", schema_file)
        expect_empty_output(result, what="schemas upload")
        self.state = SchemaState.UPLOADED
        logger.info("uploaded schema %s to %s", schema_file, self.topic)
        return result

    def extract(self, jar: str, schema_type: str, classname: str) -> ExecResult:
        """Extract a schema from a class packaged in a jar and bind it to the topic"""
        if schema_type not in SCHEMA_TYPES:
            raise ValueError(f"schema_type must be one of {SCHEMA_TYPES}, got {schema_type!r}")
        self._require("extract", SchemaState.NO_SCHEMA, SchemaState.DELETED)
        result = self.node.admin(
            "schemas", "extract",
            "--jar", jar,
            "--type", schema_type,
            "--classname", classname,
            self.topic,
        )
        self.state = SchemaState.UPLOADED
        logger.info("extracted %s schema from %s onto %s", schema_type, classname, self.topic)
        return result

    def get(self, expected_marker: str = '"type": "STRING"') -> ExecResult:
        if self.state is SchemaState.UPLOADED:
            result = self.node.admin("schemas", "get", self.topic)
            expect_in(expected_marker, result.stdout, what="schemas get stdout")
            return result

        result = self.node.admin("schemas", "get", self.topic, check=False)
        expect_failure(result, what=f"schemas get in state {self.state.value}")
        expect_in(NOT_FOUND, result.stderr, what="schemas get stderr")
        return result

    def delete(self) -> ExecResult:
        self._require("delete", SchemaState.UPLOADED)
        result = self.node.admin("schemas", "delete", self.topic)
        expect_empty_output(result, what="schemas delete")
        self.state = SchemaState.DELETED
        logger.info("deleted schema of %s", self.topic)
        return result
