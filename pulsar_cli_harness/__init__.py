"""
Integration-test harness for the Pulsar command-line tools.

Runs admin and client CLI commands inside broker containers, asserts on their
exit code and output streams, and checks typed produce/consume round trips
through the Python client.
"""

from pulsar_cli_harness.cluster import BrokerNode, ClusterHandle, unique_name
from pulsar_cli_harness.config import HarnessConfig
from pulsar_cli_harness.errors import (
    CommandFailure,
    CommandLaunchError,
    CommandTimeout,
    HarnessError,
    ReceiveTimeout,
    SchemaStateError,
    VerificationError,
)
from pulsar_cli_harness.exec_result import ExecResult
from pulsar_cli_harness.runner import CommandRunner

__version__ = "0.1.0"

__all__ = [
    "BrokerNode",
    "ClusterHandle",
    "CommandFailure",
    "CommandLaunchError",
    "CommandRunner",
    "CommandTimeout",
    "ExecResult",
    "HarnessConfig",
    "HarnessError",
    "ReceiveTimeout",
    "SchemaStateError",
    "VerificationError",
    "unique_name",
]
