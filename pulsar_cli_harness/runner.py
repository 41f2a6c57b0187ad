"""
Runs command-line invocations inside broker containers.

Each call is a blocking `docker exec` bounded by the configured timeout.
stdout and stderr are captured separately so substring checks on either one
are deterministic.
"""

import logging
import subprocess
from typing import Sequence

from pulsar_cli_harness.errors import CommandLaunchError, CommandTimeout
from pulsar_cli_harness.exec_result import ExecResult

logger = logging.getLogger(__name__)


def _as_text(output) -> str:
    # TimeoutExpired carries bytes even when text=True was requested
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output


class CommandRunner:
    """Executes argv against a named node and captures the result"""

    def __init__(self, docker_binary: str = "docker", timeout: float = 120.0):
        self.docker_binary = docker_binary
        self.timeout = timeout

    def build_command(self, node: str, argv: Sequence[str]) -> list:
        return [self.docker_binary, "exec", node, *argv]

    def run(self, node: str, argv: Sequence[str]) -> ExecResult:
        """Run argv on node and return its result whatever the exit code"""
        argv = [str(arg) for arg in argv]
        logger.debug("exec on %s: %s", node, " ".join(argv))
        try:
            completed = subprocess.run(
                self.build_command(node, argv),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            logger.warning("command on %s timed out after %ss: %s",
                           node, self.timeout, " ".join(argv))
            raise CommandTimeout(node, argv, self.timeout,
                                 _as_text(e.stdout), _as_text(e.stderr)) from e
        except OSError as e:
            raise CommandLaunchError(
                f"could not start {self.docker_binary!r} for node {node}: {e}") from e

        result = ExecResult(completed.returncode, completed.stdout or "", completed.stderr or "")
        if not result.succeeded:
            logger.warning("command on %s exited with %d: %s",
                           node, result.exit_code, " ".join(argv))
        return result

    def execute(self, node: str, argv: Sequence[str]) -> ExecResult:
        """Run argv on node, raising CommandFailure on a nonzero exit"""
        return self.run(node, argv).check(node, argv)
