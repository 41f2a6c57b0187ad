"""
Error types raised by the harness.

Nothing here is retried. Every error that came out of a command invocation
keeps the captured stdout/stderr so negative-path scenarios can assert on it.
"""

from typing import Optional, Sequence


class HarnessError(Exception):
    """Base class for harness failures that are not plain assertion failures"""


class VerificationError(AssertionError):
    """Output or state did not match the expected contract"""


def _format_streams(stdout: str, stderr: str) -> str:
    return f"--- stdout ---\n{stdout}\n--- stderr ---\n{stderr}"


class CommandFailure(HarnessError):
    """A command exited with a nonzero status"""

    def __init__(self, node: str, argv: Sequence[str], result):
        self.node = node
        self.argv = list(argv)
        self.result = result
        super().__init__(
            f"command {' '.join(self.argv)!r} on {node} exited with "
            f"{result.exit_code}\n{_format_streams(result.stdout, result.stderr)}"
        )


class CommandTimeout(HarnessError):
    """A command did not exit before its invocation timeout"""

    def __init__(self, node: str, argv: Sequence[str], timeout: float,
                 stdout: str = "", stderr: str = ""):
        self.node = node
        self.argv = list(argv)
        self.timeout = timeout
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(
            f"command {' '.join(self.argv)!r} on {node} timed out after "
            f"{timeout}s\n{_format_streams(stdout, stderr)}"
        )


class CommandLaunchError(HarnessError):
    """The exec binary itself could not be started"""


class ReceiveTimeout(HarnessError):
    """A bounded receive expired before a message arrived"""

    def __init__(self, topic: str, index: int, timeout: float,
                 received: Optional[int] = None):
        self.topic = topic
        self.index = index
        self.timeout = timeout
        self.received = received
        super().__init__(
            f"no message for index {index} on {topic} within {timeout}s"
            + (f" ({received} received before)" if received is not None else "")
        )


class SchemaStateError(HarnessError):
    """A schema operation was attempted from a state that does not allow it"""
