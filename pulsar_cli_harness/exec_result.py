"""Outcome of a single command invocation"""

from dataclasses import dataclass

from pulsar_cli_harness.errors import CommandFailure


@dataclass(frozen=True)
class ExecResult:
    """Exit code and the two output streams of one invocation"""
    exit_code: int
    stdout: str
    stderr: str

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def is_silent(self) -> bool:
        """True when both streams are empty, the convention for mutating calls"""
        return not self.stdout and not self.stderr

    def check(self, node: str = "", argv=()) -> "ExecResult":
        """Return self, or raise CommandFailure for a nonzero exit"""
        if not self.succeeded:
            raise CommandFailure(node, argv, self)
        return self
