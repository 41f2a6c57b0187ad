"""
Checks used by scenarios and verifiers.

They raise VerificationError (an AssertionError) so they read the same under
pytest and under the scenario runner, and are not stripped by `python -O`.
"""

from pulsar_cli_harness.errors import VerificationError
from pulsar_cli_harness.exec_result import ExecResult


def expect_empty_output(result: ExecResult, what: str = "command"):
    """Mutating calls succeed silently: exit 0, nothing on either stream"""
    if not result.succeeded:
        raise VerificationError(
            f"{what} exited with {result.exit_code}\nstderr: {result.stderr}")
    if not result.is_silent:
        raise VerificationError(
            f"{what} was not silent\nstdout: {result.stdout!r}\nstderr: {result.stderr!r}")
    return result


def expect_in(needle: str, text: str, what: str = "output"):
    if needle not in text:
        raise VerificationError(f"expected {needle!r} in {what}, got:\n{text}")


def expect_not_in(needle: str, text: str, what: str = "output"):
    if needle in text:
        raise VerificationError(f"did not expect {needle!r} in {what}, got:\n{text}")


def expect_failure(result: ExecResult, what: str = "command") -> ExecResult:
    """Require a nonzero exit; an unexpected success is itself a failure"""
    if result.succeeded:
        raise VerificationError(
            f"{what} should have exited with non-zero\n"
            f"stdout: {result.stdout}\nstderr: {result.stderr}")
    return result
