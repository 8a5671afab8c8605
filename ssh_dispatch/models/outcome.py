"""Per-host outcome and run report models."""

from dataclasses import dataclass, field
from enum import Enum

from ssh_dispatch.models.ssh import HostTarget

# Exit code reserved for an expired command timeout (matches coreutils timeout).
TIMEOUT_EXIT_CODE = 124

# Exit code used when no remote status is available (matches OpenSSH).
NO_STATUS_EXIT_CODE = 255


class OutcomeStatus(Enum):
    """Classification of a single host's execution attempt."""

    SUCCESS = "success"
    NONZERO_EXIT = "nonzero_exit"
    TIMEOUT = "timeout"
    CONNECTION_FAILURE = "connection_failure"


@dataclass
class HostOutcome:
    """Result of running the payload on one host."""

    target: HostTarget
    status: OutcomeStatus
    exit_code: int = 0
    output: bytes = b""
    error: str | None = None

    @property
    def is_success(self) -> bool:
        """Check if the host succeeded."""
        return self.status is OutcomeStatus.SUCCESS

    @property
    def text(self) -> str:
        """Get captured output decoded as text."""
        return self.output.decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        return (
            f"HostOutcome(host={self.target.label}, status={self.status.value}, "
            f"exit_code={self.exit_code}, output={len(self.output)} bytes)"
        )


@dataclass
class RunReport:
    """Aggregated result of a run across all hosts."""

    outcomes: list[HostOutcome] = field(default_factory=list)
    output: bytes = b""

    @property
    def success(self) -> bool:
        """True only if every host succeeded."""
        return all(outcome.is_success for outcome in self.outcomes)

    @property
    def failed(self) -> list[HostOutcome]:
        """Outcomes that did not succeed, in host order."""
        return [outcome for outcome in self.outcomes if not outcome.is_success]

    @property
    def text(self) -> str:
        """Get combined output decoded as text."""
        return self.output.decode("utf-8", errors="replace")
