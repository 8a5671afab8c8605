"""Fold per-host outcomes into the run report."""

from collections.abc import Iterable

from ssh_dispatch.models import HostOutcome, RunReport

FAILURE_REASON = "SSH execution failed on one or more hosts (see errors above)"


def host_marker(outcome: HostOutcome) -> bytes:
    """Header line identifying which host the following output came from."""
    return f"==> {outcome.target.label} <==\n".encode()


def combine_output(outcomes: Iterable[HostOutcome]) -> bytes:
    """Concatenate captured output in host order, each under its marker."""
    parts = []
    for outcome in outcomes:
        parts.append(host_marker(outcome))
        parts.append(outcome.output)
        if outcome.output and not outcome.output.endswith(b"\n"):
            parts.append(b"\n")
    return b"".join(parts)


def aggregate(outcomes: Iterable[HostOutcome]) -> RunReport:
    """Build the run report.

    The report succeeds only if every host succeeded. Output from failed
    hosts is included like any other.
    """
    ordered = list(outcomes)
    return RunReport(outcomes=ordered, output=combine_output(ordered))
