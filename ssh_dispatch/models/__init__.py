"""Data models for ssh-dispatch."""

from ssh_dispatch.models.credential import (
    AuthContext,
    Credential,
    KeyCredential,
    PasswordCredential,
    ProxyHop,
)
from ssh_dispatch.models.outcome import (
    NO_STATUS_EXIT_CODE,
    TIMEOUT_EXIT_CODE,
    HostOutcome,
    OutcomeStatus,
    RunReport,
)
from ssh_dispatch.models.ssh import ExecutionContext, HostTarget

__all__ = [
    "AuthContext",
    "Credential",
    "ExecutionContext",
    "HostOutcome",
    "HostTarget",
    "KeyCredential",
    "NO_STATUS_EXIT_CODE",
    "OutcomeStatus",
    "PasswordCredential",
    "ProxyHop",
    "RunReport",
    "TIMEOUT_EXIT_CODE",
]
