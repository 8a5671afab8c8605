"""SSH-related data models."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ssh_dispatch.models.credential import AuthContext, ProxyHop

if TYPE_CHECKING:
    from ssh_dispatch.config.options import TransportOptions


@dataclass(frozen=True)
class HostTarget:
    """A single host the script runs on."""

    address: str
    port: int = 22

    @property
    def label(self) -> str:
        """Get the display label (address:port)."""
        return f"{self.address}:{self.port}"

    def connection_string(self, username: str) -> str:
        """Get SSH connection string (user@host:port)."""
        return f"{username}@{self.address}:{self.port}"


@dataclass(frozen=True)
class ExecutionContext:
    """Everything a host connection needs, built once per run.

    Read-only for the remainder of the run. The credential material behind
    ``auth`` is revoked when the provisioning scope exits.
    """

    username: str
    auth: AuthContext
    transport: "TransportOptions"
    proxy: ProxyHop | None = None
    command_timeout: int = 600
    remote_shell: str = "bash"

    @property
    def has_command_timeout(self) -> bool:
        """Check if the command phase is time bounded (0 means unlimited)."""
        return self.command_timeout > 0
