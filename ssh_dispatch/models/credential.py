"""Credential data models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class KeyCredential:
    """Private key material with an optional passphrase."""

    material: str = field(repr=False)
    passphrase: str | None = field(default=None, repr=False)

    def normalized(self) -> str:
        """Return the key material guaranteed to end with a newline.

        Secrets pasted into CI settings frequently lose their final
        newline, which OpenSSH-format keys require.
        """
        if self.material.endswith("\n"):
            return self.material
        return self.material + "\n"


@dataclass(frozen=True)
class PasswordCredential:
    """Password held in memory only."""

    secret: str = field(repr=False)


Credential = KeyCredential | PasswordCredential


@dataclass(frozen=True)
class ProxyHop:
    """Jump host chained in front of every primary connection."""

    host: str
    username: str
    port: int = 22
    credential: KeyCredential | None = None

    @property
    def directive(self) -> str:
        """Get the proxy directive (user@host:port)."""
        return f"{self.username}@{self.host}:{self.port}"


@dataclass(frozen=True)
class AuthContext:
    """Activated authentication handed to every host connection.

    ``agent_path`` points at the ephemeral agent socket when any key was
    loaded; ``password`` is only set for password authentication.
    """

    agent_path: str | None = None
    password: str | None = field(default=None, repr=False)

    @property
    def uses_agent(self) -> bool:
        """Check if an agent holds at least one identity."""
        return self.agent_path is not None

    @property
    def uses_password(self) -> bool:
        """Check if password authentication is active."""
        return self.password is not None
