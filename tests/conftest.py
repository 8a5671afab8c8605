"""Shared fixtures for ssh-dispatch tests."""

from collections.abc import Callable

import asyncssh
import pytest

from ssh_dispatch.config import TransportOptions
from ssh_dispatch.models import AuthContext, ExecutionContext, ProxyHop


@pytest.fixture
def make_context() -> Callable[..., ExecutionContext]:
    """Factory for execution contexts with test defaults."""

    def factory(
        command_timeout: int = 600,
        auth: AuthContext | None = None,
        transport: TransportOptions | None = None,
        proxy: ProxyHop | None = None,
        remote_shell: str = "bash",
    ) -> ExecutionContext:
        return ExecutionContext(
            username="deploy",
            auth=auth or AuthContext(agent_path="/tmp/agent.sock"),
            transport=transport or TransportOptions(),
            proxy=proxy,
            command_timeout=command_timeout,
            remote_shell=remote_shell,
        )

    return factory


@pytest.fixture(scope="session")
def private_key() -> asyncssh.SSHKey:
    """Freshly generated ed25519 key."""
    return asyncssh.generate_private_key("ssh-ed25519")


@pytest.fixture(scope="session")
def private_key_pem(private_key: asyncssh.SSHKey) -> str:
    """Unencrypted OpenSSH private key text."""
    return private_key.export_private_key("openssh").decode()


@pytest.fixture(scope="session")
def encrypted_key_pem() -> str:
    """ECDSA key encrypted with passphrase 'hunter2'."""
    key = asyncssh.generate_private_key("ecdsa-sha2-nistp256")
    return key.export_private_key("pkcs8-pem", passphrase="hunter2").decode()
