"""Credential provisioning for a run.

Key material is written to a private temp file, parsed, handed to an
ephemeral ssh-agent and erased straight away. Passwords stay in memory and
are passed to asyncssh at connection time.

Use as a scoped resource::

    async with CredentialProvisioner(credential, proxy) as auth:
        ...

Teardown runs exactly once on every exit path, including a failure part-way
through provisioning.
"""

import logging
import os
import shutil
import tempfile
from collections.abc import Awaitable, Callable
from pathlib import Path
from types import TracebackType

import asyncssh

from ssh_dispatch.errors import AuthLoadError
from ssh_dispatch.models import (
    AuthContext,
    Credential,
    KeyCredential,
    PasswordCredential,
    ProxyHop,
)
from ssh_dispatch.services.agent import EphemeralAgent
from ssh_dispatch.services.tools import ensure_tool

logger = logging.getLogger(__name__)

AgentFactory = Callable[[Path, str], EphemeralAgent]
ToolLookup = Callable[[str, str, str], Awaitable[str]]


class CredentialProvisioner:
    """Turns credentials into an AuthContext and revokes them afterwards."""

    def __init__(
        self,
        credential: Credential,
        proxy: ProxyHop | None = None,
        agent_factory: AgentFactory = EphemeralAgent,
        tool_lookup: ToolLookup = ensure_tool,
    ) -> None:
        """Initialize provisioner.

        Args:
            credential: Primary credential
            proxy: Optional jump host whose key joins the same agent
            agent_factory: Creates the agent for a work directory and binary
            tool_lookup: Resolves (and if needed installs) a helper binary
        """
        self.credential = credential
        self.proxy = proxy
        self._agent_factory = agent_factory
        self._tool_lookup = tool_lookup
        self._agent: EphemeralAgent | None = None
        self._workdir: Path | None = None
        self._torn_down = False
        self.identities: list[str] = []

    @property
    def workdir(self) -> Path | None:
        """Get the private work directory, if one was created."""
        return self._workdir

    @property
    def agent(self) -> EphemeralAgent | None:
        """Get the ephemeral agent, if one was started."""
        return self._agent

    def _keys_to_load(self) -> list[tuple[str, KeyCredential]]:
        keys = []
        if isinstance(self.credential, KeyCredential):
            keys.append(("primary", self.credential))
        if self.proxy is not None and self.proxy.credential is not None:
            keys.append(("proxy", self.proxy.credential))
        return keys

    async def __aenter__(self) -> AuthContext:
        return await self.provision()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.teardown()

    async def provision(self) -> AuthContext:
        """Activate the credentials.

        Returns:
            AuthContext for host connections

        Raises:
            AuthLoadError: If a key cannot be loaded
            MissingDependencyError: If ssh-agent is unavailable
        """
        try:
            return await self._provision()
        except BaseException:
            await self.teardown()
            raise

    async def _provision(self) -> AuthContext:
        keys = self._keys_to_load()
        agent_path = None

        if keys:
            binary = await self._tool_lookup(
                "ssh-agent", "openssh-client", "key authentication"
            )
            try:
                self._workdir = Path(tempfile.mkdtemp(prefix="ssh-dispatch-"))
            except OSError as e:
                raise AuthLoadError(
                    "Failed to create private key directory", str(e)
                ) from e
            self._agent = self._agent_factory(self._workdir, binary)
            await self._agent.start()
            agent_path = str(self._agent.socket_path)

            for label, key in keys:
                await self._load_key(label, key)

        password = None
        if isinstance(self.credential, PasswordCredential):
            password = self.credential.secret
            logger.info("Authentication: password-based")
        else:
            logger.info("Authentication: key-based (ssh-agent)")

        if self.proxy is not None:
            logger.info("Proxy: %s:%d", self.proxy.host, self.proxy.port)

        return AuthContext(agent_path=agent_path, password=password)

    async def _load_key(self, label: str, credential: KeyCredential) -> None:
        """Load one key into the agent via a transient 0600 file."""
        assert self._workdir is not None and self._agent is not None

        key_path = self._workdir / f"{label}_key"
        what = "proxy SSH key" if label == "proxy" else "SSH private key"
        try:
            fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(credential.normalized())
            key = asyncssh.read_private_key(key_path, credential.passphrase)
        except (asyncssh.KeyImportError, asyncssh.KeyEncryptionError) as e:
            raise AuthLoadError(
                f"Failed to load {what}", "check key format and passphrase"
            ) from e
        except OSError as e:
            raise AuthLoadError(f"Failed to load {what}", str(e)) from e
        finally:
            key_path.unlink(missing_ok=True)

        await self._agent.add_key(key)
        self.identities.append(label)
        logger.debug("Loaded %s identity into ssh-agent", label)

    async def teardown(self) -> None:
        """Stop the agent and erase transient files.

        Idempotent; errors are logged and swallowed.
        """
        if self._torn_down:
            return
        self._torn_down = True

        if self._agent is not None:
            logger.debug("Tearing down ssh-agent (pid=%s)", self._agent.pid)
            try:
                await self._agent.stop()
            except Exception as e:
                logger.warning("Failed to stop ssh-agent: %s", e)

        if self._workdir is not None:
            shutil.rmtree(self._workdir, ignore_errors=True)
