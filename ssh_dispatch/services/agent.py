"""Ephemeral ssh-agent process owned by a single run."""

import asyncio
import logging
from pathlib import Path

import asyncssh

from ssh_dispatch.errors import AuthLoadError

logger = logging.getLogger(__name__)


class EphemeralAgent:
    """Foreground ``ssh-agent`` bound to a private socket.

    The agent keeps decrypted identities in memory only; stopping it
    discards them.
    """

    def __init__(
        self,
        workdir: Path,
        binary: str = "ssh-agent",
        startup_timeout: float = 10.0,
    ) -> None:
        """Initialize agent.

        Args:
            workdir: Private directory the socket is created in
            binary: Path or name of the ssh-agent executable
            startup_timeout: Seconds to wait for the socket to appear
        """
        self.socket_path = workdir / "agent.sock"
        self.binary = binary
        self.startup_timeout = startup_timeout
        self._process: asyncio.subprocess.Process | None = None
        self._client: asyncssh.SSHAgentClient | None = None

    @property
    def pid(self) -> int | None:
        """Get the agent process id, if started."""
        return self._process.pid if self._process else None

    @property
    def is_running(self) -> bool:
        """Check if the agent process is alive."""
        return self._process is not None and self._process.returncode is None

    async def start(self) -> None:
        """Start the agent and connect a client to it.

        Raises:
            AuthLoadError: If the agent fails to start or accept connections
        """
        try:
            self._process = await asyncio.create_subprocess_exec(
                self.binary,
                "-D",
                "-a",
                str(self.socket_path),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            raise AuthLoadError("Failed to start ssh-agent", str(e)) from e

        await self._wait_for_socket()

        self._client = await asyncssh.connect_agent(str(self.socket_path))
        if self._client is None:
            raise AuthLoadError(
                "Failed to connect to ssh-agent", f"Socket: {self.socket_path}"
            )
        logger.debug("ssh-agent started (pid=%s)", self.pid)

    async def _wait_for_socket(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.startup_timeout
        while not self.socket_path.exists():
            if self._process is not None and self._process.returncode is not None:
                raise AuthLoadError(
                    "ssh-agent exited during startup",
                    f"Exit code: {self._process.returncode}",
                )
            if loop.time() > deadline:
                raise AuthLoadError(
                    f"ssh-agent socket did not appear within {self.startup_timeout}s"
                )
            await asyncio.sleep(0.05)

    async def add_key(self, key: asyncssh.SSHKey) -> None:
        """Add a decrypted identity to the agent.

        Raises:
            AuthLoadError: If the agent rejects the key
        """
        if self._client is None:
            raise AuthLoadError("ssh-agent is not running")
        try:
            await self._client.add_keys([key])
        except (ValueError, asyncssh.Error, OSError) as e:
            raise AuthLoadError("ssh-agent refused the key", str(e)) from e

    async def stop(self) -> None:
        """Disconnect and terminate the agent; safe to call repeatedly."""
        if self._client is not None:
            client, self._client = self._client, None
            client.close()
            await client.wait_closed()

        if self._process is not None and self._process.returncode is None:
            self._process.terminate()
            try:
                await asyncio.wait_for(self._process.wait(), timeout=5)
            except asyncio.TimeoutError:
                logger.warning("ssh-agent did not exit, killing pid %s", self.pid)
                self._process.kill()
                await self._process.wait()
