"""Tests for the ephemeral ssh-agent wrapper."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import asyncssh
import pytest

from ssh_dispatch.errors import AuthLoadError
from ssh_dispatch.services.agent import EphemeralAgent


def _process(returncode: int | None = None) -> MagicMock:
    process = MagicMock()
    process.pid = 4242
    process.returncode = returncode
    process.wait = AsyncMock(return_value=0)
    return process


def _client() -> MagicMock:
    client = MagicMock()
    client.add_keys = AsyncMock()
    client.wait_closed = AsyncMock()
    return client


@pytest.mark.asyncio
async def test_start_and_stop(tmp_path: Path) -> None:
    """The agent runs in the foreground on the private socket."""
    agent = EphemeralAgent(tmp_path, binary="/usr/bin/ssh-agent")
    process = _process()
    client = _client()

    async def spawn(*args, **kwargs):
        agent.socket_path.touch()
        return process

    with (
        patch("asyncio.create_subprocess_exec", side_effect=spawn) as mock_exec,
        patch.object(asyncssh, "connect_agent", AsyncMock(return_value=client)) as mock_connect,
    ):
        await agent.start()

    assert mock_exec.call_args.args == (
        "/usr/bin/ssh-agent",
        "-D",
        "-a",
        str(tmp_path / "agent.sock"),
    )
    mock_connect.assert_awaited_once_with(str(tmp_path / "agent.sock"))
    assert agent.pid == 4242
    assert agent.is_running

    await agent.stop()

    client.close.assert_called_once()
    client.wait_closed.assert_awaited_once()
    process.terminate.assert_called_once()


@pytest.mark.asyncio
async def test_missing_binary(tmp_path: Path) -> None:
    """An agent that cannot be spawned is an auth load error."""
    agent = EphemeralAgent(tmp_path)

    with patch("asyncio.create_subprocess_exec", side_effect=FileNotFoundError("ssh-agent")):
        with pytest.raises(AuthLoadError, match="Failed to start ssh-agent"):
            await agent.start()


@pytest.mark.asyncio
async def test_agent_exits_during_startup(tmp_path: Path) -> None:
    """An agent that dies before creating its socket is reported."""
    agent = EphemeralAgent(tmp_path)

    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=_process(2))):
        with pytest.raises(AuthLoadError, match="exited during startup"):
            await agent.start()


@pytest.mark.asyncio
async def test_socket_never_appears(tmp_path: Path) -> None:
    """Startup gives up after the timeout."""
    agent = EphemeralAgent(tmp_path, startup_timeout=0.1)

    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=_process())):
        with pytest.raises(AuthLoadError, match="did not appear"):
            await agent.start()


@pytest.mark.asyncio
async def test_add_key_refused(tmp_path: Path, private_key: asyncssh.SSHKey) -> None:
    """Agent errors while adding a key become auth load errors."""
    agent = EphemeralAgent(tmp_path)
    client = _client()
    client.add_keys.side_effect = ValueError("Unable to add key")

    async def spawn(*args, **kwargs):
        agent.socket_path.touch()
        return _process()

    with (
        patch("asyncio.create_subprocess_exec", side_effect=spawn),
        patch.object(asyncssh, "connect_agent", AsyncMock(return_value=client)),
    ):
        await agent.start()

    with pytest.raises(AuthLoadError, match="ssh-agent refused the key"):
        await agent.add_key(private_key)


@pytest.mark.asyncio
async def test_add_key_before_start(tmp_path: Path, private_key: asyncssh.SSHKey) -> None:
    """Keys cannot be added to an agent that is not running."""
    with pytest.raises(AuthLoadError, match="not running"):
        await EphemeralAgent(tmp_path).add_key(private_key)


@pytest.mark.asyncio
async def test_stop_without_start(tmp_path: Path) -> None:
    """Stopping an agent that never started is a no-op."""
    agent = EphemeralAgent(tmp_path)
    await agent.stop()
    assert not agent.is_running
