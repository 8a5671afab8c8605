"""Tests for helper tool lookup and installation."""

from unittest.mock import AsyncMock, patch

import pytest

from ssh_dispatch.errors import MissingDependencyError
from ssh_dispatch.services import tools


@pytest.mark.asyncio
async def test_tool_on_path() -> None:
    """A tool already on PATH is returned without installing."""
    with (
        patch.object(tools.shutil, "which", return_value="/usr/bin/ssh-agent"),
        patch.object(tools, "_run", new_callable=AsyncMock) as mock_run,
    ):
        path = await tools.ensure_tool("ssh-agent", "openssh-client", "key authentication")

    assert path == "/usr/bin/ssh-agent"
    mock_run.assert_not_called()


@pytest.mark.asyncio
async def test_no_package_manager() -> None:
    """Without apt-get the error names the purpose and tool."""
    with patch.object(tools.shutil, "which", return_value=None):
        with pytest.raises(MissingDependencyError) as exc_info:
            await tools.ensure_tool("ssh-agent", "openssh-client", "key authentication")

    assert exc_info.value.message == (
        "key authentication requires 'ssh-agent' but it is not installed"
    )


@pytest.mark.asyncio
async def test_installs_missing_tool() -> None:
    """The package is installed and the tool looked up again."""
    lookups = {"ssh-agent": [None, "/usr/bin/ssh-agent"], "apt-get": ["/usr/bin/apt-get"]}

    def which(name: str) -> str | None:
        if name == "sudo":
            return None
        return lookups[name].pop(0)

    with (
        patch.object(tools.shutil, "which", side_effect=which),
        patch.object(tools, "_run", new_callable=AsyncMock, return_value=0) as mock_run,
    ):
        path = await tools.ensure_tool("ssh-agent", "openssh-client", "key authentication")

    assert path == "/usr/bin/ssh-agent"
    commands = [call.args for call in mock_run.await_args_list]
    assert commands[0][-3:] == ("apt-get", "update", "-qq")
    assert commands[1][-2:] == ("-qq", "openssh-client")


@pytest.mark.asyncio
async def test_install_failure() -> None:
    """A failing package manager raises MissingDependencyError."""

    def which(name: str) -> str | None:
        return "/usr/bin/apt-get" if name == "apt-get" else None

    with (
        patch.object(tools.shutil, "which", side_effect=which),
        patch.object(tools, "_run", new_callable=AsyncMock, side_effect=[0, 100]),
    ):
        with pytest.raises(MissingDependencyError, match="could not be installed"):
            await tools.ensure_tool("ssh-agent", "openssh-client", "key authentication")
