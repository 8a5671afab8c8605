"""Tests for SSH connection setup."""

from unittest.mock import AsyncMock, MagicMock, patch

import asyncssh
import pytest

from ssh_dispatch.config import HostKeyPolicy, TransportOptions
from ssh_dispatch.config.options import apply_extra_args
from ssh_dispatch.errors import ConnectionFailure
from ssh_dispatch.models import AuthContext, HostTarget, KeyCredential, ProxyHop
from ssh_dispatch.services.connection import (
    connect_kwargs,
    open_connection,
    proxy_connect_kwargs,
)


def _conn() -> MagicMock:
    conn = MagicMock()
    conn.wait_closed = AsyncMock()
    return conn


class TestConnectKwargs:
    """Tests for connection keyword arguments."""

    def test_agent_auth(self, make_context) -> None:
        """Key auth goes through the ephemeral agent only."""
        kwargs = connect_kwargs(make_context())
        assert kwargs["username"] == "deploy"
        assert kwargs["agent_path"] == "/tmp/agent.sock"
        assert "password" not in kwargs
        assert "client_keys" not in kwargs
        assert kwargs["known_hosts"] is None

    def test_password_auth(self, make_context) -> None:
        """Password auth disables agent and default keys."""
        kwargs = connect_kwargs(make_context(auth=AuthContext(password="pw")))
        assert kwargs["password"] == "pw"
        assert kwargs["agent_path"] is None
        assert kwargs["client_keys"] is None

    def test_identity_file_replaces_disabled_keys(self, make_context) -> None:
        """An explicit IdentityFile is used even without the agent."""
        transport = apply_extra_args(TransportOptions(), ["-i", "/keys/id"], "deploy")
        kwargs = connect_kwargs(
            make_context(auth=AuthContext(password="pw"), transport=transport)
        )
        assert kwargs["client_keys"] == ["/keys/id"]

    def test_user_option_overrides_username(self, make_context) -> None:
        """A User option wins over the username input."""
        transport = apply_extra_args(TransportOptions(), ["-l", "root"], "deploy")
        assert connect_kwargs(make_context(transport=transport))["username"] == "root"

    def test_proxy_ignores_fingerprint(self, make_context) -> None:
        """Jump hosts are never pinned to the target fingerprint."""
        transport = TransportOptions(host_key_policy=HostKeyPolicy(fingerprint="abc"))
        proxy = ProxyHop("bastion", "ops", 2200, KeyCredential("K"))
        kwargs = proxy_connect_kwargs(make_context(transport=transport, proxy=proxy))
        assert kwargs["username"] == "ops"
        assert kwargs["port"] == 2200
        assert kwargs["known_hosts"] is None
        assert "client_factory" not in kwargs
        assert kwargs["agent_path"] == "/tmp/agent.sock"


class TestOpenConnection:
    """Tests for open_connection."""

    @pytest.mark.asyncio
    async def test_direct_connection(self, make_context) -> None:
        """The target is reached directly and closed afterwards."""
        conn = _conn()

        with patch.object(asyncssh, "connect", AsyncMock(return_value=conn)) as mock_connect:
            async with open_connection(HostTarget("web1", 2222), make_context()) as opened:
                assert opened is conn

        mock_connect.assert_awaited_once()
        assert mock_connect.call_args.args == ("web1",)
        assert mock_connect.call_args.kwargs["port"] == 2222
        assert "tunnel" not in mock_connect.call_args.kwargs
        conn.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_tunnel_through_jump_host(self, make_context) -> None:
        """The target connection is tunnelled through the jump host."""
        tunnel, conn = _conn(), _conn()
        proxy = ProxyHop("bastion", "ops", 2200)

        with patch.object(
            asyncssh, "connect", AsyncMock(side_effect=[tunnel, conn])
        ) as mock_connect:
            async with open_connection(HostTarget("web1"), make_context(proxy=proxy)):
                pass

        first, second = mock_connect.call_args_list
        assert first.args == ("bastion",)
        assert first.kwargs["port"] == 2200
        assert second.args == ("web1",)
        assert second.kwargs["tunnel"] is tunnel
        conn.close.assert_called_once()
        tunnel.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_target_failure_closes_tunnel(self, make_context) -> None:
        """A failing target still closes the jump host connection."""
        tunnel = _conn()
        error = asyncssh.PermissionDenied("Permission denied")

        with patch.object(asyncssh, "connect", AsyncMock(side_effect=[tunnel, error])):
            with pytest.raises(ConnectionFailure) as exc_info:
                async with open_connection(
                    HostTarget("web1"), make_context(proxy=ProxyHop("bastion", "ops"))
                ):
                    pytest.fail("connection should not open")

        assert exc_info.value.host == "web1"
        assert exc_info.value.original_error is error
        tunnel.close.assert_called_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            OSError("Connection refused"),
            TimeoutError(),
            asyncssh.HostKeyNotVerifiable("Host key is not trusted"),
        ],
    )
    async def test_errors_become_connection_failures(self, make_context, error) -> None:
        """Transport, timeout and host key errors are all connection failures."""
        with patch.object(asyncssh, "connect", AsyncMock(side_effect=error)):
            with pytest.raises(ConnectionFailure, match="Connection to web1 failed"):
                async with open_connection(HostTarget("web1"), make_context()):
                    pytest.fail("connection should not open")
