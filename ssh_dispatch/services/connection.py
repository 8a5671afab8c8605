"""SSH connection helper with optional jump host."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import asyncssh

from ssh_dispatch.errors import ConnectionFailure
from ssh_dispatch.models import ExecutionContext, HostTarget

logger = logging.getLogger(__name__)

# Errors that mean "could not reach or log into this host"
CONNECT_ERRORS = (asyncssh.Error, OSError, asyncio.TimeoutError, ValueError)


def _auth_kwargs(context: ExecutionContext) -> dict[str, Any]:
    """Credential arguments shared by target and jump host connections.

    The runner's own SSH_AUTH_SOCK and key files are never consulted unless
    the ephemeral agent is in use.
    """
    auth = context.auth
    kwargs: dict[str, Any] = {"agent_path": auth.agent_path}
    if auth.uses_password:
        kwargs["password"] = auth.password
    if not auth.uses_agent:
        kwargs["client_keys"] = None
    return kwargs


def connect_kwargs(context: ExecutionContext) -> dict[str, Any]:
    """Build ``asyncssh.connect`` keyword arguments for a target host."""
    kwargs: dict[str, Any] = {"username": context.username}
    kwargs.update(_auth_kwargs(context))

    transport = context.transport.to_connect_kwargs()
    if "client_keys" in transport and kwargs.get("client_keys", ()) is None:
        kwargs.pop("client_keys")
    kwargs.update(transport)
    return kwargs


def proxy_connect_kwargs(context: ExecutionContext) -> dict[str, Any]:
    """Build ``asyncssh.connect`` keyword arguments for the jump host.

    Jump hosts accept unseen host keys; fingerprint pinning applies to
    targets only.
    """
    assert context.proxy is not None
    transport = context.transport
    kwargs: dict[str, Any] = {
        "username": context.proxy.username,
        "port": context.proxy.port,
        "connect_timeout": transport.connect_timeout or None,
        "keepalive_interval": transport.keepalive_interval,
        "keepalive_count_max": transport.keepalive_count_max,
        "known_hosts": None,
    }
    kwargs.update(_auth_kwargs(context))
    return kwargs


async def _close(conn: asyncssh.SSHClientConnection) -> None:
    conn.close()
    await conn.wait_closed()


@asynccontextmanager
async def open_connection(
    target: HostTarget,
    context: ExecutionContext,
) -> AsyncIterator[asyncssh.SSHClientConnection]:
    """Open a connection to a target, tunnelled through the jump host if set.

    Both connections are closed when the block exits.

    Raises:
        ConnectionFailure: If the jump host or target cannot be reached
    """
    tunnel: asyncssh.SSHClientConnection | None = None
    kwargs = connect_kwargs(context)
    kwargs["port"] = target.port

    try:
        if context.proxy is not None:
            logger.debug("Connecting to jump host %s", context.proxy.directive)
            tunnel = await asyncssh.connect(
                context.proxy.host, **proxy_connect_kwargs(context)
            )
            kwargs["tunnel"] = tunnel

        logger.info(
            "Connecting to %s",
            target.connection_string(kwargs.get("username", context.username)),
        )
        conn = await asyncssh.connect(target.address, **kwargs)
    except CONNECT_ERRORS as e:
        if tunnel is not None:
            await _close(tunnel)
        logger.debug("Connection to %s failed: %r", target.label, e)
        raise ConnectionFailure(target.address, e) from e

    try:
        yield conn
    finally:
        await _close(conn)
        if tunnel is not None:
            await _close(tunnel)
