"""Remote script execution.

Hosts run strictly one after another in listed order. A failing host never
stops the remaining ones; its failure is recorded as its outcome.
"""

import asyncio
import logging
import sys
from collections.abc import Callable

import asyncssh

from ssh_dispatch.errors import (
    ConnectionFailure,
    HostFailure,
    RemoteNonZeroExit,
    RemoteTimeout,
)
from ssh_dispatch.models import (
    NO_STATUS_EXIT_CODE,
    TIMEOUT_EXIT_CODE,
    ExecutionContext,
    HostOutcome,
    HostTarget,
    OutcomeStatus,
)
from ssh_dispatch.services.connection import CONNECT_ERRORS, open_connection
from ssh_dispatch.services.script import encode_payload
from ssh_dispatch.utils import workflow

logger = logging.getLogger(__name__)

OutputSink = Callable[[bytes], None]

CHUNK_SIZE = 4096

# Terminal EOF character (Ctrl-D)
PTY_EOF = b"\x04"


def stdout_sink(chunk: bytes) -> None:
    """Write captured output straight through to the job log."""
    sys.stdout.buffer.write(chunk)
    sys.stdout.buffer.flush()


async def _drain(
    process: asyncssh.SSHClientProcess,
    buffer: bytearray,
    sink: OutputSink,
) -> None:
    """Read merged output until EOF, forwarding each chunk as it arrives."""
    while True:
        chunk = await process.stdout.read(CHUNK_SIZE)
        if not chunk:
            break
        buffer.extend(chunk)
        sink(chunk)
    await process.wait_closed()


def _stdin_bytes(payload: str, term_type: str | None) -> bytes:
    """Encode the payload, ending it with a terminal EOF when a PTY is used.

    A shell reading from a PTY does not see the channel EOF.
    """
    data = encode_payload(payload)
    if term_type is None:
        return data
    if not data.endswith(b"\n"):
        data += b"\n"
    return data + PTY_EOF


def _exit_code(returncode: int | None) -> int:
    """Normalize a remote return code to a shell-style exit code."""
    if returncode is None:
        return NO_STATUS_EXIT_CODE
    if returncode < 0:
        # Killed by signal
        return 128 - returncode
    return returncode


async def execute_script(
    conn: asyncssh.SSHClientConnection,
    target: HostTarget,
    context: ExecutionContext,
    payload: str,
    buffer: bytearray,
    sink: OutputSink,
) -> int:
    """Pipe the payload into the remote shell and capture its output.

    The payload goes to the shell's stdin, never onto its command line.
    Output captured before a timeout stays in ``buffer``.

    Returns:
        Remote exit code.

    Raises:
        RemoteTimeout: If the command timeout expires
    """
    process = await conn.create_process(
        context.remote_shell,
        stderr=asyncssh.STDOUT,
        encoding=None,
        term_type=context.transport.term_type,
    )
    process.stdin.write(_stdin_bytes(payload, context.transport.term_type))
    process.stdin.write_eof()

    if not context.has_command_timeout:
        await _drain(process, buffer, sink)
        return _exit_code(process.returncode)

    try:
        await asyncio.wait_for(
            _drain(process, buffer, sink), timeout=context.command_timeout
        )
    except asyncio.TimeoutError:
        logger.debug("Killing remote shell on %s", target.label)
        try:
            process.kill()
        except (OSError, asyncssh.Error) as e:
            logger.debug("Kill signal not delivered to %s: %s", target.label, e)
        process.close()
        raise RemoteTimeout(target.address, context.command_timeout) from None

    return _exit_code(process.returncode)


def _failure_outcome(
    target: HostTarget, error: HostFailure, output: bytes
) -> HostOutcome:
    if isinstance(error, RemoteTimeout):
        status, exit_code = OutcomeStatus.TIMEOUT, TIMEOUT_EXIT_CODE
    elif isinstance(error, RemoteNonZeroExit):
        status, exit_code = OutcomeStatus.NONZERO_EXIT, error.exit_code
    else:
        status, exit_code = OutcomeStatus.CONNECTION_FAILURE, NO_STATUS_EXIT_CODE
    return HostOutcome(
        target=target,
        status=status,
        exit_code=exit_code,
        output=output,
        error=error.message,
    )


async def run_on_host(
    target: HostTarget,
    context: ExecutionContext,
    payload: str,
    sink: OutputSink = stdout_sink,
) -> HostOutcome:
    """Run the payload on one host.

    Host-level failures are caught here and turned into the outcome.

    Returns:
        HostOutcome with everything captured, whatever the result.
    """
    buffer = bytearray()

    with workflow.group(f"Executing on {target.label}"):
        try:
            async with open_connection(target, context) as conn:
                try:
                    exit_code = await execute_script(
                        conn, target, context, payload, buffer, sink
                    )
                except CONNECT_ERRORS as e:
                    raise ConnectionFailure(target.address, e) from e
            if exit_code != 0:
                raise RemoteNonZeroExit(target.address, exit_code)
        except HostFailure as e:
            workflow.error(e.message)
            return _failure_outcome(target, e, bytes(buffer))

        workflow.notice(f"Host {target.address}: success")
        return HostOutcome(
            target=target,
            status=OutcomeStatus.SUCCESS,
            exit_code=0,
            output=bytes(buffer),
        )


async def run_on_hosts(
    targets: list[HostTarget],
    context: ExecutionContext,
    payload: str,
    sink: OutputSink = stdout_sink,
) -> list[HostOutcome]:
    """Run the payload on every host sequentially.

    Returns:
        One HostOutcome per target, in the same order.
    """
    asyncssh.set_log_level(context.transport.log_level)

    outcomes = []
    for target in targets:
        outcome = await run_on_host(target, context, payload, sink)
        logger.debug("%r", outcome)
        outcomes.append(outcome)
    return outcomes
