"""Services for ssh-dispatch."""

from ssh_dispatch.services.agent import EphemeralAgent
from ssh_dispatch.services.aggregator import FAILURE_REASON, aggregate, combine_output
from ssh_dispatch.services.connection import open_connection
from ssh_dispatch.services.credentials import CredentialProvisioner
from ssh_dispatch.services.executors import (
    execute_script,
    run_on_host,
    run_on_hosts,
    stdout_sink,
)
from ssh_dispatch.services.runner import dispatch, resolve_proxy
from ssh_dispatch.services.script import (
    assemble_payload,
    build_env_preamble,
    resolve_script_body,
)
from ssh_dispatch.services.tools import ensure_tool

__all__ = [
    "aggregate",
    "assemble_payload",
    "build_env_preamble",
    "combine_output",
    "CredentialProvisioner",
    "dispatch",
    "EphemeralAgent",
    "ensure_tool",
    "execute_script",
    "FAILURE_REASON",
    "open_connection",
    "resolve_proxy",
    "resolve_script_body",
    "run_on_host",
    "run_on_hosts",
    "stdout_sink",
]
