"""Utilities for ssh-dispatch."""

from ssh_dispatch.utils.console import (
    ColorfulFormatter,
    DispatchFormatter,
    configure_logging,
)
from ssh_dispatch.utils.parser import parse_hosts, parse_jump_spec
from ssh_dispatch.utils.shell import export_statement, quote_single, split_args
from ssh_dispatch.utils.validation import (
    validate_env_name,
    validate_host,
    validate_port,
)

__all__ = [
    "ColorfulFormatter",
    "configure_logging",
    "DispatchFormatter",
    "export_statement",
    "parse_hosts",
    "parse_jump_spec",
    "quote_single",
    "split_args",
    "validate_env_name",
    "validate_host",
    "validate_port",
]
