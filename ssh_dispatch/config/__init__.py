"""Configuration module for ssh-dispatch.

Provides focused classes for different configuration concerns:
- ActionInputs: Step inputs from INPUT_* environment variables
- LogSettings: Logging configuration from environment
- TransportOptions: Connection options shared by all hosts
- HostKeyPolicy: SSH host key verification policy
"""

from ssh_dispatch.config.host_keys import HostKeyPolicy
from ssh_dispatch.config.options import TransportOptions, build_transport_options
from ssh_dispatch.config.settings import ActionInputs, LogSettings

__all__ = [
    "ActionInputs",
    "build_transport_options",
    "HostKeyPolicy",
    "LogSettings",
    "TransportOptions",
]
