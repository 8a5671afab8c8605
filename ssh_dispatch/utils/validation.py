"""Input validation utilities."""

import re
from typing import Final

from ssh_dispatch.errors import ValidationError

# POSIX shell variable names
ENV_NAME_PATTERN: Final = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_host(host: str) -> str:
    """Validate a host name.

    Args:
        host: The host name to validate

    Returns:
        Validated host name

    Raises:
        ValidationError: If host name is invalid
    """
    if not host:
        raise ValidationError("Host cannot be empty")

    # Basic hostname validation
    if len(host) > 253:
        raise ValidationError(f"Host name too long: {len(host)} chars")

    # Check for characters that could enable injection
    suspicious_chars = ["/", "\\", ";", "&", "|", "$", "`", " ", "\n", "\r", "\x00"]
    for char in suspicious_chars:
        if char in host:
            raise ValidationError(f"Host contains invalid characters: {host!r}")

    return host


def validate_port(port: int, name: str = "port") -> int:
    """Validate a TCP port number.

    Raises:
        ValidationError: If port is outside 1-65535
    """
    if not 1 <= port <= 65535:
        raise ValidationError(f"input '{name}' must be between 1 and 65535, got {port}")
    return port


def validate_env_name(name: str) -> str:
    """Validate an environment variable name for forwarding.

    Raises:
        ValidationError: If name is not a valid shell identifier
    """
    if not ENV_NAME_PATTERN.match(name):
        raise ValidationError(f"Invalid environment variable name: {name!r}")
    return name
