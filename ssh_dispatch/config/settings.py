"""Step inputs and logging settings from environment variables.

Inputs follow the GitHub Actions convention: input ``script_file`` arrives
as ``INPUT_SCRIPT_FILE``. Empty values count as unset.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from ssh_dispatch.errors import ValidationError
from ssh_dispatch.models import (
    Credential,
    HostTarget,
    KeyCredential,
    PasswordCredential,
    ProxyHop,
)
from ssh_dispatch.utils.parser import parse_hosts
from ssh_dispatch.utils.validation import validate_host, validate_port

logger = logging.getLogger(__name__)

INPUT_PREFIX = "INPUT_"
TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class ActionInputs:
    """Step inputs.

    Secrets are excluded from ``repr`` so the dataclass can be logged.
    """

    host: str = ""
    username: str = ""
    port: int = field(default=22)
    key: str | None = field(default=None, repr=False)
    password: str | None = field(default=None, repr=False)
    passphrase: str | None = field(default=None, repr=False)
    envs: list[str] = field(default_factory=list)
    script: str | None = field(default=None, repr=False)
    script_file: str | None = None
    remote_shell: str = field(default="bash")
    connect_timeout: int = field(default=30)
    command_timeout: int = field(default=600)  # 0 = unlimited
    fingerprint: str | None = None

    # Jump host
    proxy_host: str | None = None
    proxy_port: int = field(default=22)
    proxy_username: str | None = None
    proxy_key: str | None = field(default=None, repr=False)
    proxy_passphrase: str | None = field(default=None, repr=False)

    request_pty: bool = field(default=False)
    args: str = field(default="")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ActionInputs":
        """Load inputs from ``INPUT_*`` environment variables.

        Args:
            environ: Environment mapping; defaults to ``os.environ``

        Returns:
            ActionInputs with values from the environment

        Raises:
            ValidationError: If a numeric input is not an integer
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> str | None:
            value = env.get(INPUT_PREFIX + name.upper())
            return value if value else None

        return cls(
            host=(get("host") or "").strip(),
            username=(get("username") or "").strip(),
            port=cls._get_int(get("port"), "port", 22),
            key=get("key"),
            password=get("password"),
            passphrase=get("passphrase"),
            envs=cls._get_list(get("envs")),
            script=get("script"),
            script_file=get("script_file"),
            remote_shell=(get("remote_shell") or "bash").strip(),
            connect_timeout=cls._get_int(get("connect_timeout"), "connect_timeout", 30),
            command_timeout=cls._get_int(get("command_timeout"), "command_timeout", 600),
            fingerprint=get("fingerprint"),
            proxy_host=get("proxy_host"),
            proxy_port=cls._get_int(get("proxy_port"), "proxy_port", 22),
            proxy_username=get("proxy_username"),
            proxy_key=get("proxy_key"),
            proxy_passphrase=get("proxy_passphrase"),
            request_pty=cls._get_bool(get("request_pty"), False),
            args=get("args") or "",
        )

    @staticmethod
    def _get_int(value: str | None, name: str, default: int) -> int:
        """Parse an integer input.

        Raises:
            ValidationError: If the value is not an integer
        """
        if value is None:
            return default
        try:
            return int(value.strip())
        except ValueError as e:
            raise ValidationError(
                f"input '{name}' must be an integer, got {value!r}"
            ) from e

    @staticmethod
    def _get_bool(value: str | None, default: bool) -> bool:
        """Parse a boolean input."""
        if value is None:
            return default
        return value.strip().lower() in TRUE_VALUES

    @staticmethod
    def _get_list(value: str | None) -> list[str]:
        """Parse a comma-separated list, dropping empty entries."""
        if not value:
            return []
        return [item.strip() for item in value.split(",") if item.strip()]

    def validate(self) -> None:
        """Check required and mutually exclusive inputs.

        Raises:
            ValidationError: On the first problem found
        """
        if not self.host:
            raise ValidationError("input 'host' is required")
        if not self.username:
            raise ValidationError("input 'username' is required")

        if self.key and self.password:
            raise ValidationError(
                "only one of 'key' or 'password' may be provided",
                "Supplying both is ambiguous; remove one of them",
            )
        if not self.key and not self.password:
            raise ValidationError("either 'key' or 'password' must be provided")

        if self.script and self.script_file:
            raise ValidationError(
                "only one of 'script' or 'script_file' may be provided"
            )
        if not self.script and not self.script_file:
            raise ValidationError("either 'script' or 'script_file' must be provided")

        validate_port(self.port, "port")
        for name in ("connect_timeout", "command_timeout"):
            if getattr(self, name) < 0:
                raise ValidationError(f"input '{name}' must not be negative")

        if not self.remote_shell:
            raise ValidationError("input 'remote_shell' must not be empty")

        if self.proxy_key and not self.proxy_host:
            raise ValidationError("input 'proxy_key' requires 'proxy_host'")
        if self.proxy_host:
            validate_host(self.proxy_host.strip())
            validate_port(self.proxy_port, "proxy_port")

        if not self.targets():
            raise ValidationError("input 'host' contains no hosts")

    def targets(self) -> list[HostTarget]:
        """Get the host targets in listed order."""
        return parse_hosts(self.host, self.port)

    def credential(self) -> Credential:
        """Get the primary credential."""
        if self.key:
            return KeyCredential(material=self.key, passphrase=self.passphrase)
        return PasswordCredential(secret=self.password or "")

    def proxy(self) -> ProxyHop | None:
        """Get the jump host, if one is configured."""
        if not self.proxy_host:
            return None
        credential = None
        if self.proxy_key:
            credential = KeyCredential(
                material=self.proxy_key, passphrase=self.proxy_passphrase
            )
        return ProxyHop(
            host=self.proxy_host.strip(),
            port=self.proxy_port,
            username=(self.proxy_username or self.username).strip(),
            credential=credential,
        )


@dataclass
class LogSettings:
    """Logging settings from environment."""

    log_level: str = field(default="INFO")
    use_colors: bool = field(default=True)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "LogSettings":
        """Load logging settings.

        ``SSH_DISPATCH_LOG_LEVEL`` wins; otherwise a debug-enabled runner
        (``RUNNER_DEBUG=1``) selects DEBUG.
        """
        env = os.environ if environ is None else environ

        level = env.get("SSH_DISPATCH_LOG_LEVEL", "").upper()
        if not level:
            level = "DEBUG" if env.get("RUNNER_DEBUG") == "1" else "INFO"

        colors = env.get("SSH_DISPATCH_LOG_COLORS", "true").lower() != "false"
        return cls(log_level=level, use_colors=colors)
