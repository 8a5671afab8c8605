"""Transport option building.

``build_transport_options`` decides *what* to set from the step inputs;
``TransportOptions.to_connect_kwargs`` lowers that to ``asyncssh.connect``
keyword arguments. Extra client arguments use OpenSSH syntax and are
applied after the structured options, so they override them.
"""

import dataclasses
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ssh_dispatch.config.host_keys import HostKeyPolicy
from ssh_dispatch.errors import ValidationError
from ssh_dispatch.utils.parser import parse_jump_spec
from ssh_dispatch.utils.shell import split_args

if TYPE_CHECKING:
    from ssh_dispatch.config.settings import ActionInputs

logger = logging.getLogger(__name__)

KEEPALIVE_INTERVAL = 15
KEEPALIVE_COUNT_MAX = 3
DEFAULT_LOG_LEVEL = "ERROR"

# OpenSSH LogLevel -> logging level name
LOG_LEVELS = {
    "quiet": "CRITICAL",
    "fatal": "CRITICAL",
    "error": "ERROR",
    "info": "INFO",
    "verbose": "INFO",
    "debug": "DEBUG",
    "debug1": "DEBUG",
    "debug2": "DEBUG",
    "debug3": "DEBUG",
}

# Single-letter flags that expand to a -o option
FLAG_OPTIONS = {
    "-C": ("Compression", "yes"),
    "-A": ("ForwardAgent", "yes"),
    "-t": ("RequestTTY", "yes"),
    "-T": ("RequestTTY", "no"),
    "-q": ("LogLevel", "QUIET"),
    "-v": ("LogLevel", "DEBUG"),
}

# Flags taking a value that maps to a -o option
VALUE_FLAGS = {
    "-p": "Port",
    "-i": "IdentityFile",
    "-J": "ProxyJump",
    "-l": "User",
}


@dataclass(frozen=True)
class TransportOptions:
    """Transport-level options shared by every host connection."""

    port: int = 22
    connect_timeout: int = 30
    keepalive_interval: int = KEEPALIVE_INTERVAL
    keepalive_count_max: int = KEEPALIVE_COUNT_MAX
    log_level: str = DEFAULT_LOG_LEVEL
    host_key_policy: HostKeyPolicy = field(default_factory=HostKeyPolicy)
    request_pty: bool = False
    proxy_jump: str | None = None
    extra_kwargs: tuple[tuple[str, Any], ...] = ()

    def to_connect_kwargs(self) -> dict[str, Any]:
        """Lower the options to ``asyncssh.connect`` keyword arguments.

        Host, username and credentials are supplied by the caller.
        A connect timeout of 0 leaves connection setup unbounded.
        """
        kwargs: dict[str, Any] = {
            "port": self.port,
            "connect_timeout": self.connect_timeout or None,
            "keepalive_interval": self.keepalive_interval,
            "keepalive_count_max": self.keepalive_count_max,
            "known_hosts": self.host_key_policy.known_hosts(),
        }
        client_factory = self.host_key_policy.client_factory()
        if client_factory is not None:
            kwargs["client_factory"] = client_factory

        for name, value in self.extra_kwargs:
            if name == "client_keys":
                kwargs["client_keys"] = [*kwargs.get("client_keys", []), *value]
            else:
                kwargs[name] = value
        return kwargs

    @property
    def term_type(self) -> str | None:
        """Get the terminal type to request, or None for no PTY."""
        return "xterm" if self.request_pty else None


def build_transport_options(inputs: "ActionInputs") -> TransportOptions:
    """Build transport options from step inputs.

    Raises:
        ValidationError: If the extra arguments cannot be parsed
    """
    proxy = inputs.proxy()
    options = TransportOptions(
        port=inputs.port,
        connect_timeout=inputs.connect_timeout,
        host_key_policy=HostKeyPolicy(fingerprint=inputs.fingerprint),
        request_pty=inputs.request_pty,
        proxy_jump=proxy.directive if proxy else None,
    )

    try:
        tokens = split_args(inputs.args)
    except ValueError as e:
        raise ValidationError(f"input 'args' could not be parsed: {e}") from e

    options = apply_extra_args(options, tokens, default_user=inputs.username)
    logger.debug(
        "Transport options: port=%d, connect_timeout=%ds, host_keys=%s, "
        "pty=%s, proxy=%s",
        options.port,
        options.connect_timeout,
        options.host_key_policy.describe(),
        options.request_pty,
        options.proxy_jump,
    )
    return options


def iter_extra_options(tokens: list[str]) -> Iterator[tuple[str, str]]:
    """Translate OpenSSH-style tokens into ``(Name, Value)`` pairs.

    Raises:
        ValidationError: On unknown flags or a flag missing its value
    """
    it = iter(tokens)
    for token in it:
        if token in FLAG_OPTIONS:
            yield FLAG_OPTIONS[token]
            continue

        flag, inline = token[:2], token[2:]
        if flag == "-o" or flag in VALUE_FLAGS:
            value = inline or next(it, None)
            if value is None:
                raise ValidationError(f"Option {flag} in 'args' requires a value")
            if flag in VALUE_FLAGS:
                yield VALUE_FLAGS[flag], value
            else:
                yield _split_option(value)
            continue

        raise ValidationError(f"Unsupported argument in 'args': {token}")


def _split_option(option: str) -> tuple[str, str]:
    """Split ``Name=Value`` or ``Name Value``."""
    if "=" in option:
        name, value = option.split("=", 1)
    else:
        parts = option.split(None, 1)
        if len(parts) != 2:
            raise ValidationError(f"Option -o {option!r} in 'args' has no value")
        name, value = parts
    return name.strip(), value.strip()


def apply_extra_args(
    options: TransportOptions, tokens: list[str], default_user: str
) -> TransportOptions:
    """Apply extra client arguments on top of structured options.

    Returns:
        New TransportOptions; the input is left untouched.

    Raises:
        ValidationError: If an argument or option is not supported
    """
    if not tokens:
        return options

    applier = _OptionApplier(default_user)
    for name, value in iter_extra_options(tokens):
        applier.apply(name, value)

    return dataclasses.replace(
        options,
        extra_kwargs=(*options.extra_kwargs, *applier.kwargs),
        **applier.changes,
    )


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("yes", "true", "on"):
        return True
    if lowered in ("no", "false", "off"):
        return False
    raise ValidationError(f"Option {name} expects yes or no, got {value!r}")


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise ValidationError(f"Option {name} expects an integer, got {value!r}") from e


class _OptionApplier:
    """Collects field changes and extra connect kwargs from options."""

    def __init__(self, default_user: str) -> None:
        self.default_user = default_user
        self.changes: dict[str, Any] = {}
        self.kwargs: list[tuple[str, Any]] = []

    def apply(self, name: str, value: str) -> None:
        handler = OPTION_HANDLERS.get(name.lower())
        if handler is None:
            raise ValidationError(
                f"Unsupported SSH option in 'args': {name}",
                f"Supported options: {', '.join(sorted(OPTION_HANDLERS))}",
            )
        handler(self, name, value)


Handler = Callable[[_OptionApplier, str, str], None]


def _field(field_name: str, parse: Callable[[str, str], Any]) -> Handler:
    def handler(applier: _OptionApplier, name: str, value: str) -> None:
        applier.changes[field_name] = parse(name, value)

    return handler


def _kwarg(kwarg: str, parse: Callable[[str, str], Any]) -> Handler:
    def handler(applier: _OptionApplier, name: str, value: str) -> None:
        applier.kwargs.append((kwarg, parse(name, value)))

    return handler


def _compression(applier: _OptionApplier, name: str, value: str) -> None:
    algs = ["zlib@openssh.com", "zlib"] if _parse_bool(name, value) else ["none"]
    applier.kwargs.append(("compression_algs", algs))


def _strict_host_key_checking(applier: _OptionApplier, name: str, value: str) -> None:
    # yes/accept-new keep the configured policy
    if value.strip().lower() in ("no", "off", "false"):
        applier.changes["host_key_policy"] = HostKeyPolicy()


def _known_hosts_file(applier: _OptionApplier, name: str, value: str) -> None:
    if value.strip().lower() in ("/dev/null", "none"):
        return
    applier.kwargs.append(("known_hosts", value))


def _log_level(applier: _OptionApplier, name: str, value: str) -> None:
    level = LOG_LEVELS.get(value.strip().lower())
    if level is None:
        raise ValidationError(f"Unknown LogLevel in 'args': {value!r}")
    applier.changes["log_level"] = level


def _proxy_jump(applier: _OptionApplier, name: str, value: str) -> None:
    if value.strip().lower() == "none":
        applier.changes["proxy_jump"] = None
        return
    user, host, port = parse_jump_spec(value, applier.default_user)
    applier.changes["proxy_jump"] = f"{user}@{host}:{port}"


def _request_tty(applier: _OptionApplier, name: str, value: str) -> None:
    applier.changes["request_pty"] = value.strip().lower() in ("yes", "force", "true")


def _ignored(applier: _OptionApplier, name: str, value: str) -> None:
    logger.debug("Option %s=%s has no effect, skipping", name, value)


def _string(name: str, value: str) -> str:
    return value.strip()


def _string_list(name: str, value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _single_key(name: str, value: str) -> list[str]:
    return [value.strip()]


OPTION_HANDLERS: dict[str, Handler] = {
    "port": _field("port", _parse_int),
    "connecttimeout": _field("connect_timeout", _parse_int),
    "serveraliveinterval": _field("keepalive_interval", _parse_int),
    "serveralivecountmax": _field("keepalive_count_max", _parse_int),
    "user": _kwarg("username", _string),
    "identityfile": _kwarg("client_keys", _single_key),
    "ciphers": _kwarg("encryption_algs", _string_list),
    "macs": _kwarg("mac_algs", _string_list),
    "kexalgorithms": _kwarg("kex_algs", _string_list),
    "hostkeyalgorithms": _kwarg("server_host_key_algs", _string_list),
    "passwordauthentication": _kwarg("password_auth", _parse_bool),
    "kbdinteractiveauthentication": _kwarg("kbdint_auth", _parse_bool),
    "pubkeyauthentication": _kwarg("public_key_auth", _parse_bool),
    "forwardagent": _kwarg("agent_forwarding", _parse_bool),
    "compression": _compression,
    "stricthostkeychecking": _strict_host_key_checking,
    "userknownhostsfile": _known_hosts_file,
    "loglevel": _log_level,
    "proxyjump": _proxy_jump,
    "requesttty": _request_tty,
    "identitiesonly": _ignored,
}
