"""Host list and jump host directive parsing."""

from ssh_dispatch.errors import ValidationError
from ssh_dispatch.models import HostTarget
from ssh_dispatch.utils.validation import validate_host, validate_port


def parse_hosts(hosts: str, port: int = 22) -> list[HostTarget]:
    """Parse a comma-separated host list.

    Entries are trimmed; empty entries are dropped. Order and duplicates
    are preserved.

    Returns:
        List of HostTarget in listed order.

    Raises:
        ValidationError: If an entry is not a valid host name.
    """
    targets = []
    for raw in hosts.split(","):
        address = raw.strip()
        if not address:
            continue
        targets.append(HostTarget(address=validate_host(address), port=port))
    return targets


def parse_jump_spec(spec: str, default_user: str) -> tuple[str, str, int]:
    """Parse a ``[user@]host[:port]`` jump host directive.

    Returns:
        Tuple of (username, host, port).

    Raises:
        ValidationError: If the directive is malformed.
    """
    spec = spec.strip()
    if "," in spec:
        raise ValidationError(f"Only a single jump host is supported: {spec}")

    user = default_user
    if "@" in spec:
        user, spec = spec.rsplit("@", 1)
        if not user:
            raise ValidationError(f"Empty user in jump host directive: {spec}")

    port = 22
    if spec.count(":") == 1:
        spec, port_str = spec.split(":", 1)
        try:
            port = int(port_str)
        except ValueError as e:
            raise ValidationError(f"Invalid jump host port: {port_str!r}") from e

    return user, validate_host(spec), validate_port(port, "proxy_port")
