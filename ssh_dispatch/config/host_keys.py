"""SSH host key verification policy.

Either pins every target to a SHA-256 fingerprint or accepts unseen keys.
No known_hosts file is ever read or written.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

import asyncssh

logger = logging.getLogger(__name__)

FINGERPRINT_HASH = "sha256"


def normalize_fingerprint(fingerprint: str) -> str:
    """Normalize a SHA-256 fingerprint for comparison.

    Accepts both ``SHA256:abc...`` and the bare base64 digest; trailing
    base64 padding is ignored.
    """
    value = fingerprint.strip()
    if value.upper().startswith("SHA256:"):
        value = value[len("SHA256:") :]
    return value.rstrip("=")


class FingerprintVerifyingClient(asyncssh.SSHClient):
    """SSH client that trusts exactly one host key fingerprint."""

    def __init__(self, expected_fingerprint: str) -> None:
        """Initialize client.

        Args:
            expected_fingerprint: SHA-256 fingerprint the server must present
        """
        self._expected = normalize_fingerprint(expected_fingerprint)

    def validate_host_public_key(
        self, host: str, addr: str, port: int, key: asyncssh.SSHKey
    ) -> bool:
        """Accept the host key only if its fingerprint matches."""
        presented = key.get_fingerprint(FINGERPRINT_HASH)
        if normalize_fingerprint(presented) == self._expected:
            logger.debug("Host key for %s:%d matches fingerprint", host, port)
            return True

        logger.error(
            "Host key fingerprint mismatch for %s:%d (presented %s)",
            host,
            port,
            presented,
        )
        return False


@dataclass(frozen=True)
class HostKeyPolicy:
    """Host key verification policy for target connections."""

    fingerprint: str | None = None

    @property
    def strict(self) -> bool:
        """Check if a fingerprint pins the host key."""
        return bool(self.fingerprint)

    def known_hosts(self) -> asyncssh.SSHKnownHosts | None:
        """Get the ``known_hosts`` argument for ``asyncssh.connect``.

        Strict mode uses an empty trust store so every presented key goes
        through the client's fingerprint check. Otherwise verification is
        off and nothing is persisted.
        """
        if self.strict:
            return asyncssh.import_known_hosts("")
        return None

    def client_factory(self) -> Callable[[], asyncssh.SSHClient] | None:
        """Get the ``client_factory`` argument for ``asyncssh.connect``."""
        if not self.fingerprint:
            return None
        fingerprint = self.fingerprint
        return lambda: FingerprintVerifyingClient(fingerprint)

    def describe(self) -> str:
        """Describe the policy for logs."""
        if self.strict:
            return "strict (fingerprint provided)"
        return "accept new (no known_hosts)"
