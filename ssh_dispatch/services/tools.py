"""Auxiliary tool lookup with package-manager fallback."""

import asyncio
import logging
import os
import shutil

from ssh_dispatch.errors import MissingDependencyError

logger = logging.getLogger(__name__)


async def _run(*argv: str) -> int:
    """Run a command, inheriting stdout/stderr, and return its exit code."""
    process = await asyncio.create_subprocess_exec(*argv)
    return await process.wait()


def _privilege_prefix() -> list[str]:
    """Get the prefix needed to run the package manager."""
    if hasattr(os, "geteuid") and os.geteuid() != 0 and shutil.which("sudo"):
        return ["sudo", "-n"]
    return []


async def ensure_tool(binary: str, package: str, purpose: str) -> str:
    """Make sure a helper binary is on PATH, installing it if needed.

    Installation uses apt-get and is not time bounded; it inherits the
    job's own timeout.

    Args:
        binary: Executable name to look up
        package: Package providing the executable
        purpose: What the tool is needed for (used in messages)

    Returns:
        Absolute path of the executable

    Raises:
        MissingDependencyError: If the tool is missing and cannot be installed
    """
    path = shutil.which(binary)
    if path:
        return path

    logger.warning("%s not found, attempting install of %s", binary, package)
    if not shutil.which("apt-get"):
        raise MissingDependencyError(
            f"{purpose} requires '{binary}' but it is not installed",
            f"Install the '{package}' package on the runner",
        )

    prefix = _privilege_prefix()
    try:
        if await _run(*prefix, "apt-get", "update", "-qq") != 0:
            raise MissingDependencyError(
                f"{purpose} requires '{binary}' but it could not be installed",
                "apt-get update failed",
            )
        if await _run(*prefix, "apt-get", "install", "-y", "-qq", package) != 0:
            raise MissingDependencyError(
                f"{purpose} requires '{binary}' but it could not be installed",
                f"apt-get install {package} failed",
            )
    except OSError as e:
        raise MissingDependencyError(
            f"{purpose} requires '{binary}' but it could not be installed", str(e)
        ) from e

    path = shutil.which(binary)
    if not path:
        raise MissingDependencyError(
            f"{purpose} requires '{binary}' but it is still missing after install"
        )
    logger.info("Installed %s (%s)", package, path)
    return path
