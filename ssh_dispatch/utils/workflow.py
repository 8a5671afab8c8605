"""GitHub Actions workflow command helpers.

Annotations and log groups are plain lines on stdout; step outputs are
appended to the file named by ``GITHUB_OUTPUT``.
"""

import logging
import os
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TextIO

logger = logging.getLogger(__name__)


def escape_data(value: str) -> str:
    """Escape a workflow command message."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _emit(line: str, stream: TextIO | None) -> None:
    stream = stream or sys.stdout
    stream.write(line + "\n")
    stream.flush()


def error(message: str, stream: TextIO | None = None) -> None:
    """Emit an ``::error::`` annotation."""
    _emit(f"::error::{escape_data(message)}", stream)


def warning(message: str, stream: TextIO | None = None) -> None:
    """Emit a ``::warning::`` annotation."""
    _emit(f"::warning::{escape_data(message)}", stream)


def notice(message: str, stream: TextIO | None = None) -> None:
    """Emit a plain log line."""
    _emit(message, stream)


@contextmanager
def group(title: str, stream: TextIO | None = None) -> Iterator[None]:
    """Wrap everything written inside the block in a collapsible log group."""
    _emit(f"::group::{escape_data(title)}", stream)
    try:
        yield
    finally:
        _emit("::endgroup::", stream)


def set_output(name: str, value: str, output_file: str | None = None) -> bool:
    """Write a (possibly multi-line) step output.

    Uses the heredoc form with a random delimiter so the value cannot
    terminate the block early.

    Args:
        name: Output name
        value: Output value
        output_file: Path of the output file; defaults to ``GITHUB_OUTPUT``

    Returns:
        True if the output was written, False if no output file is configured.
    """
    output_file = output_file or os.getenv("GITHUB_OUTPUT")
    if not output_file:
        warning(f"GITHUB_OUTPUT is not set, skipping output '{name}'")
        return False

    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    if not value.endswith("\n"):
        value += "\n"

    with Path(output_file).open("a", encoding="utf-8") as f:
        f.write(f"{name}<<{delimiter}\n{value}{delimiter}\n")

    logger.debug("Wrote output '%s' (%d chars)", name, len(value))
    return True
