"""Script payload assembly.

The payload is built once and piped unchanged to every host's shell.
"""

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from ssh_dispatch.errors import ScriptNotFoundError, ScriptReadError
from ssh_dispatch.utils.shell import export_statement
from ssh_dispatch.utils.validation import validate_env_name

logger = logging.getLogger(__name__)

# Error handler shared by decoding the script file and encoding the payload
PAYLOAD_ERRORS = "surrogateescape"


def resolve_script_body(script: str | None, script_file: str | None) -> str:
    """Resolve the script source to text.

    Exactly one source is expected to be set; a file path wins if both are.
    File bytes that are not valid UTF-8 are kept as surrogate escapes and
    restored unchanged when the payload is encoded.

    Raises:
        ScriptNotFoundError: If ``script_file`` does not exist
        ScriptReadError: If ``script_file`` cannot be read
    """
    if script_file:
        path = Path(script_file)
        if not path.is_file():
            raise ScriptNotFoundError(script_file)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ScriptReadError(script_file, str(e)) from e
        return data.decode("utf-8", errors=PAYLOAD_ERRORS)
    return script or ""


def build_env_preamble(names: Iterable[str], environ: Mapping[str, str]) -> list[str]:
    """Build export statements for forwarded environment variables.

    Names are looked up in ``environ`` in the given order. Unset or empty
    variables are skipped; duplicates are exported once per occurrence.

    Args:
        names: Variable names to forward
        environ: Snapshot of the invoking process's environment

    Returns:
        One ``export NAME='value'`` statement per forwarded variable

    Raises:
        ValidationError: If a name is not a valid shell identifier
    """
    lines = []
    for raw in names:
        name = raw.strip()
        if not name:
            continue
        validate_env_name(name)

        value = environ.get(name, "")
        if value:
            lines.append(export_statement(name, value))
            logger.info("  -> %s (set)", name)
        else:
            logger.info("  -> %s (empty/unset, skipping)", name)
    return lines


def assemble_payload(
    body: str,
    env_names: Iterable[str] = (),
    environ: Mapping[str, str] | None = None,
) -> str:
    """Assemble the final script payload.

    Returns:
        Export preamble (one newline-terminated line per variable)
        followed by the raw script body.
    """
    preamble = build_env_preamble(env_names, environ or {})
    return "".join(f"{line}\n" for line in preamble) + body


def encode_payload(payload: str) -> bytes:
    """Encode the payload for the remote shell's stdin.

    Surrogate escapes from a non-UTF-8 script file become the original
    bytes again.
    """
    return payload.encode("utf-8", errors=PAYLOAD_ERRORS)
