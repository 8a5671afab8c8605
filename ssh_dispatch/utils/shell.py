"""Shell quoting utilities."""

import shlex


def quote_single(value: str) -> str:
    """Wrap a value in single quotes for a POSIX shell.

    Each embedded single quote becomes ``'\\''``: close the quoted string,
    emit an escaped quote, reopen quoting.

    Args:
        value: Literal value to quote

    Returns:
        Single-quoted string that a POSIX shell reads back as ``value``
    """
    return "'" + value.replace("'", "'\\''") + "'"


def export_statement(name: str, value: str) -> str:
    """Build an ``export NAME='value'`` statement.

    Args:
        name: Variable name (must already be a valid identifier)
        value: Literal value

    Returns:
        Shell export statement without trailing newline
    """
    return f"export {name}={quote_single(value)}"


def split_args(args: str) -> list[str]:
    """Split extra client arguments into tokens.

    Whitespace separates tokens; shell-style quotes keep a token such as
    ``-o "ProxyCommand none"`` together.

    Raises:
        ValueError: If quotes are unbalanced
    """
    return shlex.split(args)
