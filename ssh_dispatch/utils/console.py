"""Colorful console logging formatter with UTC timestamps."""

import logging
import re
from datetime import datetime
from zoneinfo import ZoneInfo

# ANSI color codes
COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    # Foreground colors
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "magenta": "\033[35m",
    "cyan": "\033[36m",
    "white": "\033[37m",
    # Bright foreground colors
    "bright_black": "\033[90m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
    "bright_yellow": "\033[93m",
    "bright_blue": "\033[94m",
    "bright_magenta": "\033[95m",
    "bright_cyan": "\033[96m",
    # Background colors
    "bg_red": "\033[41m",
}

# Log level colors
LEVEL_COLORS = {
    "DEBUG": COLORS["bright_black"],
    "INFO": COLORS["bright_green"],
    "WARNING": COLORS["bright_yellow"],
    "ERROR": COLORS["bright_red"],
    "CRITICAL": COLORS["bg_red"] + COLORS["white"] + COLORS["bold"],
}

# Component colors for logger names
COMPONENT_COLORS = {
    "ssh_dispatch.services.credentials": COLORS["bright_magenta"],
    "ssh_dispatch.services.agent": COLORS["magenta"],
    "ssh_dispatch.services.executors": COLORS["bright_blue"],
    "ssh_dispatch.services.connection": COLORS["blue"],
    "ssh_dispatch.services": COLORS["cyan"],
    "ssh_dispatch.config": COLORS["green"],
    "default": COLORS["white"],
}

UTC = ZoneInfo("UTC")

SSH_PATTERN = re.compile(r"(\w[\w\.\-]*@[\w\.\-]+:\d+)")
SECONDS_PATTERN = re.compile(r"(\b\d+\.?\d*s\b)")


class ColorfulFormatter(logging.Formatter):
    """Colorful log formatter with UTC timestamps and component highlighting."""

    def __init__(self, use_colors: bool = True) -> None:
        """Initialize the formatter.

        Args:
            use_colors: Whether to use ANSI colors.
        """
        super().__init__()
        self.use_colors = use_colors

    def _colorize(self, text: str, color: str) -> str:
        """Apply color to text if colors are enabled."""
        if not self.use_colors:
            return text
        return f"{color}{text}{COLORS['reset']}"

    def _get_component_color(self, name: str) -> str:
        """Get color for a logger name/component."""
        for prefix, color in COMPONENT_COLORS.items():
            if prefix != "default" and name.startswith(prefix):
                return color
        return COMPONENT_COLORS["default"]

    def _format_timestamp(self, record: logging.LogRecord) -> str:
        """Format timestamp in UTC."""
        dt = datetime.fromtimestamp(record.created, tz=UTC)
        return f"{dt.strftime('%H:%M:%S')}.{int(record.msecs):03d}"

    def _format_level(self, record: logging.LogRecord) -> str:
        """Format log level with color and fixed width."""
        level = record.levelname
        color = LEVEL_COLORS.get(level, COLORS["white"])
        return self._colorize(f"{level:<8}", color)

    def _format_component(self, record: logging.LogRecord) -> str:
        """Format component/logger name with color."""
        name = record.name
        if name.startswith("ssh_dispatch."):
            name = name[len("ssh_dispatch.") :]
        color = self._get_component_color(record.name)
        return self._colorize(f"{name:<20}", color)

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with colors and UTC timestamp."""
        timestamp = self._colorize(self._format_timestamp(record), COLORS["dim"])
        level = self._format_level(record)
        component = self._format_component(record)
        sep = self._colorize("|", COLORS["dim"])
        message = self._highlight_message(record.getMessage())

        line = f"{timestamp} {sep} {level} {sep} {component} {sep} {message}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line

    def _highlight_message(self, message: str) -> str:
        """Highlight user@host:port targets and durations."""
        if not self.use_colors:
            return message

        if "@" in message and ":" in message:
            message = SSH_PATTERN.sub(
                f"{COLORS['bright_magenta']}\\1{COLORS['reset']}", message
            )

        message = SECONDS_PATTERN.sub(
            f"{COLORS['bright_yellow']}\\1{COLORS['reset']}", message
        )
        return message


class DispatchFormatter(ColorfulFormatter):
    """Formatter adding a short visual indicator per lifecycle event."""

    def format(self, record: logging.LogRecord) -> str:
        """Prefix the formatted line with an event indicator."""
        base = super().format(record)
        if not self.use_colors:
            return base

        message = record.getMessage().lower()
        if "timed out" in message or "failed" in message:
            return f"{COLORS['bright_red']}!!{COLORS['reset']}  {base}"
        elif "skipping" in message or "disabled" in message:
            return f"{COLORS['bright_yellow']}!{COLORS['reset']}   {base}"
        elif "succeeded" in message or "completed" in message:
            return f"{COLORS['bright_green']}OK{COLORS['reset']}  {base}"
        elif "connecting" in message or "loaded" in message:
            return f"{COLORS['bright_cyan']}+{COLORS['reset']}   {base}"
        elif "tearing down" in message or "removing" in message:
            return f"{COLORS['bright_yellow']}-{COLORS['reset']}   {base}"

        return f"    {base}"


def configure_logging(level: str = "INFO", use_colors: bool = True) -> logging.Logger:
    """Attach a stderr handler with DispatchFormatter to the package logger.

    Only adds a handler if none is configured yet.

    Returns:
        The ``ssh_dispatch`` logger.
    """
    import sys

    if not sys.stderr.isatty():
        use_colors = False

    logger = logging.getLogger("ssh_dispatch")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(DispatchFormatter(use_colors=use_colors))
        logger.addHandler(handler)
        logger.propagate = False

    return logger
