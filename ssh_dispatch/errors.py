"""Exception hierarchy for ssh-dispatch.

Fatal errors stop the run before any host is contacted. Host failures are
caught at the single-host boundary and recorded as that host's outcome.
"""


class DispatchError(Exception):
    """Base exception for all ssh-dispatch errors."""

    def __init__(self, message: str, context: str | None = None):
        """Initialize error.

        Args:
            message: Human readable description
            context: Optional extra detail appended on its own line
        """
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class ValidationError(DispatchError):
    """Missing or conflicting configuration."""

    pass


class AuthLoadError(DispatchError):
    """Credential material rejected while loading it."""

    pass


class MissingDependencyError(DispatchError):
    """A required helper tool is unavailable and could not be installed."""

    pass


class ScriptNotFoundError(DispatchError):
    """The configured script file does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"script_file not found: {path}")


class ScriptReadError(DispatchError):
    """The configured script file exists but cannot be read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"script_file could not be read: {path}", reason)


class HostFailure(DispatchError):
    """Failure scoped to a single host."""

    def __init__(self, host: str, message: str, context: str | None = None):
        self.host = host
        super().__init__(message, context)


class ConnectionFailure(HostFailure):
    """Transport or authentication failure reaching a host."""

    def __init__(self, host: str, original_error: Exception):
        """Initialize connection failure.

        Args:
            host: Address of the host that could not be reached
            original_error: Exception raised by the transport
        """
        self.original_error = original_error
        super().__init__(host, f"Connection to {host} failed: {original_error}")


class RemoteTimeout(HostFailure):
    """The remote command exceeded its time limit."""

    def __init__(self, host: str, timeout: int):
        self.timeout = timeout
        super().__init__(host, f"Command timed out on {host} after {timeout}s")


class RemoteNonZeroExit(HostFailure):
    """The remote command returned a nonzero exit code."""

    def __init__(self, host: str, exit_code: int):
        self.exit_code = exit_code
        super().__init__(
            host, f"Remote script failed on {host} with exit code {exit_code}"
        )
