"""Exceptions for the host capability module."""


class HostError(Exception):
    """Base exception for all host-related errors."""

    pass


class CommandError(HostError):
    """Raised when a host command exits with a non-zero status."""

    def __init__(self, args: list[str], returncode: int, output: str = ""):
        self.command = list(args)
        self.returncode = returncode
        self.output = output
        message = f"Command '{' '.join(args)}' exited with status {returncode}"
        if output.strip():
            message += f": {output.strip().splitlines()[-1]}"
        super().__init__(message)


class CommandTimeoutError(HostError):
    """Raised when a host command does not finish within its timeout."""

    def __init__(self, args: list[str], timeout: float):
        self.command = list(args)
        self.timeout = timeout
        super().__init__(f"Command '{' '.join(args)}' timed out after {timeout}s")


class PackageManagerError(HostError):
    """Raised when a repository or package operation fails."""

    pass


class ConfigWriteError(HostError):
    """Raised when a configuration file cannot be read or written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot update '{path}': {reason}")


class ServiceNotFoundError(HostError):
    """Raised when a service is not installed on the host.

    The runner records this as a skipped step rather than a failure.
    """

    def __init__(self, service: str):
        self.service = service
        super().__init__(f"Service '{service}' is not installed")
