"""Exceptions for the runner module."""


class RunnerError(Exception):
    """Base exception for all runner errors."""

    pass


class PrivilegeError(RunnerError):
    """Raised when the runner lacks the elevated privilege steps require."""

    def __init__(self, message: str = "Please run this command as root or using sudo."):
        super().__init__(message)


class StepOrderError(RunnerError):
    """Raised when a step sequence cannot be run as declared.

    Step names must be unique, and a step marked runs_last must be the
    final step of the sequence.
    """

    pass
