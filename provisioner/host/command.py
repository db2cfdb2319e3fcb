"""Subprocess wrapper used by every local host handle."""

import logging
import os
import subprocess
from typing import Optional

from .exceptions import CommandError, CommandTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 900.0

# apt prints this on every scripted invocation
APT_CLI_WARNING = "WARNING: apt does not have a stable CLI interface"


class CommandRunner:
    """Runs host commands synchronously with a timeout.

    Commands are executed directly (never through a shell) with
    DEBIAN_FRONTEND=noninteractive so package tools never prompt.

    Example usage:
        runner = CommandRunner(timeout=60)
        output = runner.run(["systemctl", "is-active", "ssh"])
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        env: Optional[dict[str, str]] = None,
    ):
        self._timeout = timeout
        self._env = {**os.environ, "DEBIAN_FRONTEND": "noninteractive", **(env or {})}

    @property
    def timeout(self) -> float:
        return self._timeout

    def run(self, args: list[str], check: bool = True) -> str:
        """Run a command and return its combined, filtered output.

        Args:
            args: Program and arguments.
            check: If True, a non-zero exit status raises CommandError.

        Returns:
            stdout and stderr with apt's CLI warning lines removed.

        Raises:
            CommandError: Non-zero exit status (when check is True), or
                the program does not exist.
            CommandTimeoutError: The command exceeded the timeout.
        """
        logger.debug("Running: %s", " ".join(args))
        try:
            completed = subprocess.run(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self._timeout,
                env=self._env,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandTimeoutError(args, self._timeout) from e
        except FileNotFoundError as e:
            raise CommandError(args, 127, str(e)) from e

        output = "\n".join(
            line
            for line in (completed.stdout or "").splitlines()
            if APT_CLI_WARNING not in line
        )
        if check and completed.returncode != 0:
            raise CommandError(args, completed.returncode, output)
        return output

    def succeeds(self, args: list[str]) -> bool:
        """Return True if the command exits with status 0."""
        try:
            self.run(args, check=True)
        except CommandError:
            return False
        return True
