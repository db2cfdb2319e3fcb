"""Abstract interface for provisioning steps."""

from abc import ABC, abstractmethod
from typing import Any

from provisioner.host import HostCapability


class Step(ABC):
    """One named, idempotent unit of configuration work.

    Implementations should:
    - Report an already-present effect from check() instead of redoing it
    - Touch the host only through the HostCapability they are given
    - Raise host exceptions (ConfigWriteError, PackageManagerError, ...)
      rather than returning error values

    Example usage:
        step = WriteFileStep("cpu_governor", "/etc/default/cpufrequtils", 'GOVERNOR="performance"\\n')
        if not step.check(host):
            details = step.apply(host)

    Attributes:
        name: Unique name used in reports and progress output.
        critical: If True, a failure aborts the remaining sequence.
        runs_last: Marks a destructive step that must end the sequence.
    """

    description = ""

    def __init__(self, name: str, critical: bool = False, runs_last: bool = False):
        self.name = name
        self.critical = critical
        self.runs_last = runs_last

    @abstractmethod
    def check(self, host: HostCapability) -> bool:
        """Check whether the step's effect is already present.

        Args:
            host: Host handles to inspect.

        Returns:
            True if there is nothing to do and the step should be skipped.

        Raises:
            ServiceNotFoundError: The step targets a service the host lacks.
        """
        pass

    @abstractmethod
    def apply(self, host: HostCapability) -> dict[str, Any]:
        """Perform the step.

        Args:
            host: Host handles to change.

        Returns:
            Details to include in the step's report entry.
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, critical={self.critical})"
