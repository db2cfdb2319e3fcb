"""Abstract interfaces for everything a step may touch on the host."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable


class PackageManager(ABC):
    """Interface to the host's package manager.

    Implementations:
    - AptPackageManager: apt-get / dpkg-query / add-apt-repository
    - InMemoryPackageManager: For testing
    """

    @abstractmethod
    def has_repository(self, repository: str) -> bool:
        """Check if a package repository is already configured.

        Args:
            repository: Repository spec, e.g. "ppa:owner/name"

        Returns:
            True if the repository is already a package source
        """
        pass

    @abstractmethod
    def add_repository(self, repository: str) -> None:
        """Add a package repository.

        Raises:
            PackageManagerError: If the repository cannot be added
        """
        pass

    @abstractmethod
    def refresh(self) -> None:
        """Refresh the package index.

        Raises:
            PackageManagerError: If the index cannot be refreshed
        """
        pass

    @abstractmethod
    def is_installed(self, package: str) -> bool:
        """Check if a package is installed."""
        pass

    @abstractmethod
    def install(self, packages: list[str]) -> None:
        """Install packages. Already installed packages are not an error.

        Raises:
            PackageManagerError: If installation fails
        """
        pass


class FileSystem(ABC):
    """Interface to the host filesystem.

    All paths are absolute host paths such as "/etc/ssh/sshd_config".
    """

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def is_file(self, path: str) -> bool:
        pass

    @abstractmethod
    def is_dir(self, path: str) -> bool:
        pass

    @abstractmethod
    def read_text(self, path: str) -> str:
        """Read a text file.

        Raises:
            ConfigWriteError: If the file cannot be read
        """
        pass

    @abstractmethod
    def write_text(self, path: str, content: str) -> None:
        """Replace the contents of a text file, creating it if needed.

        Raises:
            ConfigWriteError: If the file cannot be written
        """
        pass

    @abstractmethod
    def size(self, path: str) -> int:
        """Return the size of a file in bytes."""
        pass

    @abstractmethod
    def get_mode(self, path: str) -> int:
        """Return the permission bits of a file (e.g. 0o755)."""
        pass

    @abstractmethod
    def set_mode(self, path: str, mode: int) -> None:
        pass

    @abstractmethod
    def rename(self, source: str, destination: str) -> None:
        pass

    @abstractmethod
    def copy(self, source: str, destination: str) -> None:
        pass

    @abstractmethod
    def list_dir(self, path: str) -> list[str]:
        """Return the absolute paths of a directory's entries, sorted.

        A missing directory yields an empty list.
        """
        pass


class ServiceManager(ABC):
    """Interface to the host's service manager."""

    @abstractmethod
    def exists(self, service: str) -> bool:
        """Check if a unit named ``<service>.service`` is known."""
        pass

    @abstractmethod
    def is_enabled(self, service: str) -> bool:
        pass

    @abstractmethod
    def is_active(self, service: str) -> bool:
        pass

    @abstractmethod
    def enable(self, service: str) -> None:
        pass

    @abstractmethod
    def start(self, service: str) -> None:
        pass

    @abstractmethod
    def restart(self, service: str) -> None:
        pass


class Clock(ABC):
    """Interface to the host's time settings."""

    @abstractmethod
    def get_timezone(self) -> str:
        pass

    @abstractmethod
    def set_timezone(self, timezone: str) -> None:
        pass


@dataclass
class HostCapability:
    """Everything the provisioning steps are allowed to touch.

    Attributes:
        packages: Package manager handle.
        files: Filesystem handle.
        services: Service manager handle.
        clock: Time settings handle.
        privilege_probe: Returns True when running with elevated privilege.
    """

    packages: PackageManager
    files: FileSystem
    services: ServiceManager
    clock: Clock
    privilege_probe: Callable[[], bool]

    def is_privileged(self) -> bool:
        return self.privilege_probe()
