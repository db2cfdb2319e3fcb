"""In-memory host handles for testing.

These keep all host state in plain dicts and sets, so the whole step
sequence can be exercised (and re-run) without touching a real machine.
"""

import posixpath
from typing import Optional

from .capability import Clock, FileSystem, HostCapability, PackageManager, ServiceManager
from .exceptions import ConfigWriteError, PackageManagerError, ServiceNotFoundError


class InMemoryPackageManager(PackageManager):
    """Package manager that records repositories and installed packages.

    Args:
        installed: Packages already present on the fake host.
        repositories: Repositories already configured.
        unavailable: Packages that fail to install.
    """

    def __init__(
        self,
        installed: Optional[set[str]] = None,
        repositories: Optional[set[str]] = None,
        unavailable: Optional[set[str]] = None,
    ) -> None:
        self.installed: set[str] = set(installed or ())
        self.repositories: set[str] = set(repositories or ())
        self.unavailable: set[str] = set(unavailable or ())
        self.refresh_count = 0
        self.install_calls: list[list[str]] = []

    def has_repository(self, repository: str) -> bool:
        return repository in self.repositories

    def add_repository(self, repository: str) -> None:
        self.repositories.add(repository)

    def refresh(self) -> None:
        self.refresh_count += 1

    def is_installed(self, package: str) -> bool:
        return package in self.installed

    def install(self, packages: list[str]) -> None:
        self.install_calls.append(list(packages))
        missing = [p for p in packages if p in self.unavailable]
        if missing:
            raise PackageManagerError(f"Unable to locate package {missing[0]}")
        self.installed.update(packages)


class InMemoryFileSystem(FileSystem):
    """Filesystem kept as a mapping of path to (content, mode)."""

    def __init__(self, files: Optional[dict[str, str]] = None) -> None:
        self._files: dict[str, tuple[str, int]] = {}
        self._dirs: set[str] = {"/"}
        self.read_only: set[str] = set()
        for path, content in (files or {}).items():
            self.write_text(path, content)

    def _add_parents(self, path: str) -> None:
        parent = posixpath.dirname(path)
        while parent and parent not in self._dirs:
            self._dirs.add(parent)
            parent = posixpath.dirname(parent)

    def make_dir(self, path: str) -> None:
        self._dirs.add(path)
        self._add_parents(path)

    def exists(self, path: str) -> bool:
        return path in self._files or path in self._dirs

    def is_file(self, path: str) -> bool:
        return path in self._files

    def is_dir(self, path: str) -> bool:
        return path in self._dirs

    def read_text(self, path: str) -> str:
        if path not in self._files:
            raise ConfigWriteError(path, "No such file or directory")
        return self._files[path][0]

    def write_text(self, path: str, content: str) -> None:
        if path in self.read_only:
            raise ConfigWriteError(path, "Permission denied")
        mode = self._files[path][1] if path in self._files else 0o644
        self._files[path] = (content, mode)
        self._add_parents(path)

    def size(self, path: str) -> int:
        return len(self._files[path][0].encode("utf-8"))

    def get_mode(self, path: str) -> int:
        return self._files[path][1]

    def set_mode(self, path: str, mode: int) -> None:
        if path not in self._files:
            raise ConfigWriteError(path, "No such file or directory")
        self._files[path] = (self._files[path][0], mode)

    def rename(self, source: str, destination: str) -> None:
        if source not in self._files:
            raise ConfigWriteError(source, "No such file or directory")
        self._files[destination] = self._files.pop(source)

    def copy(self, source: str, destination: str) -> None:
        if source not in self._files:
            raise ConfigWriteError(source, "No such file or directory")
        self._files[destination] = self._files[source]
        self._add_parents(destination)

    def list_dir(self, path: str) -> list[str]:
        entries = {
            p for p in (*self._files, *self._dirs)
            if p != path and posixpath.dirname(p) == path
        }
        return sorted(entries)


class InMemoryServiceManager(ServiceManager):
    """Service manager over a dict of service name to state.

    Args:
        services: Installed services, mapped to {"enabled": bool, "active": bool}.
    """

    def __init__(self, services: Optional[dict[str, dict[str, bool]]] = None) -> None:
        self.services: dict[str, dict[str, bool]] = {
            name: {"enabled": False, "active": False, **state}
            for name, state in (services or {}).items()
        }
        self.restarted: list[str] = []

    def _get(self, service: str) -> dict[str, bool]:
        if service not in self.services:
            raise ServiceNotFoundError(service)
        return self.services[service]

    def exists(self, service: str) -> bool:
        return service in self.services

    def is_enabled(self, service: str) -> bool:
        return self._get(service)["enabled"]

    def is_active(self, service: str) -> bool:
        return self._get(service)["active"]

    def enable(self, service: str) -> None:
        self._get(service)["enabled"] = True

    def start(self, service: str) -> None:
        self._get(service)["active"] = True

    def restart(self, service: str) -> None:
        self._get(service)["active"] = True
        self.restarted.append(service)


class InMemoryClock(Clock):
    def __init__(self, timezone: str = "Etc/UTC") -> None:
        self.timezone = timezone

    def get_timezone(self) -> str:
        return self.timezone

    def set_timezone(self, timezone: str) -> None:
        self.timezone = timezone


def create_in_memory_host(
    privileged: bool = True,
    packages: Optional[InMemoryPackageManager] = None,
    files: Optional[InMemoryFileSystem] = None,
    services: Optional[InMemoryServiceManager] = None,
    clock: Optional[InMemoryClock] = None,
) -> HostCapability:
    """Build a HostCapability whose handles are all in-memory fakes."""
    return HostCapability(
        packages=packages or InMemoryPackageManager(),
        files=files or InMemoryFileSystem(),
        services=services or InMemoryServiceManager(),
        clock=clock or InMemoryClock(),
        privilege_probe=lambda: privileged,
    )
