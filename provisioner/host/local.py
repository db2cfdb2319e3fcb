"""Host handles backed by the real machine: apt, pathlib, systemd, timedatectl."""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional

from .capability import Clock, FileSystem, HostCapability, PackageManager, ServiceManager
from .command import DEFAULT_TIMEOUT, CommandRunner
from .exceptions import (
    CommandError,
    CommandTimeoutError,
    ConfigWriteError,
    PackageManagerError,
)

logger = logging.getLogger(__name__)

APT_SOURCES = ["/etc/apt/sources.list", "/etc/apt/sources.list.d"]


class LocalFileSystem(FileSystem):
    """Filesystem handle over pathlib.

    Host paths are resolved under ``root``, so the same steps can
    configure a mounted image (root="/mnt/target") or a test directory.
    """

    def __init__(self, root: str | Path = "/"):
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> Path:
        return self._root / path.lstrip("/")

    def _to_host_path(self, local: Path) -> str:
        return "/" + local.relative_to(self._root).as_posix()

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def is_file(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def is_dir(self, path: str) -> bool:
        return self._resolve(path).is_dir()

    def read_text(self, path: str) -> str:
        # Undecodable bytes and CRLF endings survive a read/write cycle.
        try:
            with self._resolve(path).open(
                encoding="utf-8", errors="surrogateescape", newline=""
            ) as fh:
                return fh.read()
        except OSError as e:
            raise ConfigWriteError(path, e.strerror or str(e)) from e
        except UnicodeError as e:
            raise ConfigWriteError(path, str(e)) from e

    def write_text(self, path: str, content: str) -> None:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(
                content, encoding="utf-8", errors="surrogateescape", newline=""
            )
        except OSError as e:
            raise ConfigWriteError(path, e.strerror or str(e)) from e
        except UnicodeError as e:
            raise ConfigWriteError(path, str(e)) from e

    def size(self, path: str) -> int:
        return self._resolve(path).stat().st_size

    def get_mode(self, path: str) -> int:
        return self._resolve(path).stat().st_mode & 0o7777

    def set_mode(self, path: str, mode: int) -> None:
        try:
            self._resolve(path).chmod(mode)
        except OSError as e:
            raise ConfigWriteError(path, e.strerror or str(e)) from e

    def rename(self, source: str, destination: str) -> None:
        try:
            self._resolve(source).rename(self._resolve(destination))
        except OSError as e:
            raise ConfigWriteError(source, e.strerror or str(e)) from e

    def copy(self, source: str, destination: str) -> None:
        try:
            shutil.copy2(self._resolve(source), self._resolve(destination))
        except OSError as e:
            raise ConfigWriteError(destination, e.strerror or str(e)) from e

    def list_dir(self, path: str) -> list[str]:
        directory = self._resolve(path)
        if not directory.is_dir():
            return []
        return sorted(self._to_host_path(entry) for entry in directory.iterdir())


class AptPackageManager(PackageManager):
    """Package manager handle for Debian/Ubuntu hosts."""

    def __init__(self, runner: CommandRunner, files: FileSystem):
        self._runner = runner
        self._files = files

    def _run(self, args: list[str]) -> str:
        try:
            return self._runner.run(args)
        except (CommandError, CommandTimeoutError) as e:
            raise PackageManagerError(str(e)) from e

    @staticmethod
    def _source_marker(repository: str) -> str:
        # ppa:owner/name is published under .../owner/name/ubuntu
        if repository.startswith("ppa:"):
            return "/" + repository[len("ppa:"):].strip("/") + "/"
        return repository

    def has_repository(self, repository: str) -> bool:
        marker = self._source_marker(repository)
        candidates: list[str] = []
        for source in APT_SOURCES:
            if self._files.is_dir(source):
                candidates.extend(self._files.list_dir(source))
            elif self._files.is_file(source):
                candidates.append(source)

        for path in candidates:
            if not self._files.is_file(path):
                continue
            if marker in self._files.read_text(path):
                return True
        return False

    def add_repository(self, repository: str) -> None:
        logger.info("Adding package repository %s", repository)
        self._run(["add-apt-repository", "-y", repository])

    def refresh(self) -> None:
        logger.info("Updating package lists")
        self._run(["apt-get", "update", "-y"])

    def is_installed(self, package: str) -> bool:
        try:
            status = self._runner.run(["dpkg-query", "-W", "-f=${Status}", package])
        except CommandError:
            return False
        return "install ok installed" in status

    def install(self, packages: list[str]) -> None:
        if not packages:
            return
        logger.info("Installing %d packages: %s", len(packages), " ".join(packages))
        self._run(["apt-get", "install", "-y", *packages])


class SystemdServiceManager(ServiceManager):
    """Service manager handle over systemctl."""

    def __init__(self, runner: CommandRunner):
        self._runner = runner

    def exists(self, service: str) -> bool:
        unit = f"{service}.service"
        output = self._runner.run(
            ["systemctl", "list-units", "--full", "--all", "--plain", "--no-legend"]
        )
        # Units referenced by others are listed with LOAD "not-found".
        for line in output.splitlines():
            fields = line.split()
            if len(fields) >= 2 and fields[0] == unit:
                return fields[1] == "loaded"
        return False

    def is_enabled(self, service: str) -> bool:
        return self._runner.succeeds(["systemctl", "is-enabled", "--quiet", service])

    def is_active(self, service: str) -> bool:
        return self._runner.succeeds(["systemctl", "is-active", "--quiet", service])

    def enable(self, service: str) -> None:
        self._runner.run(["systemctl", "enable", service])

    def start(self, service: str) -> None:
        self._runner.run(["systemctl", "start", service])

    def restart(self, service: str) -> None:
        self._runner.run(["systemctl", "restart", service])


class TimedatectlClock(Clock):
    """Time settings handle over timedatectl."""

    def __init__(self, runner: CommandRunner):
        self._runner = runner

    def get_timezone(self) -> str:
        return self._runner.run(
            ["timedatectl", "show", "--property=Timezone", "--value"]
        ).strip()

    def set_timezone(self, timezone: str) -> None:
        self._runner.run(["timedatectl", "set-timezone", timezone])


def _is_root() -> bool:
    return os.geteuid() == 0


def create_local_host(
    root: str | Path = "/",
    timeout: float = DEFAULT_TIMEOUT,
    runner: Optional[CommandRunner] = None,
) -> HostCapability:
    """Build a HostCapability for the machine this process runs on.

    Args:
        root: Directory that host paths are resolved under.
        timeout: Per-command timeout in seconds.
        runner: CommandRunner to use. Created from ``timeout`` if not provided.
    """
    runner = runner or CommandRunner(timeout=timeout)
    files = LocalFileSystem(root)
    return HostCapability(
        packages=AptPackageManager(runner, files),
        files=files,
        services=SystemdServiceManager(runner),
        clock=TimedatectlClock(runner),
        privilege_probe=_is_root,
    )
