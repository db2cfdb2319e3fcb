"""Text-file configuration steps.

Every step here inspects the file before changing it, so a second run
leaves files byte-for-byte unchanged.
"""

import logging
from typing import Any, Optional

from provisioner.host import ConfigWriteError, HostCapability

from .base import Step

logger = logging.getLogger(__name__)


def _line_ending(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def _ensure_newline(content: str, ending: str = "\n") -> str:
    if content and not content.endswith("\n"):
        return content + ending
    return content


class WriteFileStep(Step):
    """Write a file with fixed content (and optionally mode)."""

    def __init__(
        self,
        name: str,
        path: str,
        content: str,
        mode: Optional[int] = None,
        critical: bool = False,
    ):
        super().__init__(name, critical=critical)
        self.path = path
        self.content = content
        self.mode = mode
        self.description = f"Write {path}"

    def check(self, host: HostCapability) -> bool:
        if not host.files.is_file(self.path):
            return False
        if host.files.read_text(self.path) != self.content:
            return False
        return self.mode is None or host.files.get_mode(self.path) == self.mode

    def apply(self, host: HostCapability) -> dict[str, Any]:
        host.files.write_text(self.path, self.content)
        if self.mode is not None:
            host.files.set_mode(self.path, self.mode)
        return {"path": self.path, "bytes": len(self.content.encode("utf-8"))}


class AppendLineStep(Step):
    """Append a directive to a config file unless a line already starts with it."""

    def __init__(
        self,
        name: str,
        path: str,
        line: str,
        create: bool = False,
        critical: bool = False,
    ):
        super().__init__(name, critical=critical)
        self.path = path
        self.line = line
        self.create = create
        self.description = f"Ensure '{line}' in {path}"

    def check(self, host: HostCapability) -> bool:
        if not host.files.is_file(self.path):
            if self.create:
                return False
            raise ConfigWriteError(self.path, "No such file or directory")
        return any(
            existing.startswith(self.line)
            for existing in host.files.read_text(self.path).splitlines()
        )

    def apply(self, host: HostCapability) -> dict[str, Any]:
        content = ""
        if host.files.is_file(self.path):
            content = host.files.read_text(self.path)
        ending = _line_ending(content)
        host.files.write_text(self.path, _ensure_newline(content, ending) + self.line + ending)
        return {"path": self.path, "line": self.line}


class InsertAfterSectionStep(Step):
    """Insert ``key = value`` directly below an INI-style section header.

    Used for system-wide TLS settings in openssl.cnf. The step is skipped
    when any line already starts with ``key``, whatever its value.
    Before the first modification the original file is copied to
    ``backup_path`` (an existing backup is never overwritten).
    """

    def __init__(
        self,
        name: str,
        path: str,
        section: str,
        key: str,
        value: str,
        backup_path: Optional[str] = None,
        critical: bool = False,
    ):
        super().__init__(name, critical=critical)
        self.path = path
        self.section = section
        self.key = key
        self.value = value
        self.backup_path = backup_path
        self.description = f"Set {key} = {value} in {path} [{section}]"

    @property
    def directive(self) -> str:
        return f"{self.key} = {self.value}"

    def check(self, host: HostCapability) -> bool:
        return any(
            line.startswith(self.key)
            for line in host.files.read_text(self.path).splitlines()
        )

    def apply(self, host: HostCapability) -> dict[str, Any]:
        text = host.files.read_text(self.path)
        lines = text.splitlines(keepends=True)
        header = f"[{self.section}]"
        for index, line in enumerate(lines):
            if line.rstrip("\r\n") == header:
                break
        else:
            raise ConfigWriteError(self.path, f"section {header} not found")

        details: dict[str, Any] = {"path": self.path, "directive": self.directive}
        if self.backup_path and not host.files.exists(self.backup_path):
            host.files.copy(self.path, self.backup_path)
            details["backup"] = self.backup_path

        ending = _line_ending(text)
        lines[index] = _ensure_newline(lines[index], ending)
        lines.insert(index + 1, self.directive + ending)
        host.files.write_text(self.path, "".join(lines))
        return details


class DisableFilesStep(Step):
    """Rename every regular file in a directory to ``<name><suffix>``."""

    def __init__(self, name: str, directory: str, suffix: str = ".disabled", critical: bool = False):
        super().__init__(name, critical=critical)
        self.directory = directory
        self.suffix = suffix
        self.description = f"Disable files in {directory}"

    def pending(self, host: HostCapability) -> list[str]:
        return [
            path
            for path in host.files.list_dir(self.directory)
            if host.files.is_file(path) and not path.endswith(self.suffix)
        ]

    def check(self, host: HostCapability) -> bool:
        return not self.pending(host)

    def apply(self, host: HostCapability) -> dict[str, Any]:
        pending = self.pending(host)
        for path in pending:
            logger.debug("Disabling %s", path)
            host.files.rename(path, path + self.suffix)
        return {"directory": self.directory, "disabled": len(pending)}
