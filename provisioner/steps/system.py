"""System-wide steps: timezone and shell history."""

import logging
import posixpath
from typing import Any, Optional

from provisioner.host import HostCapability

from .base import Step

logger = logging.getLogger(__name__)

HISTORY_FILES = (".bash_history", ".zsh_history", ".fish_history")


class TimezoneStep(Step):
    """Set the system timezone.

    With no timezone configured the step is skipped and a warning is
    logged. There is no built-in default.
    """

    def __init__(self, timezone: Optional[str], name: str = "timezone", critical: bool = False):
        super().__init__(name, critical=critical)
        self.timezone = timezone
        self.description = f"Set timezone to {timezone}" if timezone else "Set timezone (not configured)"

    def check(self, host: HostCapability) -> bool:
        if not self.timezone:
            logger.warning("No timezone configured, set PROVISION_TIMEZONE to manage it")
            return True
        return host.clock.get_timezone() == self.timezone

    def apply(self, host: HostCapability) -> dict[str, Any]:
        previous = host.clock.get_timezone()
        host.clock.set_timezone(self.timezone)
        logger.info("Timezone changed from %s to %s", previous, self.timezone)
        return {"timezone": self.timezone, "previous": previous}


class ClearHistoryStep(Step):
    """Truncate on-disk shell history for root and every user in /home.

    Destructive, so it must be the final step of a sequence. The runner
    never executes commands through a shell, so nothing it does is
    written back to the files cleared here. The invoking terminal's
    in-memory history is out of reach and needs ``history -c``.
    """

    def __init__(
        self,
        name: str = "clear_shell_history",
        root_home: str = "/root",
        home_root: str = "/home",
        history_files: tuple[str, ...] = HISTORY_FILES,
    ):
        super().__init__(name, critical=False, runs_last=True)
        self.root_home = root_home
        self.home_root = home_root
        self.history_files = history_files
        self.description = "Clear shell history files for root and all users"

    def home_directories(self, host: HostCapability) -> list[str]:
        homes = [self.root_home]
        homes.extend(d for d in host.files.list_dir(self.home_root) if host.files.is_dir(d))
        return homes

    def pending(self, host: HostCapability) -> list[str]:
        pending = []
        for home in self.home_directories(host):
            for history_file in self.history_files:
                path = posixpath.join(home, history_file)
                if host.files.is_file(path) and host.files.size(path) > 0:
                    pending.append(path)
        return pending

    def check(self, host: HostCapability) -> bool:
        return not self.pending(host)

    def apply(self, host: HostCapability) -> dict[str, Any]:
        pending = self.pending(host)
        for path in pending:
            logger.debug("Clearing %s", path)
            host.files.write_text(path, "")
        users = sorted({posixpath.basename(posixpath.dirname(p)) for p in pending})
        return {"cleared": len(pending), "users": users}
