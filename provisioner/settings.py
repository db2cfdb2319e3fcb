"""Configuration for a provisioning run, read from the environment."""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

DEFAULT_RESTART_SERVICES = ["ssh", "apache2", "nginx"]
DEFAULT_COMMAND_TIMEOUT = 900.0


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    """Values the default step list is built from.

    Attributes:
        timezone: Target system timezone (e.g. "Europe/Oslo"). None leaves
            the timezone untouched.
        extra_packages: Packages installed in addition to the default set.
        restart_services: Services restarted at the end of the run.
        command_timeout: Seconds before a host command counts as failed.
        root: Directory that host paths are resolved under.
    """

    timezone: Optional[str] = None
    extra_packages: list[str] = field(default_factory=list)
    restart_services: list[str] = field(default_factory=lambda: list(DEFAULT_RESTART_SERVICES))
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT
    root: str = "/"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Environment variables:
            PROVISION_TIMEZONE: Target timezone. Unset means not managed.
            PROVISION_EXTRA_PACKAGES: Comma separated extra packages.
            PROVISION_RESTART_SERVICES: Comma separated services to restart.
                Defaults to "ssh,apache2,nginx".
            PROVISION_COMMAND_TIMEOUT: Per-command timeout in seconds.
                Defaults to 900.
            PROVISION_ROOT: Filesystem root. Defaults to "/".

        Raises:
            ValueError: If PROVISION_COMMAND_TIMEOUT is not a positive number.
        """
        env = os.environ if environ is None else environ

        timeout_raw = env.get("PROVISION_COMMAND_TIMEOUT", "")
        timeout = DEFAULT_COMMAND_TIMEOUT
        if timeout_raw.strip():
            try:
                timeout = float(timeout_raw)
            except ValueError:
                raise ValueError(
                    f"PROVISION_COMMAND_TIMEOUT must be a number of seconds, got {timeout_raw!r}"
                ) from None
            if timeout <= 0:
                raise ValueError("PROVISION_COMMAND_TIMEOUT must be greater than zero")

        restart_raw = env.get("PROVISION_RESTART_SERVICES")
        restart_services = (
            _split_list(restart_raw) if restart_raw is not None else list(DEFAULT_RESTART_SERVICES)
        )

        return cls(
            timezone=env.get("PROVISION_TIMEZONE", "").strip() or None,
            extra_packages=_split_list(env.get("PROVISION_EXTRA_PACKAGES", "")),
            restart_services=restart_services,
            command_timeout=timeout,
            root=env.get("PROVISION_ROOT", "").strip() or "/",
        )
