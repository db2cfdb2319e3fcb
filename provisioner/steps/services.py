"""Service manager steps."""

from typing import Any

from provisioner.host import HostCapability, ServiceNotFoundError

from .base import Step


class EnableServiceStep(Step):
    """Enable a service at boot and start it now."""

    def __init__(self, service: str, name: str | None = None, critical: bool = False):
        super().__init__(name or f"enable_{service}", critical=critical)
        self.service = service
        self.description = f"Enable and start {service}"

    def check(self, host: HostCapability) -> bool:
        if not host.services.exists(self.service):
            raise ServiceNotFoundError(self.service)
        return host.services.is_enabled(self.service) and host.services.is_active(self.service)

    def apply(self, host: HostCapability) -> dict[str, Any]:
        host.services.enable(self.service)
        host.services.start(self.service)
        return {"service": self.service}


class RestartServiceStep(Step):
    """Restart a service so it picks up changed configuration.

    A service that is not installed on the host is skipped.
    """

    def __init__(self, service: str, name: str | None = None, critical: bool = False):
        super().__init__(name or f"restart_{service}", critical=critical)
        self.service = service
        self.description = f"Restart {service} if installed"

    def check(self, host: HostCapability) -> bool:
        if not host.services.exists(self.service):
            raise ServiceNotFoundError(self.service)
        return False

    def apply(self, host: HostCapability) -> dict[str, Any]:
        host.services.restart(self.service)
        return {"service": self.service}
