"""Package repository and installation steps."""

import logging
from typing import Any

from provisioner.host import HostCapability

from .base import Step

logger = logging.getLogger(__name__)


class AddRepositoryStep(Step):
    """Add a package repository unless it is already configured."""

    def __init__(self, repository: str, name: str = "add_package_repository", critical: bool = True):
        super().__init__(name, critical=critical)
        self.repository = repository
        self.description = f"Add package repository {repository}"

    def check(self, host: HostCapability) -> bool:
        return host.packages.has_repository(self.repository)

    def apply(self, host: HostCapability) -> dict[str, Any]:
        host.packages.add_repository(self.repository)
        return {"repository": self.repository}


class InstallPackagesStep(Step):
    """Refresh the package index and install whatever is missing.

    Packages that are already installed are left alone, so a fully
    provisioned host skips this step without touching the network.
    """

    def __init__(self, packages: list[str], name: str = "install_packages", critical: bool = True):
        super().__init__(name, critical=critical)
        # dict.fromkeys keeps declaration order while dropping duplicates
        self.packages = list(dict.fromkeys(packages))
        self.description = f"Install {len(self.packages)} packages"

    def missing(self, host: HostCapability) -> list[str]:
        return [p for p in self.packages if not host.packages.is_installed(p)]

    def check(self, host: HostCapability) -> bool:
        return not self.missing(host)

    def apply(self, host: HostCapability) -> dict[str, Any]:
        missing = self.missing(host)
        host.packages.refresh()
        host.packages.install(missing)
        logger.info("Installed %d packages", len(missing))
        return {"installed": len(missing), "packages": missing}
