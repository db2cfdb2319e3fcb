"""The default server baseline as an ordered list of steps."""

import os
from typing import Optional

from provisioner.settings import Settings

from .base import Step
from .files import AppendLineStep, DisableFilesStep, InsertAfterSectionStep, WriteFileStep
from .packages import AddRepositoryStep, InstallPackagesStep
from .services import EnableServiceStep, RestartServiceStep
from .system import ClearHistoryStep, TimezoneStep

FASTFETCH_REPOSITORY = "ppa:zhangsongcui3371/fastfetch"

BASE_PACKAGES = [
    "btop",
    "cmatrix",
    "curl",
    "wget",
    "vim",
    "nano",
    "unzip",
    "net-tools",
    "build-essential",
    "speedtest-cli",
    "python3",
    "python3-pip",
    "python3-venv",
    "git",
    "openvpn",
    "linux-tools-common",
    "smartmontools",
    "nvme-cli",
    "cpufrequtils",
    "fastfetch",
]

CPU_GOVERNOR_FILE = "/etc/default/cpufrequtils"
CPU_GOVERNOR_CONTENT = 'GOVERNOR="performance"\n'

SSH_BANNER_FILE = "/etc/ssh/banner"
SSHD_CONFIG_FILE = "/etc/ssh/sshd_config"
SSH_BANNER_TEXT = """\
*******************************************************************************
** NOTICE TO USERS OF THIS SYSTEM                                            **
**                                                                           **
** This computer system is for authorized use only.                          **
**                                                                           **
** By using this system, the user consents to such interception, monitoring, **
** recording, copying, auditing, inspection, and disclosure at the           **
** discretion of authorized site or personnel.                               **
**                                                                           **
** By continuing to use this system, you indicate your awareness of and      **
** consent to these terms and conditions of use.                             **
*******************************************************************************
"""

LOGIN_INFO_SCRIPT = "/etc/profile.d/00-fastfetch.sh"
LOGIN_INFO_CONTENT = """\
#!/bin/bash
# Display system information using fastfetch
fastfetch
"""
MOTD_DIRECTORY = "/etc/update-motd.d"

OPENSSL_CONFIG = "/etc/ssl/openssl.cnf"
OPENSSL_SECTION = "system_default_sect"


def kernel_tools_package(release: Optional[str] = None) -> str:
    """Name of the linux-tools package matching the running kernel."""
    return f"linux-tools-{release or os.uname().release}"


def build_default_steps(
    settings: Settings,
    kernel_release: Optional[str] = None,
) -> list[Step]:
    """Build the ordered step list for a baseline server.

    Args:
        settings: Run configuration (timezone, extra packages, services).
        kernel_release: Kernel release for the linux-tools package.
            Defaults to the running kernel.

    Returns:
        Steps in execution order. History clearing is always last.
    """
    packages = [*BASE_PACKAGES, kernel_tools_package(kernel_release), *settings.extra_packages]

    steps: list[Step] = [
        AddRepositoryStep(FASTFETCH_REPOSITORY),
        InstallPackagesStep(packages),
        WriteFileStep("cpu_governor", CPU_GOVERNOR_FILE, CPU_GOVERNOR_CONTENT),
        WriteFileStep("ssh_banner", SSH_BANNER_FILE, SSH_BANNER_TEXT, critical=True),
        AppendLineStep(
            "sshd_banner_directive",
            SSHD_CONFIG_FILE,
            f"Banner {SSH_BANNER_FILE}",
            critical=True,
        ),
        WriteFileStep("login_info_script", LOGIN_INFO_SCRIPT, LOGIN_INFO_CONTENT, mode=0o755),
        DisableFilesStep("disable_default_motd", MOTD_DIRECTORY),
        InsertAfterSectionStep(
            "tls_min_protocol",
            OPENSSL_CONFIG,
            OPENSSL_SECTION,
            "MinProtocol",
            "TLSv1.2",
            backup_path=OPENSSL_CONFIG + ".bak",
        ),
        InsertAfterSectionStep(
            "tls_cipher_string",
            OPENSSL_CONFIG,
            OPENSSL_SECTION,
            "CipherString",
            "DEFAULT@SECLEVEL=2",
            backup_path=OPENSSL_CONFIG + ".bak",
        ),
        TimezoneStep(settings.timezone),
        EnableServiceStep("cpufrequtils"),
    ]
    steps.extend(RestartServiceStep(service) for service in settings.restart_services)
    steps.append(ClearHistoryStep())
    return steps
