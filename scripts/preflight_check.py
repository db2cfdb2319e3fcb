#!/usr/bin/env python3
"""Preflight check before provisioning a real host.

Validates privilege, the host tools the steps shell out to, and the
configuration files the steps edit, then prints the planned sequence.

Run from project root:
    sudo python scripts/preflight_check.py
"""

import os
import shutil
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent

sys.path.insert(0, str(PROJECT_ROOT))
from dotenv import load_dotenv

load_dotenv(PROJECT_ROOT / ".env")

REQUIRED_COMMANDS = [
    "apt-get",
    "add-apt-repository",
    "dpkg-query",
    "systemctl",
    "timedatectl",
]

REQUIRED_FILES = [
    "/etc/ssh/sshd_config",
    "/etc/ssl/openssl.cnf",
]


def check_prerequisites(root: Path) -> list[str]:
    errors = []

    if os.geteuid() != 0:
        errors.append("Not running as root")

    for command in REQUIRED_COMMANDS:
        if shutil.which(command) is None:
            errors.append(f"Missing command: {command}")

    for path in REQUIRED_FILES:
        if not (root / path.lstrip("/")).is_file():
            errors.append(f"Missing file: {path}")

    return errors


def main() -> int:
    from provisioner.settings import Settings
    from provisioner.steps import build_default_steps

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"  ✗ {e}")
        return 1

    print("Checking prerequisites ...\n")
    errors = check_prerequisites(Path(settings.root))

    if errors:
        for err in errors:
            print(f"  ✗ {err}")
        print(
            "\nSetup instructions:"
            "\n  1. Run as root (sudo)"
            "\n  2. Install software-properties-common for add-apt-repository"
            "\n  3. Install openssh-server so /etc/ssh/sshd_config exists"
        )
        return 1

    for command in REQUIRED_COMMANDS:
        print(f"  ✓ {command}")
    for path in REQUIRED_FILES:
        print(f"  ✓ {path}")
    if not settings.timezone:
        print("  ! PROVISION_TIMEZONE not set, timezone will be left unchanged")

    print("\nPlanned steps:")
    for position, step in enumerate(build_default_steps(settings), start=1):
        flag = " [critical]" if step.critical else ""
        print(f"  {position:2d}. {step.name}{flag}")

    print("\nAll prerequisites met. Run 'python run_setup.py' to provision.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
