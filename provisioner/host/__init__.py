"""Host capability module for provisioning steps.

This module provides the handles through which steps touch the host,
so steps never inspect the environment directly and tests can swap in
fakes.

Public API:
    - HostCapability: Bundle of package, filesystem, service and clock handles
    - PackageManager, FileSystem, ServiceManager, Clock: Handle interfaces
    - create_local_host: Handles for the machine this process runs on
    - create_in_memory_host: In-memory handles for testing
    - CommandRunner: Subprocess wrapper with a timeout
    - HostError: Base exception for host failures
    - CommandError, CommandTimeoutError: Command failures
    - PackageManagerError: Repository or install failure
    - ConfigWriteError: Filesystem read/write failure
    - ServiceNotFoundError: Service is not installed on the host
"""

from .capability import Clock, FileSystem, HostCapability, PackageManager, ServiceManager
from .command import CommandRunner
from .exceptions import (
    CommandError,
    CommandTimeoutError,
    ConfigWriteError,
    HostError,
    PackageManagerError,
    ServiceNotFoundError,
)
from .local import create_local_host
from .memory import create_in_memory_host

__all__ = [
    "HostCapability",
    "PackageManager",
    "FileSystem",
    "ServiceManager",
    "Clock",
    "CommandRunner",
    "create_local_host",
    "create_in_memory_host",
    "HostError",
    "CommandError",
    "CommandTimeoutError",
    "PackageManagerError",
    "ConfigWriteError",
    "ServiceNotFoundError",
]
