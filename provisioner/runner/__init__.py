"""Provisioning runner.

Applies an ordered list of idempotent steps to a host with per-step
error isolation and a structured report.
"""

from .exceptions import PrivilegeError, RunnerError, StepOrderError
from .models import EXIT_PRIVILEGE, Outcome, RunReport, StepResult
from .pipeline import ProvisioningRunner

__all__ = [
    "ProvisioningRunner",
    "RunReport",
    "StepResult",
    "Outcome",
    "EXIT_PRIVILEGE",
    "RunnerError",
    "PrivilegeError",
    "StepOrderError",
]
