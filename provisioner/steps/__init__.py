"""Provisioning steps.

Each step checks whether its effect is already present before acting,
so the whole sequence can be re-run safely.

Public API:
    - Step: Base class for all steps
    - AddRepositoryStep, InstallPackagesStep: Package manager steps
    - WriteFileStep, AppendLineStep, InsertAfterSectionStep, DisableFilesStep:
      Text-file configuration steps
    - EnableServiceStep, RestartServiceStep: Service manager steps
    - TimezoneStep, ClearHistoryStep: System-wide steps
    - build_default_steps: The default server baseline
"""

from .base import Step
from .catalog import build_default_steps
from .files import AppendLineStep, DisableFilesStep, InsertAfterSectionStep, WriteFileStep
from .packages import AddRepositoryStep, InstallPackagesStep
from .services import EnableServiceStep, RestartServiceStep
from .system import ClearHistoryStep, TimezoneStep

__all__ = [
    "Step",
    "build_default_steps",
    "AddRepositoryStep",
    "InstallPackagesStep",
    "WriteFileStep",
    "AppendLineStep",
    "InsertAfterSectionStep",
    "DisableFilesStep",
    "EnableServiceStep",
    "RestartServiceStep",
    "TimezoneStep",
    "ClearHistoryStep",
]
