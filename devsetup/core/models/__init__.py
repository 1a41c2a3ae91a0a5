"""
Domain models — Pydantic types for targets, strategies and results.

All models are re-exported here for convenient access:

    from devsetup.core.models import InstallTarget, Strategy, InstallResult
"""

from devsetup.core.models.result import (
    CommandResult,
    FailureKind,
    InstallResult,
    Outcome,
    StrategyAttempt,
)
from devsetup.core.models.settings import Settings, ShellFile
from devsetup.core.models.target import (
    DetectionSpec,
    InstallTarget,
    Precondition,
    Strategy,
)

__all__ = [
    # result.py
    "CommandResult",
    # target.py
    "DetectionSpec",
    "FailureKind",
    "InstallResult",
    "InstallTarget",
    "Outcome",
    "Precondition",
    # settings.py
    "Settings",
    "ShellFile",
    "Strategy",
    "StrategyAttempt",
]
