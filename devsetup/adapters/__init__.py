"""Adapters — the runner and environment collaborators.

Public re-exports for convenient access.
"""

from devsetup.adapters.base import CommandRunner, Environment
from devsetup.adapters.mock import FakeEnvironment, MockRunner

__all__ = [
    "CommandRunner",
    "Environment",
    "FakeEnvironment",
    "MockRunner",
]
