"""
Precondition evaluation — is a strategy applicable on this machine?

Read-only: consults the Environment (OS family, PATH lookups,
privilege) and never runs commands.
"""

from __future__ import annotations

import logging

from devsetup.adapters.base import Environment
from devsetup.core.models.target import Precondition

logger = logging.getLogger(__name__)


def evaluate_precondition(
    precondition: Precondition,
    env: Environment,
) -> tuple[bool, str]:
    """Evaluate a strategy's requirements.

    Checks run in order (OS, required commands, any-of commands,
    privilege); the first unmet one produces the reason. An explicit
    ``precondition.reason`` replaces the text for missing required
    commands only.

    Returns:
        ``(holds, reason)``. ``reason`` is empty when the precondition holds.
    """
    reason = _first_unmet(precondition, env)
    if reason is None:
        return True, ""
    return False, reason


def _first_unmet(precondition: Precondition, env: Environment) -> str | None:
    if precondition.os and env.os_family not in precondition.os:
        return f"requires {' or '.join(precondition.os)} (this is {env.os_family})"

    missing = [cmd for cmd in precondition.commands if env.which(cmd) is None]
    if missing:
        return precondition.reason or f"{', '.join(missing)} not found"

    if precondition.any_commands and not any(
        env.which(cmd) for cmd in precondition.any_commands
    ):
        return f"none of {', '.join(precondition.any_commands)} found"

    if precondition.privileged and not env.can_escalate:
        return "requires root or sudo"

    return None
