"""
Installer resolver — try strategies in order until one installs the target.

Flow:
    detect → (already present? done) → for each strategy:
        precondition → action steps → re-detect → success
    → exhausted? failed (unsupported platform, or all attempts failed)

Per-strategy failures never escape: they are logged, recorded as
attempts, and the next strategy is tried. Only exhaustion of the whole
list surfaces, as a FAILED InstallResult. Nothing is rolled back
between strategies; a later strategy is expected to no-op over (or
succeed independently of) whatever a failed one left on disk.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from devsetup.adapters.base import CommandRunner, Environment
from devsetup.core.engine.detection import Detection, detect
from devsetup.core.engine.path_setup import ensure_on_path
from devsetup.core.engine.preconditions import evaluate_precondition
from devsetup.core.models.result import (
    CommandResult,
    FailureKind,
    InstallResult,
    StrategyAttempt,
)
from devsetup.core.models.settings import Settings, ShellFile
from devsetup.core.models.target import InstallTarget, Step, Strategy

logger = logging.getLogger(__name__)

# Called with ("<domain>:<action>", payload) as each step happens.
EventCallback = Callable[[str, dict[str, Any]], None]

DEFAULT_ACTION_TIMEOUT = Settings().action_timeout


def ignore_event(event: str, data: dict[str, Any]) -> None:
    pass


# ── Strategy execution ──────────────────────────────────────────


def _with_privilege(step: Step, env: Environment) -> Step:
    """Prefix a step with sudo unless already root."""
    if env.is_root:
        return step
    if isinstance(step, str):
        return ["sudo", "bash", "-c", step]
    return ["sudo", *step]


def run_strategy(
    strategy: Strategy,
    runner: CommandRunner,
    env: Environment,
    default_timeout: int | None = DEFAULT_ACTION_TIMEOUT,
) -> CommandResult:
    """Run a strategy's steps in order, stopping at the first failure.

    Every step runs under a deadline (the strategy's own timeout, else
    ``default_timeout``); a timeout is a failed step like any other.
    """
    timeout = strategy.timeout or default_timeout
    cwd = str(env.expand(strategy.cwd)) if strategy.cwd else None

    result: CommandResult | None = None
    for index, step in enumerate(strategy.steps, start=1):
        command = _with_privilege(step, env) if strategy.privileged else step
        result = runner.run(command, cwd=cwd, timeout=timeout)
        if not result.ok:
            if len(strategy.steps) > 1:
                result.error = f"step {index}/{len(strategy.steps)} {result.describe_failure()}"
            return result

    if result is None:
        return CommandResult.failure(command=strategy.name, error="strategy has no steps")
    return result


# ── Resolution ──────────────────────────────────────────────────


def _reconcile_path(
    found: Detection,
    env: Environment,
    shell_files: list[ShellFile],
    emit: EventCallback,
    target: str,
) -> list[str]:
    """Put the binary's directory on PATH if it was found outside it."""
    if found.on_path or not found.bin_dir:
        return []
    changed = ensure_on_path(found.bin_dir, env, shell_files)
    emit("path:updated", {"target": target, "directory": found.bin_dir, "files": changed})
    return changed


def _unsupported_message(attempts: list[StrategyAttempt]) -> str:
    reasons: list[str] = []
    for attempt in attempts:
        if attempt.message and attempt.message not in reasons:
            reasons.append(attempt.message)
    return "no applicable strategy: " + ("; ".join(reasons) or "no strategies defined")


def _post_check_message(found: Detection) -> str:
    if not found.present:
        return f"command succeeded but {found.message}"
    return f"command succeeded but {found.describe()}"


def resolve(
    target: InstallTarget,
    strategies: list[Strategy] | None = None,
    *,
    runner: CommandRunner,
    env: Environment,
    shell_files: list[ShellFile] | None = None,
    default_timeout: int | None = DEFAULT_ACTION_TIMEOUT,
    on_event: EventCallback | None = None,
) -> InstallResult:
    """Install a target by trying its strategies in priority order.

    Args:
        target: What to install and how to detect it.
        strategies: Ordered strategies. Defaults to ``target.strategies``.
        runner: Runs detection probes and install steps.
        env: OS identity, PATH and startup files.
        shell_files: Startup files that receive PATH exports.
        default_timeout: Deadline per step when a strategy sets none.
        on_event: Optional progress callback.

    Returns:
        InstallResult with exactly one outcome.
    """
    emit = on_event or ignore_event
    if strategies is None:
        strategies = target.strategies
    if shell_files is None:
        shell_files = Settings().shell_files

    start = time.monotonic()

    def finish(result: InstallResult) -> InstallResult:
        result.duration_ms = int((time.monotonic() - start) * 1000)
        emit("target:done", {"target": target.name, "result": result})
        return result

    emit("target:start", {"target": target.name})

    # ── Idempotence: nothing to do if already usable ─────────────
    found = detect(target, runner, env)
    if found.usable:
        logger.info("%s already present: %s", target.name, found.describe())
        emit("detect:present", {"target": target.name, "detection": found})
        updates = _reconcile_path(found, env, shell_files, emit, target.name)
        return finish(InstallResult.already_present(
            target.name,
            version=found.version,
            binary_path=found.binary_path,
            path_updates=updates,
        ))

    logger.info("%s: %s", target.name, found.describe())
    emit("detect:missing", {"target": target.name, "detection": found})

    # ── Try strategies in order ──────────────────────────────────
    attempts: list[StrategyAttempt] = []
    for strategy in strategies:
        holds, reason = evaluate_precondition(strategy.requires, env)
        if not holds:
            logger.info("%s: skipping %s (%s)", target.name, strategy.name, reason)
            attempts.append(StrategyAttempt(
                strategy=strategy.name,
                failure=FailureKind.PRECONDITION_UNMET,
                message=reason,
            ))
            emit("strategy:skip", {"target": target.name, "strategy": strategy.name, "reason": reason})
            continue

        logger.info("%s: trying %s", target.name, strategy.name)
        emit("strategy:start", {"target": target.name, "strategy": strategy.name})
        outcome = run_strategy(strategy, runner, env, default_timeout)
        if not outcome.ok:
            reason = outcome.describe_failure()
            logger.warning("%s: %s failed: %s", target.name, strategy.name, reason)
            attempts.append(StrategyAttempt(
                strategy=strategy.name,
                failure=FailureKind.ACTION_FAILED,
                message=reason,
            ))
            emit("strategy:failed", {"target": target.name, "strategy": strategy.name, "reason": reason})
            continue

        # The action claims success; make sure the tool is really there.
        found = detect(target, runner, env)
        if not found.usable:
            reason = _post_check_message(found)
            logger.warning("%s: %s post-check failed: %s", target.name, strategy.name, reason)
            attempts.append(StrategyAttempt(
                strategy=strategy.name,
                failure=FailureKind.POST_CHECK_FAILED,
                message=reason,
            ))
            emit("strategy:postcheck_failed", {
                "target": target.name, "strategy": strategy.name, "reason": reason,
            })
            continue

        earlier = "; ".join(a.describe() for a in attempts)
        attempts.append(StrategyAttempt(strategy=strategy.name, message=found.describe()))
        emit("strategy:success", {"target": target.name, "strategy": strategy.name})
        updates = _reconcile_path(found, env, shell_files, emit, target.name)

        result = InstallResult.success(
            target.name,
            strategy.name,
            version=found.version,
            binary_path=found.binary_path,
            attempts=attempts,
            path_updates=updates,
        )
        if earlier:
            result.message += f" (earlier: {earlier})"
        return finish(result)

    # ── Exhausted ────────────────────────────────────────────────
    if all(a.failure == FailureKind.PRECONDITION_UNMET for a in attempts):
        failure = FailureKind.UNSUPPORTED_PLATFORM
        message = _unsupported_message(attempts)
    else:
        failure = FailureKind.STRATEGIES_EXHAUSTED
        message = "all strategies failed: " + "; ".join(a.describe() for a in attempts)

    logger.error("%s: %s", target.name, message)
    return finish(InstallResult.failure_result(
        target.name,
        failure,
        message,
        attempts=attempts,
    ))


# ── Dry run ─────────────────────────────────────────────────────


@dataclass
class StrategyPlan:
    name: str
    applicable: bool
    reason: str = ""


@dataclass
class ResolutionPlan:
    """What ``resolve`` would do, without running any install step."""

    target: str
    detection: Detection
    strategies: list[StrategyPlan] = field(default_factory=list)

    @property
    def already_present(self) -> bool:
        return self.detection.usable

    @property
    def chosen(self) -> str | None:
        """First applicable strategy, the one resolve would try first."""
        for plan in self.strategies:
            if plan.applicable:
                return plan.name
        return None

    def to_dict(self) -> dict:
        return {
            "target": self.target,
            "already_present": self.already_present,
            "detection": self.detection.describe(),
            "chosen": self.chosen,
            "strategies": [
                {"name": s.name, "applicable": s.applicable, "reason": s.reason}
                for s in self.strategies
            ],
        }


def plan_resolution(
    target: InstallTarget,
    *,
    runner: CommandRunner,
    env: Environment,
) -> ResolutionPlan:
    """Detect and evaluate preconditions only (no actions, no file writes)."""
    plan = ResolutionPlan(target=target.name, detection=detect(target, runner, env))
    for strategy in target.strategies:
        holds, reason = evaluate_precondition(strategy.requires, env)
        plan.strategies.append(StrategyPlan(strategy.name, holds, reason))
    return plan
