"""
Engine executor — runs targets in order and aggregates a report.

Flow:
    prerequisites → for each target: resolve → (update) → configure → record
    → stop at the first critical failure → report

Criticality is an explicit attribute of each target: a FAILED critical
target aborts the remaining targets and fails the run; a FAILED
non-critical target is reported as a warning and the run continues.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from devsetup.adapters.base import CommandRunner, Environment
from devsetup.core.engine.detection import detect
from devsetup.core.engine.resolver import EventCallback, ignore_event, resolve
from devsetup.core.models.result import InstallResult, Outcome
from devsetup.core.models.settings import Settings
from devsetup.core.models.target import InstallTarget
from devsetup.core.services.configure import (
    ConfigureContext,
    ConfigureResult,
    run_configurator,
)

logger = logging.getLogger(__name__)


# ── Prerequisites ───────────────────────────────────────────────


@dataclass
class PrerequisiteCheck:
    """Whether one required tool is present and new enough."""

    name: str
    ok: bool
    detail: str = ""
    hint: str = ""

    def to_dict(self) -> dict:
        return {"name": self.name, "ok": self.ok, "detail": self.detail, "hint": self.hint}


def check_prerequisites(
    prerequisites: list[InstallTarget],
    runner: CommandRunner,
    env: Environment,
) -> list[PrerequisiteCheck]:
    """Detect each prerequisite. Nothing is installed."""
    checks = []
    for prereq in prerequisites:
        found = detect(prereq, runner, env)
        checks.append(PrerequisiteCheck(
            name=prereq.name,
            ok=found.usable,
            detail=found.describe(),
            hint="" if found.usable else prereq.hint,
        ))
        if not found.usable:
            logger.error("Prerequisite %s: %s", prereq.name, found.describe())
    return checks


# ── Reports ─────────────────────────────────────────────────────


@dataclass
class TargetReport:
    """Everything that happened to one target during a run."""

    name: str
    critical: bool = True
    result: InstallResult | None = None       # None = not run
    update: str | None = None                 # message from update_command
    configured: list[ConfigureResult] = field(default_factory=list)

    @property
    def ran(self) -> bool:
        return self.result is not None

    @property
    def failed(self) -> bool:
        return self.result is not None and self.result.failed

    @property
    def warnings(self) -> list[str]:
        notes = []
        for step in self.configured:
            if not step.ok:
                notes.append(step.message)
            notes.extend(step.warnings)
        return notes

    @property
    def status(self) -> str:
        """``ok``, ``warning``, ``failed`` or ``not_run``."""
        if self.result is None:
            return "not_run"
        if self.result.failed:
            return "failed" if self.critical else "warning"
        if self.warnings:
            return "warning"
        return "ok"

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "critical": self.critical,
            "status": self.status,
            "result": self.result.to_dict() if self.result else None,
            "update": self.update,
            "configured": [c.to_dict() for c in self.configured],
        }


@dataclass
class RunReport:
    """Result of a full or single-target run."""

    targets: list[TargetReport] = field(default_factory=list)
    prerequisites: list[PrerequisiteCheck] = field(default_factory=list)
    aborted_at: str | None = None

    @property
    def missing_prerequisites(self) -> list[PrerequisiteCheck]:
        return [p for p in self.prerequisites if not p.ok]

    @property
    def critical_failures(self) -> list[TargetReport]:
        return [t for t in self.targets if t.failed and t.critical]

    @property
    def succeeded(self) -> int:
        return sum(1 for t in self.targets if t.ran and not t.failed)

    @property
    def failed(self) -> int:
        return sum(1 for t in self.targets if t.failed)

    @property
    def status(self) -> str:
        if self.missing_prerequisites or self.critical_failures:
            return "failed"
        if self.failed or any(t.status == "warning" for t in self.targets):
            return "partial"
        return "ok"

    @property
    def exit_code(self) -> int:
        return 1 if self.status == "failed" else 0

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "exit_code": self.exit_code,
            "aborted_at": self.aborted_at,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "prerequisites": [p.to_dict() for p in self.prerequisites],
            "targets": [t.to_dict() for t in self.targets],
        }


# ── Execution ───────────────────────────────────────────────────


def _update_existing(
    target: InstallTarget,
    runner: CommandRunner,
    settings: Settings,
) -> str:
    """Run a target's update command; failure is only a warning."""
    assert target.update_command is not None
    outcome = runner.run(target.update_command, timeout=settings.action_timeout)
    if outcome.ok:
        return f"{target.name} updated"
    logger.warning("%s update failed: %s", target.name, outcome.describe_failure())
    return f"update failed ({outcome.describe_failure()}), continuing"


def run_target(
    target: InstallTarget,
    *,
    runner: CommandRunner,
    env: Environment,
    settings: Settings,
    dotfiles_dir: Path,
    work_dir: Path,
    update_existing: bool = False,
    configure: bool = True,
    on_event: EventCallback | None = None,
) -> TargetReport:
    """Resolve one target, then update and configure it as declared."""
    emit = on_event or ignore_event
    report = TargetReport(name=target.name, critical=target.critical)

    result = resolve(
        target,
        runner=runner,
        env=env,
        shell_files=settings.shell_files,
        default_timeout=settings.action_timeout,
        on_event=on_event,
    )
    report.result = result

    if result.outcome == Outcome.ALREADY_PRESENT and update_existing and target.update_command:
        report.update = _update_existing(target, runner, settings)
        emit("target:updated", {"target": target.name, "message": report.update})

    if configure and (result.ok or target.configure_always):
        ctx = ConfigureContext(
            runner=runner,
            env=env,
            settings=settings,
            dotfiles_dir=dotfiles_dir,
            work_dir=work_dir,
        )
        for name in target.configure:
            step = run_configurator(name, ctx)
            report.configured.append(step)
            event = "configure:done" if step.ok else "configure:failed"
            emit(event, {"target": target.name, "step": step})

    return report


def run_targets(
    targets: list[InstallTarget],
    *,
    runner: CommandRunner,
    env: Environment,
    settings: Settings,
    dotfiles_dir: Path,
    work_dir: Path,
    prerequisites: list[InstallTarget] | None = None,
    update_existing: bool = False,
    configure: bool = True,
    on_event: EventCallback | None = None,
) -> RunReport:
    """Run targets strictly in order, one at a time.

    Missing prerequisites stop the run before anything is installed.
    A critical target that fails stops the run; the targets after it
    are reported as not run.
    """
    report = RunReport()

    if prerequisites:
        report.prerequisites = check_prerequisites(prerequisites, runner, env)
        if report.missing_prerequisites:
            report.targets = [TargetReport(name=t.name, critical=t.critical) for t in targets]
            return report

    for index, target in enumerate(targets):
        target_report = run_target(
            target,
            runner=runner,
            env=env,
            settings=settings,
            dotfiles_dir=dotfiles_dir,
            work_dir=work_dir,
            update_existing=update_existing,
            configure=configure,
            on_event=on_event,
        )
        report.targets.append(target_report)

        if target_report.failed:
            if target.critical:
                logger.error("Critical target %s failed; stopping", target.name)
                report.aborted_at = target.name
                report.targets.extend(
                    TargetReport(name=t.name, critical=t.critical) for t in targets[index + 1:]
                )
                break
            logger.warning("%s failed (non-critical), continuing", target.name)

    return report
