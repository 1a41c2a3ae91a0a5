"""
Install use case — from "set up my machine" to a run report.

Ties together catalog loading, adapter construction, dotfiles
resolution and the executor. The CLI calls these functions; tests
call them with a MockRunner and a FakeEnvironment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from devsetup.adapters.base import CommandRunner, Environment
from devsetup.core.config.loader import Catalog, ConfigError, discover_catalog
from devsetup.core.engine.executor import RunReport, run_targets
from devsetup.core.engine.resolver import EventCallback
from devsetup.core.services.configure import (
    ConfigureContext,
    ConfigureResult,
    claude_instructions,
    resolve_dotfiles_dir,
)

logger = logging.getLogger(__name__)


def default_adapters(
    runner: CommandRunner | None = None,
    env: Environment | None = None,
) -> tuple[CommandRunner, Environment]:
    """Fill in the real subprocess runner and local environment."""
    if runner is None:
        from devsetup.adapters.shell.command import SubprocessRunner

        runner = SubprocessRunner()
    if env is None:
        from devsetup.adapters.shell.environment import LocalEnvironment

        env = LocalEnvironment()
    return runner, env


@dataclass
class InstallRunResult:
    """Result of an install run (full or selected targets)."""

    report: RunReport | None = None
    catalog: Catalog | None = None
    dotfiles_dir: Path | None = None
    error: str | None = None

    @property
    def exit_code(self) -> int:
        if self.error or self.report is None:
            return 1
        return self.report.exit_code

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        if self.catalog and self.catalog.source:
            result["config"] = str(self.catalog.source)
        result["dotfiles_dir"] = str(self.dotfiles_dir) if self.dotfiles_dir else None
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def install(
    names: list[str] | None = None,
    *,
    config_path: Path | None = None,
    dotfiles_dir: str | None = None,
    work_dir: Path | None = None,
    update_existing: bool = False,
    configure: bool = True,
    runner: CommandRunner | None = None,
    env: Environment | None = None,
    on_event: EventCallback | None = None,
) -> InstallRunResult:
    """Install targets from the catalog.

    Args:
        names: Targets to install, in the order given. None = the full
            default run, which also checks prerequisites first.
        config_path: Explicit devsetup.yml. None = search upward.
        dotfiles_dir: Overrides the configured dotfiles directory.
        work_dir: Directory the run is started from (default: cwd).
        update_existing: Run update commands for already present tools.
        configure: Apply configurators after installing.
        runner: Command runner (default: real subprocesses).
        env: Environment (default: this machine).
        on_event: Progress callback.

    Returns:
        InstallRunResult with the run report, or an error.
    """
    result = InstallRunResult()
    work_dir = work_dir or Path.cwd()

    # ── Load catalog ─────────────────────────────────────────────
    try:
        catalog = discover_catalog(config_path, start_dir=work_dir)
    except ConfigError as e:
        result.error = str(e)
        return result
    result.catalog = catalog

    # ── Select targets ───────────────────────────────────────────
    if names is None:
        targets = catalog.default_targets
        prerequisites = catalog.prerequisites
    else:
        unknown = [n for n in names if catalog.get(n) is None]
        if unknown:
            result.error = (
                f"Unknown target(s): {', '.join(unknown)}. "
                f"Available: {', '.join(catalog.names)}"
            )
            return result
        targets = [catalog.get(n) for n in names]
        prerequisites = []

    runner, env = default_adapters(runner, env)
    result.dotfiles_dir = resolve_dotfiles_dir(
        dotfiles_dir or catalog.settings.dotfiles_dir, env, work_dir
    )
    logger.info(
        "Installing %s (dotfiles: %s)",
        ", ".join(t.name for t in targets),
        result.dotfiles_dir,
    )

    # ── Execute ──────────────────────────────────────────────────
    result.report = run_targets(
        targets,
        runner=runner,
        env=env,
        settings=catalog.settings,
        dotfiles_dir=result.dotfiles_dir,
        work_dir=work_dir,
        prerequisites=prerequisites,
        update_existing=update_existing,
        configure=configure,
        on_event=on_event,
    )
    return result


@dataclass
class InstructionsResult:
    """Result of mirroring the assistant instructions file."""

    step: ConfigureResult | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return self.step.to_dict() if self.step else {}


def setup_claude(
    *,
    config_path: Path | None = None,
    work_dir: Path | None = None,
    runner: CommandRunner | None = None,
    env: Environment | None = None,
) -> InstructionsResult:
    """Mirror .github/copilot-instructions.md to CLAUDE.md in ``work_dir``."""
    result = InstructionsResult()
    work_dir = work_dir or Path.cwd()

    try:
        catalog = discover_catalog(config_path, start_dir=work_dir)
    except ConfigError as e:
        result.error = str(e)
        return result

    runner, env = default_adapters(runner, env)
    ctx = ConfigureContext(
        runner=runner,
        env=env,
        settings=catalog.settings,
        dotfiles_dir=resolve_dotfiles_dir(catalog.settings.dotfiles_dir, env, work_dir),
        work_dir=work_dir,
    )
    try:
        result.step = claude_instructions(ctx)
    except OSError as e:
        result.error = f"Could not write CLAUDE.md: {e}"
    return result
