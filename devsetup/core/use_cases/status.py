"""
Status use cases — what is installed, and what an install would do.

Both are read-only: detection probes and precondition checks only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from devsetup.adapters.base import CommandRunner, Environment
from devsetup.core.config.loader import Catalog, ConfigError, discover_catalog
from devsetup.core.engine.detection import Detection, detect
from devsetup.core.engine.resolver import ResolutionPlan, plan_resolution
from devsetup.core.use_cases.install import default_adapters


@dataclass
class TargetStatus:
    name: str
    description: str
    critical: bool
    default: bool
    detection: Detection

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "critical": self.critical,
            "default": self.default,
            "installed": self.detection.usable,
            "version": self.detection.version,
            "path": self.detection.binary_path,
            "detail": self.detection.describe(),
        }


@dataclass
class StatusResult:
    """Detection status of every catalog target."""

    targets: list[TargetStatus] = field(default_factory=list)
    os_family: str = ""
    config_path: Path | None = None
    error: str | None = None

    @property
    def installed_count(self) -> int:
        return sum(1 for t in self.targets if t.detection.usable)

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "os": self.os_family,
            "config": str(self.config_path) if self.config_path else None,
            "installed": self.installed_count,
            "targets": [t.to_dict() for t in self.targets],
        }


def _load(config_path: Path | None, work_dir: Path | None) -> Catalog:
    return discover_catalog(config_path, start_dir=work_dir or Path.cwd())


def get_status(
    *,
    config_path: Path | None = None,
    work_dir: Path | None = None,
    runner: CommandRunner | None = None,
    env: Environment | None = None,
) -> StatusResult:
    """Detect every target in the catalog."""
    result = StatusResult()
    try:
        catalog = _load(config_path, work_dir)
    except ConfigError as e:
        result.error = str(e)
        return result

    runner, env = default_adapters(runner, env)
    result.os_family = env.os_family
    result.config_path = catalog.source
    for target in catalog.targets:
        result.targets.append(TargetStatus(
            name=target.name,
            description=target.description,
            critical=target.critical,
            default=target.default,
            detection=detect(target, runner, env),
        ))
    return result


@dataclass
class PlanResult:
    """Dry-run plans for one or more targets."""

    plans: list[ResolutionPlan] = field(default_factory=list)
    os_family: str = ""
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {"os": self.os_family, "plans": [p.to_dict() for p in self.plans]}


def plan_targets(
    names: list[str] | None = None,
    *,
    config_path: Path | None = None,
    work_dir: Path | None = None,
    runner: CommandRunner | None = None,
    env: Environment | None = None,
) -> PlanResult:
    """Show which strategy each target would use, without installing.

    Args:
        names: Targets to plan. None = the default run.
    """
    result = PlanResult()
    try:
        catalog = _load(config_path, work_dir)
    except ConfigError as e:
        result.error = str(e)
        return result

    if names is None:
        targets = catalog.default_targets
    else:
        unknown = [n for n in names if catalog.get(n) is None]
        if unknown:
            result.error = (
                f"Unknown target(s): {', '.join(unknown)}. "
                f"Available: {', '.join(catalog.names)}"
            )
            return result
        targets = [catalog.get(n) for n in names]

    runner, env = default_adapters(runner, env)
    result.os_family = env.os_family
    result.plans = [plan_resolution(t, runner=runner, env=env) for t in targets]
    return result
