"""
Detection — is a target present, where, and which version.

Read-only probes: resolves the target's binary on PATH (or in the
target's extra search directories), runs its version command and
parses the output. File-based targets (e.g. shell completion scripts)
are present when any of their files exists.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from devsetup.adapters.base import CommandRunner, Environment
from devsetup.core.domain.version_constraint import satisfies_minimum
from devsetup.core.models.target import InstallTarget

logger = logging.getLogger(__name__)

# Version probes should be instant; anything slower is a hung tool.
DETECT_TIMEOUT = 15

NPM_PREFIX_PLACEHOLDER = "{npm_prefix}"


@dataclass
class Detection:
    """Result of probing a target."""

    present: bool
    version: str | None = None
    binary_path: str | None = None
    on_path: bool = True
    satisfies: bool = True
    message: str = ""

    @property
    def usable(self) -> bool:
        """Present and new enough."""
        return self.present and self.satisfies

    @property
    def bin_dir(self) -> str | None:
        """Directory holding the detected binary."""
        return str(Path(self.binary_path).parent) if self.binary_path else None

    def describe(self) -> str:
        if not self.present:
            return self.message or "not found"
        label = self.version or "unknown version"
        if not self.satisfies:
            return f"found {label}, {self.message}"
        return f"found {label} at {self.binary_path}"


def npm_prefix(runner: CommandRunner, env: Environment) -> str:
    """Global npm prefix, falling back to ``~/.npm-global``."""
    if env.which("npm"):
        result = runner.run(["npm", "config", "get", "prefix"], timeout=DETECT_TIMEOUT)
        prefix = result.stdout.strip()
        if result.ok and prefix:
            return prefix
    return str(env.home / ".npm-global")


def resolve_search_dir(raw: str, runner: CommandRunner, env: Environment) -> Path:
    """Expand a search directory entry (``~``, ``$VARS``, ``{npm_prefix}``)."""
    if NPM_PREFIX_PLACEHOLDER in raw:
        raw = raw.replace(NPM_PREFIX_PLACEHOLDER, npm_prefix(runner, env))
    return env.expand(raw)


def locate_binary(
    target: InstallTarget,
    runner: CommandRunner,
    env: Environment,
) -> tuple[str | None, bool]:
    """Find the target's executable.

    Returns:
        ``(path, on_path)``. ``on_path`` is False when the binary was
        only found in one of the target's extra search directories.
    """
    name = target.detection.binary
    if not name:
        return None, False

    found = env.which(name)
    if found:
        return found, True

    for raw in target.search_dirs:
        candidate = resolve_search_dir(raw, runner, env) / name
        if env.is_executable(candidate):
            logger.debug("%s found outside PATH at %s", name, candidate)
            return str(candidate), False

    return None, False


def parse_version_output(output: str, pattern: str) -> str | None:
    """Extract a version from command output using ``pattern``'s first group."""
    match = re.search(pattern, output)
    if not match:
        return None
    return match.group(1) if match.groups() else match.group(0)


def detect(
    target: InstallTarget,
    runner: CommandRunner,
    env: Environment,
) -> Detection:
    """Probe a target.

    A binary that is found but whose version probe fails or prints no
    recognisable version counts as present with an unknown version.
    """
    spec = target.detection

    if spec.command:
        name = spec.command[0]
        path, on_path = locate_binary(target, runner, env)
        if path is None:
            return Detection(present=False, message=f"{name} not found on PATH")

        argv = [name if on_path else path, *spec.command[1:]]
        result = runner.run(argv, timeout=DETECT_TIMEOUT)
        version = None
        if result.ok:
            version = parse_version_output(result.output, spec.version_pattern)
        else:
            logger.debug("Version probe for %s failed: %s", name, result.describe_failure())

        ok, message = satisfies_minimum(version, target.min_version)
        return Detection(
            present=True,
            version=version,
            binary_path=path,
            on_path=on_path,
            satisfies=ok,
            message=message,
        )

    if spec.files:
        for raw in spec.files:
            candidate = env.expand(raw)
            if env.exists(candidate):
                return Detection(present=True, binary_path=str(candidate))
        return Detection(present=False, message=f"none of {', '.join(spec.files)} exist")

    return Detection(present=False, message="no detection configured")
